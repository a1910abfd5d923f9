"""
Stats recorder - persists campaign results as CSV.

One file per endpoint per run, with a fixed four-column header.
"""

import csv
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Union

import structlog

from txlatency.core.result import DispatchResult

logger = structlog.get_logger(__name__)

HEADER = ["sent_at", "txn_hash", "included_in_block", "inclusion_delay_ms"]


class StatsRecorder:
    """
    Writes and reads result files.
    
    Zero-valued records are written as-is (empty timestamp and hash) so the
    row count equals the number of attempts.
    """
    
    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
    
    def path_for(self, target_name: str, region: str) -> Path:
        """Get the result file of a target, e.g. endpoint1-us-east.csv."""
        return self.output_dir / f"{target_name}-{region}.csv"
    
    def write(self, path: Union[str, Path], results: Iterable[DispatchResult]) -> int:
        """
        Write results to a CSV file, replacing any existing file.
        
        Returns:
            Number of rows written (excluding the header)
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        
        rows = 0
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(HEADER)
            for result in results:
                writer.writerow([
                    result.sent_at.isoformat() if result.sent_at else "",
                    result.tx_hash,
                    result.included_in_block,
                    result.inclusion_delay_ms,
                ])
                rows += 1
        
        logger.info("stats_written", path=str(path), rows=rows)
        return rows
    
    def read(self, path: Union[str, Path]) -> List[DispatchResult]:
        """
        Parse a result file back into records.
        
        Raises:
            ValueError: If the header does not match
        """
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header != HEADER:
                raise ValueError(f"Unexpected header in {path}: {header}")
            
            return [
                DispatchResult(
                    sent_at=datetime.fromisoformat(sent_at) if sent_at else None,
                    tx_hash=tx_hash,
                    included_in_block=int(block),
                    inclusion_delay=timedelta(milliseconds=int(delay_ms)),
                )
                for sent_at, tx_hash, block, delay_ms in reader
            ]
