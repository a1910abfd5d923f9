"""
Dispatch result model.

One stats record per dispatched transaction.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class DispatchResult:
    """
    Timing of one transaction from submission to inclusion.
    
    A zero-valued record (see zero()) marks a failed dispatch. It is still
    kept in a campaign's result sequence so row counts line up with the
    number of attempts; downstream analysis must filter it out.
    
    Attributes:
        sent_at: Wall-clock time taken immediately before submission
        tx_hash: 0x-prefixed transaction hash
        included_in_block: Block number from the inclusion receipt
        inclusion_delay: Monotonic time from submission to the receipt
    """
    
    sent_at: Optional[datetime] = None
    tx_hash: str = ""
    included_in_block: int = 0
    inclusion_delay: timedelta = field(default_factory=timedelta)
    
    @classmethod
    def zero(cls) -> "DispatchResult":
        """Get the record used for a failed dispatch."""
        return cls()
    
    @property
    def is_zero(self) -> bool:
        """Check if this record marks a failure."""
        return self.sent_at is None and not self.tx_hash and self.included_in_block == 0
    
    @property
    def inclusion_delay_ms(self) -> int:
        """Get the inclusion delay in whole milliseconds (truncated)."""
        return int(self.inclusion_delay / timedelta(milliseconds=1))
    
    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "tx_hash": self.tx_hash,
            "included_in_block": self.included_in_block,
            "inclusion_delay_ms": self.inclusion_delay_ms,
        }
