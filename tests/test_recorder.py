"""
Test suite for CSV stats persistence.
"""

from datetime import datetime, timedelta, timezone

import pytest

from txlatency.core.result import DispatchResult
from txlatency.state.recorder import HEADER, StatsRecorder


@pytest.fixture
def recorder(tmp_path) -> StatsRecorder:
    return StatsRecorder(tmp_path)


def make_result(index: int, delay: timedelta) -> DispatchResult:
    return DispatchResult(
        sent_at=datetime(2026, 3, 1, 12, 0, index, 250_000, tzinfo=timezone.utc),
        tx_hash="0x" + f"{index:02x}" * 32,
        included_in_block=1000 + index,
        inclusion_delay=delay,
    )


class TestStatsRecorder:
    """Tests for writing and reading result files."""
    
    def test_path_per_target_and_region(self, recorder, tmp_path):
        """Test the file naming scheme."""
        assert recorder.path_for("endpoint1", "us-east") == tmp_path / "endpoint1-us-east.csv"
    
    def test_header_and_rows(self, recorder, tmp_path):
        """Test the fixed header and whole-millisecond delays."""
        path = tmp_path / "out.csv"
        
        rows = recorder.write(path, [make_result(1, timedelta(microseconds=51_900))])
        
        lines = path.read_text().splitlines()
        assert rows == 1
        assert lines[0] == ",".join(HEADER)
        assert lines[1].endswith(",1001,51")
    
    def test_written_results_read_back(self, recorder, tmp_path):
        """Test that hash, block and delay survive a write and read."""
        path = tmp_path / "out.csv"
        results = [
            make_result(1, timedelta(milliseconds=48, microseconds=700)),
            DispatchResult.zero(),
            make_result(2, timedelta(seconds=2, milliseconds=3)),
        ]
        
        recorder.write(path, results)
        parsed = recorder.read(path)
        
        assert len(parsed) == len(results)
        for original, loaded in zip(results, parsed):
            assert loaded.tx_hash == original.tx_hash
            assert loaded.included_in_block == original.included_in_block
            assert loaded.inclusion_delay_ms == original.inclusion_delay_ms
            assert loaded.sent_at == original.sent_at
        assert parsed[1].is_zero
    
    def test_creates_output_directory(self, tmp_path):
        """Test that a missing output directory is created."""
        recorder = StatsRecorder(tmp_path / "nested" / "data")
        path = recorder.path_for("endpoint2", "eu")
        
        recorder.write(path, [])
        
        assert path.read_text().strip() == ",".join(HEADER)
    
    def test_rejects_foreign_header(self, recorder, tmp_path):
        """Test that a file with another header is refused."""
        path = tmp_path / "other.csv"
        path.write_text("a,b,c\n")
        
        with pytest.raises(ValueError, match="Unexpected header"):
            recorder.read(path)


class TestDispatchResult:
    """Tests for the stats record."""
    
    def test_zero_record(self):
        assert DispatchResult.zero().is_zero
        assert not make_result(1, timedelta(0)).is_zero
    
    def test_milliseconds_truncate(self):
        result = make_result(1, timedelta(microseconds=1_999))
        
        assert result.inclusion_delay_ms == 1
        assert result.to_dict()["inclusion_delay_ms"] == 1
