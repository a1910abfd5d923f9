"""
State management module.

Handles persistence of campaign results.
"""

from txlatency.state.recorder import HEADER, StatsRecorder

__all__ = [
    "HEADER",
    "StatsRecorder",
]
