"""
Transaction Inclusion Latency Benchmark

Measures how long value transfers take to land on chain through different
EVM JSON-RPC endpoints, comparing submit-and-confirm against fire-and-poll,
and exercises atomic bundle submission.
"""

__version__ = "0.1.0"

from txlatency.core.campaign import Campaign, CampaignRunner, CampaignTarget
from txlatency.core.dispatcher import Dispatcher, SubmissionMode
from txlatency.core.result import DispatchResult

__all__ = [
    "Campaign",
    "CampaignRunner",
    "CampaignTarget",
    "Dispatcher",
    "DispatchResult",
    "SubmissionMode",
]
