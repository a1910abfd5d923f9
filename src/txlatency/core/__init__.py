"""
Core benchmark components.

This module contains the dispatch state machine, the bundle assembler and
the campaign runner.
"""

from txlatency.core.bundle import Bundle, BundleAssembler, BundleDescriptor
from txlatency.core.campaign import (
    Campaign,
    CampaignRunner,
    CampaignTarget,
    PacingPolicy,
    RunContext,
)
from txlatency.core.dispatcher import Dispatch, Dispatcher, DispatchState, SubmissionMode
from txlatency.core.result import DispatchResult

__all__ = [
    "Bundle",
    "BundleAssembler",
    "BundleDescriptor",
    "Campaign",
    "CampaignRunner",
    "CampaignTarget",
    "Dispatch",
    "Dispatcher",
    "DispatchResult",
    "DispatchState",
    "PacingPolicy",
    "RunContext",
    "SubmissionMode",
]
