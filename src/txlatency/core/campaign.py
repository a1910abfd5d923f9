"""
Campaign Runner - drives sequential dispatches against each target.

A campaign is N build-and-dispatch iterations against one endpoint. A failed
iteration yields a zero-valued result and increments the error counter; the
campaign never stops early.
"""

import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

import structlog
from eth_utils import to_checksum_address

from txlatency.core.dispatcher import (
    MAX_RECEIPT_ATTEMPTS,
    Dispatcher,
    SubmissionMode,
    utc_now,
)
from txlatency.core.result import DispatchResult
from txlatency.errors import LatencyError
from txlatency.node.interface import NodeInterface
from txlatency.tx.builder import NonceSource, TransactionBuilder, TransferIntent
from txlatency.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RunContext:
    """
    Shared inputs of one benchmark run.
    
    Passed explicitly to every component instead of living in module state.
    """
    chain_id: int
    signer: TransactionSigner
    recipient: str
    value: int = 100
    
    @property
    def intent(self) -> TransferIntent:
        """Get the transfer every dispatch of this run sends."""
        return TransferIntent(
            sender=self.signer.address,
            recipient=to_checksum_address(self.recipient),
            value=self.value,
            chain_id=self.chain_id,
        )


@dataclass(frozen=True)
class PacingPolicy:
    """
    Delay between two iterations: base plus uniform jitter, in milliseconds.
    """
    base_ms: int
    jitter_ms: int = 0
    
    def next_delay(self, rng: random.Random) -> float:
        """Get the next inter-transaction delay in seconds."""
        jitter = rng.randrange(self.jitter_ms) if self.jitter_ms > 0 else 0
        return (self.base_ms + jitter) / 1000


@dataclass
class CampaignTarget:
    """One named endpoint campaign."""
    name: str
    node: NodeInterface
    mode: SubmissionMode
    count: int
    pacing: PacingPolicy
    polling_interval_ms: int = 50


@dataclass
class Campaign:
    """
    Results of one campaign against one endpoint.
    
    Attributes:
        target_name: Name of the campaign target
        results: One record per iteration, zero-valued on failure
        errors: Number of failed iterations
        error_messages: Failure messages, in iteration order
    """
    
    target_name: str
    results: List[DispatchResult] = field(default_factory=list)
    errors: int = 0
    error_messages: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    
    def record_result(self, result: DispatchResult) -> None:
        self.results.append(result)
    
    def record_failure(self, error: str) -> None:
        self.results.append(DispatchResult.zero())
        self.errors += 1
        self.error_messages.append(error)
    
    @property
    def size(self) -> int:
        return len(self.results)
    
    @property
    def successes(self) -> List[DispatchResult]:
        """Get the records of confirmed transactions only."""
        return [r for r in self.results if not r.is_zero]
    
    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "target": self.target_name,
            "size": self.size,
            "errors": self.errors,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


class CampaignRunner:
    """
    Runs campaigns strictly in sequence.
    
    One transaction is built, submitted and confirmed before the next one is
    started, so pending nonces never race within an account.
    """
    
    def __init__(
        self,
        context: RunContext,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
        max_receipt_attempts: int = MAX_RECEIPT_ATTEMPTS,
    ):
        """
        Initialize the runner.
        
        Args:
            context: Run context (chain, key, recipient, value)
            clock: Wall-clock source shared with the dispatchers
            timer: Monotonic source shared with the dispatchers
            sleep: Blocking sleep taking seconds
            rng: Random source for pacing jitter
            max_receipt_attempts: Receipt poll cap for async dispatches
        """
        self.context = context
        self.clock = clock
        self.timer = timer
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.max_receipt_attempts = max_receipt_attempts
    
    def run(self, target: CampaignTarget) -> Campaign:
        """
        Run one campaign.
        
        Args:
            target: Endpoint, mode, count and pacing of the campaign
            
        Returns:
            Campaign with exactly target.count results
        """
        builder = TransactionBuilder(target.node, self.context.signer)
        dispatcher = Dispatcher(
            target.node,
            clock=self.clock,
            timer=self.timer,
            sleep=self.sleep,
            max_receipt_attempts=self.max_receipt_attempts,
        )
        intent = self.context.intent
        campaign = Campaign(target_name=target.name, started_at=self.clock())
        
        logger.info(
            "campaign_started",
            target=target.name,
            mode=target.mode.value,
            count=target.count,
        )
        
        for index in range(target.count):
            try:
                signed_tx = builder.build_transfer(intent, NonceSource.PENDING)
                result = dispatcher.dispatch(signed_tx, target.mode, target.polling_interval_ms)
            except LatencyError as e:
                campaign.record_failure(str(e))
                logger.error(
                    "dispatch_failed",
                    target=target.name,
                    iteration=index,
                    error_type=type(e).__name__,
                    error=str(e),
                )
            else:
                campaign.record_result(result)
                logger.info(
                    "dispatch_completed",
                    target=target.name,
                    iteration=index,
                    **result.to_dict(),
                )
            
            if index < target.count - 1:
                self.sleep(target.pacing.next_delay(self.rng))
        
        campaign.completed_at = self.clock()
        logger.info("campaign_completed", **campaign.to_dict())
        return campaign
    
    def run_all(
        self,
        targets: Sequence[CampaignTarget],
        settling_delay_seconds: float = 5.0,
    ) -> List[Campaign]:
        """
        Run every target in list order.
        
        A fixed settling delay separates consecutive campaigns so pending
        transactions of one endpoint cannot leak into the next.
        """
        campaigns = []
        for index, target in enumerate(targets):
            if index > 0:
                logger.info(
                    "settling_before_next_target",
                    target=target.name,
                    delay_seconds=settling_delay_seconds,
                )
                self.sleep(settling_delay_seconds)
            campaigns.append(self.run(target))
        return campaigns
