"""
Dispatcher - submits one signed transaction and times its inclusion.

Two confirmation protocols share one state machine:

    BUILT -> SUBMITTED -> CONFIRMED                      (sync)
    BUILT -> SUBMITTED -> PENDING -> CONFIRMED           (async)
    BUILT -> SUBMITTED -> PENDING -> EXHAUSTED           (async, no receipt)

Any submission failure moves the dispatch to FAILED.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

import structlog

from txlatency.core.result import DispatchResult
from txlatency.errors import (
    AsyncSubmissionError,
    ReceiptTimeoutError,
    SyncSubmissionError,
)
from txlatency.node.interface import NODE_ERRORS, NodeInterface
from txlatency.tx.signer import SignedTransaction

logger = structlog.get_logger(__name__)

MAX_RECEIPT_ATTEMPTS = 1000


def utc_now() -> datetime:
    """Get the current wall-clock time."""
    return datetime.now(timezone.utc)


class SubmissionMode(str, Enum):
    """Confirmation protocol used for a dispatch."""
    SYNC = "sync"         # eth_sendRawTransactionSync, receipt on return
    ASYNC = "async"       # eth_sendRawTransaction, then poll for the receipt


class DispatchState(str, Enum):
    """State of a dispatch."""
    BUILT = "built"               # Signed, not yet handed to the endpoint
    SUBMITTED = "submitted"       # Submission call issued
    PENDING = "pending"           # Accepted, waiting for a receipt
    CONFIRMED = "confirmed"       # Receipt observed
    EXHAUSTED = "exhausted"       # Receipt poll cap reached
    FAILED = "failed"             # Submission failed


@dataclass
class Dispatch:
    """
    Tracks one signed transaction through the dispatch state machine.
    
    Attributes:
        signed_tx: Transaction being dispatched
        mode: Confirmation protocol
        state: Current state
        sent_at: Wall-clock time taken immediately before the submission call
        confirmed_at: Wall-clock time the receipt was observed
        submitted_tick: Monotonic reading taken with sent_at
        inclusion_delay: Monotonic time from submission to receipt
        block_number: Inclusion block from the receipt
        attempts: Receipt queries made (async mode)
        error_message: Why the dispatch failed
    """
    
    signed_tx: SignedTransaction
    mode: SubmissionMode
    state: DispatchState = DispatchState.BUILT
    sent_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    submitted_tick: float = 0.0
    inclusion_delay: timedelta = field(default_factory=timedelta)
    block_number: int = 0
    attempts: int = 0
    error_message: Optional[str] = None
    
    @property
    def tx_hash(self) -> str:
        return self.signed_tx.tx_hash
    
    def mark_submitted(self, sent_at: datetime, tick: float = 0.0) -> None:
        self.state = DispatchState.SUBMITTED
        self.sent_at = sent_at
        self.submitted_tick = tick
    
    def mark_pending(self) -> None:
        self.state = DispatchState.PENDING
    
    def mark_confirmed(self, block_number: int, confirmed_at: datetime, tick: float = 0.0) -> None:
        self.state = DispatchState.CONFIRMED
        self.block_number = block_number
        self.confirmed_at = confirmed_at
        self.inclusion_delay = timedelta(seconds=max(tick - self.submitted_tick, 0.0))
    
    def mark_exhausted(self) -> None:
        self.state = DispatchState.EXHAUSTED
    
    def mark_failed(self, error: str) -> None:
        self.state = DispatchState.FAILED
        self.error_message = error
    
    def to_result(self) -> DispatchResult:
        """
        Get the stats record of a confirmed dispatch.
        
        Raises:
            RuntimeError: If the dispatch is not confirmed
        """
        if self.state != DispatchState.CONFIRMED:
            raise RuntimeError(f"Dispatch {self.tx_hash} is {self.state.value}, not confirmed")
        
        return DispatchResult(
            sent_at=self.sent_at,
            tx_hash=self.tx_hash,
            included_in_block=self.block_number,
            inclusion_delay=self.inclusion_delay,
        )


class Dispatcher:
    """
    Submits signed transactions to one endpoint.
    
    Time sources and sleep are injectable so the poll loop can run against
    simulated time. Inclusion delays are measured with the
    monotonic timer; the wall clock only stamps sent_at.
    """
    
    def __init__(
        self,
        node: NodeInterface,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        max_receipt_attempts: int = MAX_RECEIPT_ATTEMPTS,
    ):
        """
        Initialize the dispatcher.
        
        Args:
            node: Endpoint to submit to
            clock: Wall-clock source
            timer: Monotonic source in seconds
            sleep: Blocking sleep taking seconds
            max_receipt_attempts: Receipt queries before giving up (async mode)
        """
        self.node = node
        self.clock = clock
        self.timer = timer
        self.sleep = sleep
        self.max_receipt_attempts = max_receipt_attempts
    
    def dispatch(
        self,
        signed_tx: SignedTransaction,
        mode: SubmissionMode,
        polling_interval_ms: int = 50,
    ) -> DispatchResult:
        """
        Submit a transaction and wait for its inclusion.
        
        Args:
            signed_tx: Transaction to submit
            mode: Confirmation protocol
            polling_interval_ms: Sleep between receipt queries (async mode)
            
        Returns:
            Stats record of the confirmed transaction
            
        Raises:
            SyncSubmissionError, AsyncSubmissionError, ReceiptTimeoutError
        """
        return self.execute(Dispatch(signed_tx, mode), polling_interval_ms)
    
    def execute(self, dispatch: Dispatch, polling_interval_ms: int = 50) -> DispatchResult:
        """Drive an existing dispatch to a terminal state."""
        if dispatch.mode == SubmissionMode.SYNC:
            return self._send_sync(dispatch)
        return self._send_async(dispatch, polling_interval_ms)
    
    def _send_sync(self, dispatch: Dispatch) -> DispatchResult:
        """Submit-and-confirm in one blocking call. No retry."""
        raw_tx = dispatch.signed_tx.raw_hex
        
        dispatch.mark_submitted(self.clock(), self.timer())
        try:
            receipt = self.node.send_raw_transaction_sync(raw_tx)
        except NODE_ERRORS as e:
            dispatch.mark_failed(str(e))
            raise SyncSubmissionError(f"Unable to send sync transaction: {e}") from e
        
        if receipt is None:
            dispatch.mark_failed("receipt not found")
            raise SyncSubmissionError("Unable to send sync transaction: receipt not found")
        
        dispatch.mark_confirmed(receipt.block_number, self.clock(), self.timer())
        
        logger.info(
            "tx_sent_sync",
            node=self.node.name,
            tx_hash=dispatch.tx_hash,
            block=receipt.block_number,
        )
        return dispatch.to_result()
    
    def _send_async(self, dispatch: Dispatch, polling_interval_ms: int) -> DispatchResult:
        """Broadcast, then poll for the receipt at a constant interval."""
        interval = polling_interval_ms / 1000
        
        dispatch.mark_submitted(self.clock(), self.timer())
        try:
            self.node.send_raw_transaction(dispatch.signed_tx.raw_hex)
        except NODE_ERRORS as e:
            dispatch.mark_failed(str(e))
            raise AsyncSubmissionError(f"Unable to send transaction: {e}") from e
        
        dispatch.mark_pending()
        logger.info("tx_sent_async", node=self.node.name, tx_hash=dispatch.tx_hash)
        
        while dispatch.attempts < self.max_receipt_attempts:
            dispatch.attempts += 1
            try:
                receipt = self.node.get_transaction_receipt(dispatch.tx_hash)
            except NODE_ERRORS as e:
                # Nodes may answer "not found" with an error; treat as a miss
                logger.debug(
                    "receipt_query_failed",
                    node=self.node.name,
                    tx_hash=dispatch.tx_hash,
                    attempt=dispatch.attempts,
                    error=str(e),
                )
                receipt = None
            
            if receipt is not None:
                dispatch.mark_confirmed(receipt.block_number, self.clock(), self.timer())
                logger.debug(
                    "tx_confirmed",
                    node=self.node.name,
                    tx_hash=dispatch.tx_hash,
                    block=receipt.block_number,
                    attempts=dispatch.attempts,
                )
                return dispatch.to_result()
            
            self.sleep(interval)
        
        dispatch.mark_exhausted()
        logger.warning(
            "receipt_poll_exhausted",
            node=self.node.name,
            tx_hash=dispatch.tx_hash,
            attempts=dispatch.attempts,
        )
        raise ReceiptTimeoutError(
            f"No receipt for {dispatch.tx_hash} after {dispatch.attempts} attempts",
            tx_hash=dispatch.tx_hash,
            attempts=dispatch.attempts,
        )
