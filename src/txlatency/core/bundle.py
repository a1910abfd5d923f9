"""
Bundle Assembler - builds and submits atomic transaction bundles.

A bundle targets exactly one block: every listed transaction is included in
that block or none is.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import structlog
from eth_utils import to_hex

from txlatency.core.dispatcher import utc_now
from txlatency.errors import BlockHeightError, BundleSubmissionError
from txlatency.node.interface import NODE_ERRORS
from txlatency.tx.builder import NonceSource, TransactionBuilder, TransferIntent
from txlatency.tx.signer import SignedTransaction

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BundleDescriptor:
    """
    Atomic submission descriptor for eth_sendBundle.
    
    Attributes:
        txs: Signed transaction encodings, in execution order
        block_number: The only block the bundle may land in
        min_flashblock_number: Earliest flashblock index within the block
        max_flashblock_number: Latest flashblock index within the block
        min_timestamp: Earliest block timestamp (unix seconds)
        max_timestamp: Latest block timestamp (unix seconds)
        reverting_tx_hashes: Hashes allowed to revert without invalidating the bundle
        dropping_tx_hashes: Hashes that may be dropped from the bundle
        replacement_uuid: Identifier that lets a later bundle replace this one
    """
    
    txs: Tuple[bytes, ...]
    block_number: int
    min_flashblock_number: Optional[int] = None
    max_flashblock_number: Optional[int] = None
    min_timestamp: Optional[int] = None
    max_timestamp: Optional[int] = None
    reverting_tx_hashes: Tuple[str, ...] = ()
    dropping_tx_hashes: Tuple[str, ...] = ()
    replacement_uuid: Optional[str] = None
    
    def to_rpc_params(self) -> Dict[str, Any]:
        """Render the eth_sendBundle payload."""
        params: Dict[str, Any] = {
            "txs": [to_hex(raw) for raw in self.txs],
            "blockNumber": hex(self.block_number),
            "revertingTxHashes": list(self.reverting_tx_hashes),
            "droppingTxHashes": list(self.dropping_tx_hashes),
        }
        optional = {
            "minFlashblockNumber": self.min_flashblock_number,
            "maxFlashblockNumber": self.max_flashblock_number,
            "minTimestamp": self.min_timestamp,
            "maxTimestamp": self.max_timestamp,
            "replacementUuid": self.replacement_uuid,
        }
        params.update({key: value for key, value in optional.items() if value is not None})
        return params


@dataclass
class Bundle:
    """
    A descriptor together with the transactions it was built from.
    
    Attributes:
        descriptor: Payload submitted to the endpoint
        transactions: Signed transactions in bundle order
        bundle_id: Identifier returned by the endpoint
        submitted_at: When the submit call returned
    """
    
    descriptor: BundleDescriptor
    transactions: List[SignedTransaction] = field(default_factory=list)
    bundle_id: Optional[str] = None
    submitted_at: Optional[datetime] = None
    
    @property
    def size(self) -> int:
        return len(self.transactions)
    
    @property
    def nonces(self) -> List[int]:
        return [tx.nonce for tx in self.transactions]
    
    @property
    def tx_hashes(self) -> List[str]:
        return [tx.tx_hash for tx in self.transactions]
    
    def mark_submitted(self, bundle_id: str, submitted_at: datetime) -> None:
        self.bundle_id = bundle_id
        self.submitted_at = submitted_at
    
    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "bundle_id": self.bundle_id,
            "block_number": self.descriptor.block_number,
            "tx_hashes": self.tx_hashes,
            "nonces": self.nonces,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }


class BundleAssembler:
    """
    Builds a bundle of transfers with sequential nonces for the next block.
    
    Nonces are allocated from the confirmed nonce before anything is
    submitted, so transactions within one bundle never collide. The target
    block is read once; a missed block is not retried.
    
    Every transaction hash is marked revert-permitted.
    """
    
    def __init__(
        self,
        builder: TransactionBuilder,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the bundle assembler.
        
        Args:
            builder: Transaction builder bound to the bundle endpoint
            clock: Wall-clock source
        """
        self.builder = builder
        self.node = builder.node
        self.clock = clock
    
    def assemble(
        self,
        intent: TransferIntent,
        tx_count: int,
        min_flashblock_number: Optional[int] = None,
        max_flashblock_number: Optional[int] = None,
        min_timestamp: Optional[int] = None,
        max_timestamp: Optional[int] = None,
        dropping_tx_hashes: Iterable[str] = (),
        replacement_uuid: Optional[str] = None,
    ) -> Bundle:
        """
        Build a bundle of tx_count transfers targeting the next block.
        
        Any build failure aborts the whole bundle; partial construction is
        discarded.
        
        Raises:
            ValueError: If tx_count is less than 1
            BlockHeightError, NonceError, FeeQuoteError, SigningError
        """
        if tx_count < 1:
            raise ValueError(f"A bundle needs at least one transaction, got {tx_count}")
        
        try:
            current_block = self.node.get_block_number()
        except NODE_ERRORS as e:
            raise BlockHeightError(f"Unable to get block number: {e}") from e
        target_block = current_block + 1
        
        first_nonce = self.builder.read_nonce(intent.sender, NonceSource.CONFIRMED)
        
        transactions = [
            self.builder.build_transfer(intent, nonce=first_nonce + offset)
            for offset in range(tx_count)
        ]
        
        descriptor = BundleDescriptor(
            txs=tuple(tx.raw for tx in transactions),
            block_number=target_block,
            min_flashblock_number=min_flashblock_number,
            max_flashblock_number=max_flashblock_number,
            min_timestamp=min_timestamp,
            max_timestamp=max_timestamp,
            reverting_tx_hashes=tuple(tx.tx_hash for tx in transactions),
            dropping_tx_hashes=tuple(dropping_tx_hashes),
            replacement_uuid=replacement_uuid,
        )
        
        logger.info(
            "bundle_assembled",
            node=self.node.name,
            block_number=target_block,
            size=len(transactions),
            first_nonce=first_nonce,
        )
        return Bundle(descriptor=descriptor, transactions=transactions)
    
    def submit(self, bundle: Bundle) -> str:
        """
        Submit an assembled bundle.
        
        Returns:
            Bundle identifier from the endpoint
            
        Raises:
            BundleSubmissionError: If the submit-bundle call fails
        """
        try:
            bundle_id = self.node.send_bundle(bundle.descriptor.to_rpc_params())
        except NODE_ERRORS as e:
            logger.error(
                "bundle_submit_failed",
                node=self.node.name,
                block_number=bundle.descriptor.block_number,
                error=str(e),
            )
            raise BundleSubmissionError(f"Unable to send bundle: {e}") from e
        
        bundle.mark_submitted(bundle_id, self.clock())
        logger.info("bundle_submitted", node=self.node.name, **bundle.to_dict())
        return bundle_id
    
    def assemble_and_submit(self, intent: TransferIntent, tx_count: int, **options) -> Bundle:
        """Assemble a bundle and submit it in one step."""
        bundle = self.assemble(intent, tx_count, **options)
        self.submit(bundle)
        return bundle
