"""
Transaction Builder - constructs value-transfer transactions.

Quotes fees and reads the account nonce from the target endpoint, then
signs an EIP-1559 transfer for the run's chain.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from txlatency.errors import FeeQuoteError, NonceError
from txlatency.node.interface import NODE_ERRORS, NodeInterface
from txlatency.tx.signer import SignedTransaction, TransactionSigner

logger = structlog.get_logger(__name__)

TRANSFER_GAS_LIMIT = 21000


class NonceSource(str, Enum):
    """Where the nonce of a new transaction comes from."""
    PENDING = "pending"       # Next nonce including mempool-visible transactions
    CONFIRMED = "latest"      # Nonce after the last included transaction


@dataclass(frozen=True)
class TransferIntent:
    """
    Immutable input to one dispatch.
    
    Value and gas limit stay fixed for a whole run; only the nonce and fee
    parameters vary per transaction.
    """
    sender: str
    recipient: str
    value: int
    chain_id: int
    gas_limit: int = TRANSFER_GAS_LIMIT


@dataclass(frozen=True)
class FeeQuote:
    """Fee parameters quoted by an endpoint, in wei."""
    max_fee_per_gas: int
    max_priority_fee_per_gas: int


class TransactionBuilder:
    """
    Builds and signs transfer transactions against one endpoint.
    
    Every call quotes fresh fees; no markup is applied to the endpoint's
    suggestions.
    """
    
    def __init__(self, node: NodeInterface, signer: TransactionSigner):
        """
        Initialize the transaction builder.
        
        Args:
            node: Node interface used for fee quotes and nonces
            signer: Transaction signer holding the sender key
        """
        self.node = node
        self.signer = signer
    
    def quote_fees(self) -> FeeQuote:
        """
        Quote the fee cap (gas price) and priority tip.
        
        Raises:
            FeeQuoteError: If either value cannot be read
        """
        try:
            gas_price = self.node.get_gas_price()
        except NODE_ERRORS as e:
            raise FeeQuoteError(f"Unable to get gas price: {e}") from e
        
        try:
            tip = self.node.get_max_priority_fee()
        except NODE_ERRORS as e:
            raise FeeQuoteError(f"Unable to get priority fee: {e}") from e
        
        return FeeQuote(max_fee_per_gas=gas_price, max_priority_fee_per_gas=tip)
    
    def read_nonce(self, address: str, source: NonceSource = NonceSource.PENDING) -> int:
        """
        Read the account nonce.
        
        Raises:
            NonceError: If the nonce cannot be read
        """
        try:
            return self.node.get_transaction_count(address, source.value)
        except NODE_ERRORS as e:
            raise NonceError(f"Unable to get {source.name.lower()} nonce: {e}") from e
    
    def build_transfer(
        self,
        intent: TransferIntent,
        nonce_source: NonceSource = NonceSource.PENDING,
        nonce: Optional[int] = None,
    ) -> SignedTransaction:
        """
        Build and sign one transfer.
        
        Args:
            intent: Fixed transfer parameters
            nonce_source: Which nonce to read when none is given
            nonce: Pre-allocated nonce (skips the nonce query)
            
        Returns:
            Signed transaction
            
        Raises:
            NonceError, FeeQuoteError, SigningError
        """
        if nonce is None:
            nonce = self.read_nonce(intent.sender, nonce_source)
        
        fees = self.quote_fees()
        
        tx = {
            "type": 2,
            "chainId": intent.chain_id,
            "nonce": nonce,
            "maxFeePerGas": fees.max_fee_per_gas,
            "maxPriorityFeePerGas": fees.max_priority_fee_per_gas,
            "gas": intent.gas_limit,
            "to": intent.recipient,
            "value": intent.value,
            "data": b"",
        }
        
        signed_tx = self.signer.sign_transaction(tx)
        
        logger.debug(
            "transfer_built",
            node=self.node.name,
            tx_hash=signed_tx.tx_hash,
            nonce=nonce,
            max_fee_per_gas=fees.max_fee_per_gas,
            tip=fees.max_priority_fee_per_gas,
        )
        return signed_tx
