"""
Transaction Signer - handles transaction signing.

Holds the single sending key of a benchmark run and signs EIP-1559
transactions with it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_hex

from txlatency.errors import SigningError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SignedTransaction:
    """
    A signed transaction ready for broadcast.
    
    Attributes:
        raw: Canonical (typed envelope) encoding of the signed transaction
        tx_hash: 0x-prefixed hash of the signed encoding
        nonce: Account nonce the transaction was signed with
        max_fee_per_gas: Fee cap in wei
        max_priority_fee_per_gas: Priority tip in wei
    """
    raw: bytes
    tx_hash: str
    nonce: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    
    @property
    def raw_hex(self) -> str:
        """Get the 0x-prefixed hex encoding used by JSON-RPC."""
        return to_hex(self.raw)


class TransactionSigner:
    """
    Handles transaction signing with the run's private key.
    
    Security note: the key is held in memory for the whole run. Use a
    dedicated, lightly funded benchmark account.
    """
    
    def __init__(self, account: Optional[LocalAccount] = None):
        """
        Initialize the transaction signer.
        
        Args:
            account: Already loaded account (see from_key)
        """
        self._account = account
    
    @classmethod
    def from_key(cls, private_key: str) -> "TransactionSigner":
        """
        Load a signer from a hex private key.
        
        Raises:
            SigningError: If the key is malformed or not a valid secp256k1 key
        """
        try:
            account = Account.from_key(private_key)
        except Exception as e:
            raise SigningError(f"Failed to load private key: {e}") from e
        
        logger.info("signing_key_loaded", address=account.address)
        return cls(account)
    
    @property
    def address(self) -> Optional[str]:
        """Get the checksummed sender address."""
        return self._account.address if self._account else None
    
    @property
    def is_loaded(self) -> bool:
        """Check if a signing key is loaded."""
        return self._account is not None
    
    def sign_transaction(self, tx: Dict[str, Any]) -> SignedTransaction:
        """
        Sign a transaction.
        
        Args:
            tx: EIP-1559 transaction fields (chainId, nonce, maxFeePerGas,
                maxPriorityFeePerGas, gas, to, value)
            
        Returns:
            Signed transaction
            
        Raises:
            SigningError: If no key is loaded or signing fails
        """
        if not self._account:
            raise SigningError("No signing key loaded")
        
        try:
            signed = self._account.sign_transaction(tx)
        except Exception as e:
            raise SigningError(f"Unable to sign transaction: {e}") from e
        
        signed_tx = SignedTransaction(
            raw=bytes(signed.raw_transaction),
            tx_hash=to_hex(signed.hash),
            nonce=tx["nonce"],
            max_fee_per_gas=tx["maxFeePerGas"],
            max_priority_fee_per_gas=tx["maxPriorityFeePerGas"],
        )
        logger.debug("transaction_signed", tx_hash=signed_tx.tx_hash, nonce=signed_tx.nonce)
        
        return signed_tx


def generate_test_key() -> TransactionSigner:
    """
    Generate a new random signing key for testing.
    
    WARNING: Do not use in production. The key is not persisted.
    
    Returns:
        TransactionSigner with a new random key
    """
    account = Account.create()
    logger.warning("test_key_generated", address=account.address)
    return TransactionSigner(account)
