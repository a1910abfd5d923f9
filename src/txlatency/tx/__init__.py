"""
Transaction module.

Handles transaction construction and signing.
"""

from txlatency.tx.builder import (
    FeeQuote,
    NonceSource,
    TransactionBuilder,
    TransferIntent,
)
from txlatency.tx.signer import SignedTransaction, TransactionSigner

__all__ = [
    "FeeQuote",
    "NonceSource",
    "SignedTransaction",
    "TransactionBuilder",
    "TransactionSigner",
    "TransferIntent",
]
