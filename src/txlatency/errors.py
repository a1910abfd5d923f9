"""
Error taxonomy for the latency benchmark.

Every failure that a campaign or bundle attempt can recover from derives
from LatencyError, so the campaign boundary can count it as one failed
iteration.
"""


class LatencyError(Exception):
    """Base class for all benchmark errors."""
    pass


class ConfigurationError(LatencyError):
    """Raised when a required setting is missing or malformed."""
    pass


class FeeQuoteError(LatencyError):
    """Raised when the endpoint cannot supply a gas price or priority tip."""
    pass


class NonceError(LatencyError):
    """Raised when the account nonce cannot be read."""
    pass


class SigningError(LatencyError):
    """Raised when the key cannot produce a valid signature."""
    pass


class SubmissionError(LatencyError):
    """Raised when an endpoint rejects or fails a transaction submission."""
    pass


class SyncSubmissionError(SubmissionError):
    """Raised when a submit-and-confirm call errors or returns no receipt."""
    pass


class AsyncSubmissionError(SubmissionError):
    """Raised when a fire-and-poll submission is not accepted."""
    pass


class ReceiptTimeoutError(LatencyError):
    """Raised when the receipt poll loop exhausts its attempt cap."""

    def __init__(self, message: str, tx_hash: str, attempts: int):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.attempts = attempts


class BlockHeightError(LatencyError):
    """Raised when the current block height cannot be read."""
    pass


class BundleSubmissionError(LatencyError):
    """Raised when the submit-bundle call fails."""
    pass
