"""
Exception hierarchy for transaction id derivation.
"""

from typing import Optional


class TransactionError(Exception):
    """Base class for every derivation failure."""
    pass


class IndicesNotFound(TransactionError):
    """Raised when the ondemand script offsets cannot be resolved."""
    pass


class KeyNotFound(TransactionError):
    """Raised when the site verification key is missing from the page."""
    pass


class InvalidKeyBytes(KeyNotFound):
    """Raised when the verification key cannot be decoded or is too short."""
    pass


class InvalidFrameData(TransactionError):
    """Raised when the loading animation frames cannot produce a usable row."""
    pass


class NotInitialized(TransactionError):
    """Raised when a transaction id is requested before initialization."""
    pass


class InitializationFailed(TransactionError):
    """Wraps the root cause of a failed session initialization."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class HomePageUnavailable(TransactionError):
    """Raised when the home page cannot be downloaded."""
    pass
