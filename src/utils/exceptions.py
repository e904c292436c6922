# ============================================================================
# src/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the MediBill client.

The core returns RequestOutcome values instead of raising; these exceptions
are used at the edges (RequestOutcome.unwrap(), local storage writes).
"""

from typing import Optional


class MediBillClientError(Exception):
    """Base exception for all MediBill client errors."""
    pass


class ConfigurationError(MediBillClientError):
    """Invalid configuration."""
    pass


class StorageError(MediBillClientError):
    """Local storage could not be read or written."""
    pass


class TransportError(MediBillClientError):
    """A request finished with a typed failure."""
    def __init__(self, kind, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status

    def __repr__(self) -> str:
        return f"TransportError(kind={self.kind!r}, message={self.message!r}, status={self.status!r})"
