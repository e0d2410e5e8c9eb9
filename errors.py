"""Exception hierarchy for the document submitter.

Callers can catch ``SubmitterError`` for everything, or one of the concrete
kinds to tell a bad configuration from a broken payload, a transport failure
or an aborted wait. The original cause is always chained on ``__cause__``.
"""

__all__ = [
    "SubmitterError",
    "ConfigurationError",
    "SerializationError",
    "NetworkError",
    "CancellationError",
]


class SubmitterError(RuntimeError):
    """Base exception for limiter and submission failures."""


class ConfigurationError(SubmitterError, ValueError):
    """Raised when a window or request limit is not positive."""


class SerializationError(SubmitterError):
    """Raised when a document cannot be encoded to (or decoded from) the wire format."""


class NetworkError(SubmitterError):
    """Raised on connection, timeout or other transport failures."""

    def __init__(self, message: str, *, url=None) -> None:
        super().__init__(message)
        self.url = url


class CancellationError(SubmitterError):
    """Raised when a caller's wait or in-flight submission was cancelled."""
