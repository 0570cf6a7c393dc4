"""
Exception types for stream operations.

Only genuine faults and exhausted retry budgets reach callers. Lost races and
missing records surface as empty or boolean results wherever the operation is
naturally idempotent.
"""

from typing import Any, Optional


class StreamError(Exception):
    """Base class for all dynastream errors."""
    pass


class TransportFailure(StreamError):
    """Raised when the underlying store or network call fails."""
    pass


class ConditionNotMet(StreamError):
    """
    Raised by the store layer when a conditional write is rejected.

    This is an optimistic-concurrency signal. Stream operations convert it into
    a retry, a False result or a skipped ID; it never escapes a public call.
    """
    pass


class GroupNotInitialized(StreamError):
    """Raised when a consumer group is read before XGROUP created its cursor."""
    pass


class ContentionExhausted(StreamError):
    """Raised when a bounded retry loop keeps losing races."""
    pass


class AppendRejected(ContentionExhausted):
    """
    Raised when XADD cannot advance the stream watermark.

    Either the explicit ID is not greater than the last admitted ID, or other
    writers won every attempt.
    """
    pass


class PartialBatchFailure(StreamError):
    """
    Raised when a multi-ID loop stops partway.

    Per-ID effects completed before the failure stay applied. The completed
    subset is available as ``partial``; the underlying error is ``__cause__``.
    """

    def __init__(self, message: str, partial: Any) -> None:
        super().__init__(message)
        self.partial = partial


class DeadlineExceeded(StreamError):
    """Raised when an operation's deadline expires or it is cancelled."""
    pass


class InvalidXID(StreamError, ValueError):
    """Raised when a string is not a canonical XID."""
    pass


class TransactionTooLarge(StreamError, ValueError):
    """Raised when a transaction holds more items than the store allows."""

    def __init__(self, size: int, limit: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"transaction has {size} items, limit is {limit}")
        self.size = size
        self.limit = limit
