"""
Time sources and deadlines.

Stream operations read wall-clock seconds for auto-assigned IDs and pending
entry timestamps. The clock is injected so tests can pin time.
"""

import threading
import time
from dataclasses import dataclass
from typing import Optional

from .errors import DeadlineExceeded


class SystemClock:
    """Wall-clock time source (unix seconds)."""

    def now(self) -> int:
        return int(time.time())


@dataclass
class ManualClock:
    """
    Settable time source.

    In tests: set or advance manually.
    """
    current: int = 0

    def now(self) -> int:
        """Get current timestamp without advancing."""
        return self.current

    def advance(self, step: int = 1) -> int:
        """Advance clock by step seconds and return the new time."""
        self.current += step
        return self.current


class Deadline:
    """
    Deadline and cancellation signal for a stream operation.

    Operations call check() before every store request. Multi-ID loops stop
    at the first failed check and report what they completed.

    Example:
        deadline = Deadline.after(2.5)
        client.xack("orders", "billing", *ids, deadline=deadline)

        # from another thread
        deadline.cancel()
    """

    def __init__(self, expires_at: Optional[float] = None) -> None:
        """
        Args:
            expires_at: Expiry on the time.monotonic() scale (None = never)
        """
        self.expires_at = expires_at
        self._cancelled = threading.Event()

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def expired(self) -> bool:
        if self.cancelled:
            return True
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def check(self) -> None:
        """
        Raises:
            DeadlineExceeded: If cancelled or past expiry
        """
        if self.cancelled:
            raise DeadlineExceeded("operation cancelled")
        if self.expires_at is not None and time.monotonic() >= self.expires_at:
            raise DeadlineExceeded("deadline exceeded")


def check_deadline(deadline: Optional[Deadline]) -> None:
    if deadline is not None:
        deadline.check()
