"""
Per-stream sequence generator.

Mints the sequence component of auto-assigned XIDs with an atomic ADD on a
counter record addressed by stream key. The increment is atomic in the store,
so concurrent writers may interleave values but never receive the same one.
"""

from typing import Optional

from ..core.clock import Deadline, check_deadline
from ..store.base import KeyedStore
from ..store.expressions import ExpressionBuilder
from .keys import VALUE_ATTR, sequence_key


class SequenceGenerator:
    """Atomic counter per stream key."""

    def __init__(self, store: KeyedStore) -> None:
        self.store = store

    def next(self, key: str, deadline: Optional[Deadline] = None) -> int:
        """
        Increment the stream's counter and return the new value.

        A missing counter counts as zero, so the first value is 1.
        """
        check_deadline(deadline)
        expression = ExpressionBuilder().add(VALUE_ATTR, 1)
        attrs = self.store.update_item(sequence_key(key), expression, return_new=True)
        return int((attrs or {}).get(VALUE_ATTR, 0))
