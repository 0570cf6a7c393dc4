"""
Range engine: XRANGE, XREVRANGE, XREAD, XLEN.

Every read is a query of the stream's partition for sort keys in
[start, stop], following the store's pagination cursor until the count is met
or the range is exhausted. Items come back in scan order: ascending for
forward scans, descending for reverse scans.
"""

from typing import List, Optional

from ..core.clock import Deadline, check_deadline
from ..core.xid import XEND, XID, XSTART, successor
from ..store.base import KeyedStore
from .models import StreamItem


class RangeReader:
    """Paginated, directional reads over one stream's key space."""

    def __init__(self, store: KeyedStore) -> None:
        self.store = store

    def scan(
        self,
        key: str,
        start: XID,
        stop: XID,
        count: int,
        forward: bool = True,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """
        Fetch up to count items with start <= id <= stop.

        Args:
            key: Stream key
            start: Lowest XID (inclusive)
            stop: Highest XID (inclusive)
            count: Maximum number of items
            forward: Ascending order if True, descending otherwise
            deadline: Optional deadline, checked before each page

        Returns:
            Stream items in scan order
        """
        items: List[StreamItem] = []
        cursor = None
        remaining = count

        while remaining > 0:
            check_deadline(deadline)
            page = self.store.query(
                key,
                str(start),
                str(stop),
                forward=forward,
                limit=remaining,
                cursor=cursor,
            )
            for record in page.records[:remaining]:
                items.append(StreamItem.from_record(record))
            remaining = count - len(items)

            cursor = page.cursor
            if cursor is None:
                break

        return items

    def xrange(
        self,
        key: str,
        start: XID,
        stop: XID,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """
        Items between two XIDs, both inclusive, oldest first, at most count.

        A single item: xrange(key, id, id, 1). A time window:
        xrange(key, XID.from_time(t0).first(), XID.from_time(t1).last(), 1000).
        When the full count comes back, fetch the next page with
        xrange(key, last.id.next(), stop, count).
        """
        return self.scan(key, start, stop, count, forward=True, deadline=deadline)

    def xrevrange(
        self,
        key: str,
        end: XID,
        start: XID,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """
        Like xrange, newest first. Note the argument order: end before start.

        Next page: xrevrange(key, last.id.prev(), start, count).
        """
        return self.scan(key, start, end, count, forward=False, deadline=deadline)

    def xread(
        self,
        key: str,
        from_id: XID,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """
        Items strictly after from_id, oldest first.

        IDs only grow, so calling xread in a loop with the last returned ID
        visits every item exactly once. Start from XSTART to read from the
        beginning.
        """
        start = successor(from_id)
        if start is None:
            return []
        return self.scan(key, start, XEND, count, forward=True, deadline=deadline)

    def xlen(
        self,
        key: str,
        start: XID = XSTART,
        stop: XID = XEND,
        deadline: Optional[Deadline] = None,
    ) -> int:
        """Count items with start <= id <= stop (whole stream by default)."""
        total = 0
        cursor = None

        while True:
            check_deadline(deadline)
            page = self.store.query(key, str(start), str(stop), cursor=cursor, count_only=True)
            total += page.count
            cursor = page.cursor
            if cursor is None:
                return total
