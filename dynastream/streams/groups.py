"""
Consumer-group coordinator: XGROUP, XREADGROUP, XACK, XCLAIM, XPENDING.

Each group owns one partition holding its cursor and its pending-entry ledger.
The cursor is the last XID delivered in a new-item mode and only moves forward
through a compare-and-swap (stored < new). Delivering a new item advances the
cursor and records the pending entry in one transaction, so when readers race
for the same item exactly one transaction commits.

Pending entry lifecycle:
    absent -> delivered (count+1) -> redelivered (count+1) | claimed (count=0) -> absent (ack)
"""

import logging
from datetime import datetime
from itertools import islice
from typing import Any, Iterator, List, Optional

from .. import metrics
from ..core.clock import Deadline, SystemClock, check_deadline
from ..core.errors import (
    ConditionNotMet,
    ContentionExhausted,
    GroupNotInitialized,
    PartialBatchFailure,
    StreamError,
)
from ..core.xid import XEND, XID, XSTART, successor
from ..store.base import KeyedStore, Update
from ..store.expressions import ExpressionBuilder
from .keys import (
    CONSUMER_ATTR,
    DELIVERY_COUNT_ATTR,
    LAST_DELIVERED_ATTR,
    VALUE_ATTR,
    cursor_key,
    group_partition,
    pending_key,
)
from .models import PendingItem, ReadMode, StreamItem, unix_seconds
from .ranges import RangeReader

logger = logging.getLogger(__name__)


class GroupCoordinator:
    """
    Coordinates consumer groups over streams.

    Delivery is at-least-once: an item read with READ_NEW stays pending until
    acknowledged and is redelivered to its consumer in PENDING mode, or handed
    to another consumer by XCLAIM once stale.
    """

    def __init__(
        self,
        store: KeyedStore,
        ranges: RangeReader,
        clock: Any = None,
        attempts: int = 5,
    ) -> None:
        """
        Args:
            store: Keyed store
            ranges: Range reader used to fetch stream items
            clock: Time source with now() -> unix seconds (default: system clock)
            attempts: Total attempts per new-item read before ContentionExhausted
        """
        self.store = store
        self.ranges = ranges
        self.clock = clock or SystemClock()
        self.attempts = attempts

    def xgroup(
        self,
        key: str,
        group: str,
        start: XID = XSTART,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """
        Create the group, or reset its cursor if it already exists.

        Items with IDs greater than start are delivered by new-item reads.
        Pending entries are left untouched.
        """
        start = XID.parse(start)
        check_deadline(deadline)
        self.store.put_item(cursor_key(key, group), {VALUE_ATTR: str(start)})
        logger.debug("XGROUP %s %s cursor set to %s", key, group, start)

    def _cursor(self, key: str, group: str) -> XID:
        record = self.store.get_item(cursor_key(key, group), consistent=True)
        if record is None or VALUE_ATTR not in record.attributes:
            raise GroupNotInitialized(f"group {group!r} on stream {key!r} does not exist")
        return XID(record.attributes[VALUE_ATTR])

    def xreadgroup(
        self,
        key: str,
        group: str,
        consumer: str,
        mode: ReadMode,
        count: int = 1,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """
        Read through a consumer group.

        Modes:
            PENDING: redeliver up to count of this consumer's unacknowledged
                items, bumping each entry's delivery count and timestamp
            READ_NEW: deliver the next item after the cursor and track it as
                pending for this consumer
            READ_NEW_NO_ACK: deliver the next item after the cursor without
                tracking it

        The new-item modes deliver at most one item per call.

        Returns:
            Delivered items (empty when nothing is available)

        Raises:
            GroupNotInitialized: New-item mode before XGROUP
            ContentionExhausted: Lost the cursor race on every attempt
            PartialBatchFailure: PENDING mode stopped partway; .partial holds
                the items redelivered so far
        """
        mode = ReadMode(mode)
        if count < 1:
            return []
        if mode is ReadMode.PENDING:
            return self._read_pending(key, group, consumer, count, deadline)
        return self._read_new(key, group, consumer, mode, deadline)

    def _read_new(
        self,
        key: str,
        group: str,
        consumer: str,
        mode: ReadMode,
        deadline: Optional[Deadline],
    ) -> List[StreamItem]:
        for attempt in range(self.attempts):
            check_deadline(deadline)
            start = successor(self._cursor(key, group))
            if start is None:
                return []
            items = self.ranges.scan(key, start, XEND, 1, deadline=deadline)
            if not items:
                return []
            item = items[0]

            advance = ExpressionBuilder()
            advance.condition_compare(VALUE_ATTR, "<", str(item.id))
            advance.set(VALUE_ATTR, str(item.id))
            actions = [Update(key=cursor_key(key, group), expression=advance)]

            if mode is ReadMode.READ_NEW:
                entry = ExpressionBuilder()
                entry.set(CONSUMER_ATTR, consumer)
                entry.set(LAST_DELIVERED_ATTR, self.clock.now())
                entry.add(DELIVERY_COUNT_ATTR, 1)
                actions.append(Update(key=pending_key(key, group, item.id), expression=entry))

            check_deadline(deadline)
            try:
                self.store.transact_write(actions)
            except ConditionNotMet:
                metrics.track_condition_failure("xreadgroup")
                logger.debug(
                    "XREADGROUP %s %s lost cursor race for %s (attempt %d)",
                    key, group, item.id, attempt + 1,
                )
                continue

            metrics.track_delivery(mode.value)
            return [item]

        metrics.track_contention_exhausted("xreadgroup")
        raise ContentionExhausted(
            f"XREADGROUP {key} {group}: cursor contended for {self.attempts} attempts"
        )

    def _read_pending(
        self,
        key: str,
        group: str,
        consumer: str,
        count: int,
        deadline: Optional[Deadline],
    ) -> List[StreamItem]:
        # Skipped entries do not count toward count; the ledger is paged
        # until count items are delivered or it runs out.
        items: List[StreamItem] = []
        try:
            for entry in self._iter_pending(key, group, count, deadline, consumer=consumer):
                check_deadline(deadline)
                found = self.ranges.xrange(key, entry.id, entry.id, 1, deadline=deadline)
                if not found:
                    logger.warning(
                        "Pending entry %s in group %s references a deleted item of stream %s",
                        entry.id, group, key,
                    )
                    continue

                bump = ExpressionBuilder()
                bump.condition_compare(CONSUMER_ATTR, "=", consumer)
                bump.set(LAST_DELIVERED_ATTR, self.clock.now())
                bump.add(DELIVERY_COUNT_ATTR, 1)
                try:
                    self.store.update_item(pending_key(key, group, entry.id), bump)
                except ConditionNotMet:
                    # Claimed by another consumer since the scan
                    metrics.track_condition_failure("xreadgroup")
                    continue

                items.append(found[0])
                if len(items) >= count:
                    break
        except StreamError as e:
            raise PartialBatchFailure(
                f"XREADGROUP {key} {group} PENDING stopped after {len(items)} items: {e}",
                partial=items,
            ) from e

        metrics.track_delivery(ReadMode.PENDING.value, len(items))
        return items

    def _iter_pending(
        self,
        key: str,
        group: str,
        page_size: int,
        deadline: Optional[Deadline],
        consumer: Optional[str] = None,
    ) -> Iterator[PendingItem]:
        """Pending entries oldest ID first, fetched one page at a time."""
        cursor = None
        filter_equals = {CONSUMER_ATTR: consumer} if consumer is not None else None

        while True:
            check_deadline(deadline)
            page = self.store.query(
                group_partition(key, group),
                str(XSTART),
                str(XEND),
                limit=page_size,
                cursor=cursor,
                filter_equals=filter_equals,
            )
            for record in page.records:
                yield PendingItem.from_record(record)
            cursor = page.cursor
            if cursor is None:
                return

    def _scan_pending(
        self,
        key: str,
        group: str,
        count: int,
        deadline: Optional[Deadline],
        consumer: Optional[str] = None,
    ) -> List[PendingItem]:
        entries = self._iter_pending(key, group, count, deadline, consumer=consumer)
        return list(islice(entries, count))

    def xack(
        self,
        key: str,
        group: str,
        *ids: XID,
        deadline: Optional[Deadline] = None,
    ) -> List[XID]:
        """
        Acknowledge items, removing their pending entries.

        Returns:
            IDs that had a pending entry, in argument order. Unknown or
            already-acknowledged IDs are left out.

        Raises:
            PartialBatchFailure: .partial holds the IDs acknowledged so far
        """
        acked: List[XID] = []
        for xid in ids:
            try:
                check_deadline(deadline)
                old = self.store.delete_item(pending_key(key, group, xid))
            except StreamError as e:
                raise PartialBatchFailure(
                    f"XACK {key} {group} stopped after {len(acked)} of {len(ids)} IDs: {e}",
                    partial=acked,
                ) from e
            if old is not None:
                acked.append(XID(xid))
        return acked

    def xclaim(
        self,
        key: str,
        group: str,
        consumer: str,
        before: datetime,
        *ids: XID,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """
        Reassign stale pending entries to consumer.

        An entry is claimed only if it exists and was last delivered at or
        before `before`. Claiming resets its delivery count to 0 and its
        timestamp to now. IDs that do not qualify are skipped silently.

        Returns:
            Stream items for the claimed IDs

        Raises:
            PartialBatchFailure: A store call failed, or a claimed entry's
                stream item could not be fetched; .partial holds the items
                claimed before that
        """
        threshold = unix_seconds(before)
        claimed: List[StreamItem] = []

        for xid in ids:
            expression = ExpressionBuilder()
            expression.condition_exists(CONSUMER_ATTR)
            expression.condition_compare(LAST_DELIVERED_ATTR, "<=", threshold)
            expression.set(LAST_DELIVERED_ATTR, self.clock.now())
            expression.set(DELIVERY_COUNT_ATTR, 0)
            expression.set(CONSUMER_ATTR, consumer)

            try:
                check_deadline(deadline)
                self.store.update_item(pending_key(key, group, xid), expression)
                found = self.ranges.xrange(key, xid, xid, 1, deadline=deadline)
            except ConditionNotMet:
                continue
            except StreamError as e:
                raise PartialBatchFailure(
                    f"XCLAIM {key} {group} stopped at {xid}: {e}",
                    partial=claimed,
                ) from e

            if not found:
                raise PartialBatchFailure(
                    f"XCLAIM {key} {group}: claimed {xid} but the stream item no longer exists",
                    partial=claimed,
                )
            claimed.append(found[0])

        if claimed:
            logger.debug("XCLAIM %s %s: %d entries to %s", key, group, len(claimed), consumer)
        return claimed

    def xpending(
        self,
        key: str,
        group: str,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[PendingItem]:
        """Up to count pending entries of the group, any consumer, oldest ID first."""
        if count < 1:
            return []
        return self._scan_pending(key, group, count, deadline)
