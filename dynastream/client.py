"""
StreamClient: the public entry point.

Wires the stream engines to one keyed store. The client holds no state of its
own beyond the store handle, so one instance can be shared across threads and
any number of clients, in any number of processes, can work the same table.

Example:
    from dynastream import StreamClient, ReadMode, XAUTO, XSTART

    client = StreamClient.from_config()
    client.xadd("orders", XAUTO, {"sku": "A-1", "qty": 2})

    client.xgroup("orders", "billing", XSTART)
    for item in client.xreadgroup("orders", "billing", "worker-1", ReadMode.READ_NEW, 1):
        ...
        client.xack("orders", "billing", item.id)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from . import metrics
from .config import RetryPolicy, StreamConfig
from .core.clock import Deadline, check_deadline
from .core.xid import XEND, XID, XSTART
from .store.base import KeyedStore
from .store.dynamodb import DynamoKeyedStore
from .streams.append import Appender
from .streams.groups import GroupCoordinator
from .streams.keys import VALUE_ATTR, sequence_key, watermark_key
from .streams.models import PendingItem, ReadMode, StreamInfo, StreamItem
from .streams.ranges import RangeReader
from .streams.sequence import SequenceGenerator
from .streams.trim import Trimmer


class StreamClient:
    """
    Stream and consumer-group operations on a keyed store.

    Every method accepts an optional keyword-only deadline (see Deadline).
    """

    def __init__(
        self,
        store: KeyedStore,
        retry: Optional[RetryPolicy] = None,
        clock: Any = None,
    ) -> None:
        """
        Args:
            store: Keyed store holding streams and groups
            retry: Retry budgets (default: RetryPolicy())
            clock: Time source with now() -> unix seconds (default: system clock)
        """
        self.store = store
        self.retry = retry or RetryPolicy()

        self._ranges = RangeReader(store)
        self._appender = Appender(
            store,
            SequenceGenerator(store),
            clock=clock,
            retries=self.retry.append_retries,
        )
        self._trimmer = Trimmer(store)
        self._groups = GroupCoordinator(
            store,
            self._ranges,
            clock=clock,
            attempts=self.retry.group_read_attempts,
        )

    @classmethod
    def from_config(cls, config: Optional[StreamConfig] = None, clock: Any = None) -> "StreamClient":
        """
        Build a client backed by DynamoDB.

        Args:
            config: Configuration (default: StreamConfig.from_env())
            clock: Optional time source
        """
        config = config or StreamConfig.from_env()
        store = DynamoKeyedStore(
            table=config.table,
            endpoint_url=config.endpoint_url,
            region=config.region,
            partition_key=config.partition_key,
            sort_key=config.sort_key,
            consistent_reads=config.consistent_reads,
            max_transaction_items=config.max_transaction_items,
        )
        return cls(store, retry=config.retry, clock=clock)

    # Streams

    def xadd(
        self,
        key: str,
        id: XID,
        fields: Dict[str, Any],
        deadline: Optional[Deadline] = None,
    ) -> XID:
        """Append an item; pass XAUTO as id to have one assigned."""
        with metrics.track_duration("xadd"):
            return self._appender.xadd(key, id, fields, deadline=deadline)

    def xread(
        self,
        key: str,
        from_id: XID,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """Up to count items strictly after from_id, oldest first."""
        with metrics.track_duration("xread"):
            return self._ranges.xread(key, from_id, count, deadline=deadline)

    def xrange(
        self,
        key: str,
        start: XID,
        stop: XID,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """Up to count items with start <= id <= stop, oldest first."""
        with metrics.track_duration("xrange"):
            return self._ranges.xrange(key, start, stop, count, deadline=deadline)

    def xrevrange(
        self,
        key: str,
        end: XID,
        start: XID,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """Up to count items with start <= id <= end, newest first."""
        with metrics.track_duration("xrevrange"):
            return self._ranges.xrevrange(key, end, start, count, deadline=deadline)

    def xlen(
        self,
        key: str,
        start: XID = XSTART,
        stop: XID = XEND,
        deadline: Optional[Deadline] = None,
    ) -> int:
        with metrics.track_duration("xlen"):
            return self._ranges.xlen(key, start, stop, deadline=deadline)

    def xtrim(self, key: str, new_count: int, deadline: Optional[Deadline] = None) -> int:
        """Keep the newest new_count items; returns how many were deleted."""
        with metrics.track_duration("xtrim"):
            return self._trimmer.xtrim(key, new_count, deadline=deadline)

    def xdel(self, key: str, *ids: XID, deadline: Optional[Deadline] = None) -> List[XID]:
        """Delete items by ID; returns the IDs that existed."""
        with metrics.track_duration("xdel"):
            return self._trimmer.xdel(key, *ids, deadline=deadline)

    def xinfo(self, key: str, deadline: Optional[Deadline] = None) -> StreamInfo:
        """
        Stream summary.

        The watermark and sequence counter are read as one snapshot; the
        length is counted separately and may include items appended since.
        """
        with metrics.track_duration("xinfo"):
            check_deadline(deadline)
            watermark, counter = self.store.transact_get([watermark_key(key), sequence_key(key)])
            length = self._ranges.xlen(key, deadline=deadline)

        last_id = XSTART
        if watermark is not None and VALUE_ATTR in watermark.attributes:
            last_id = XID(watermark.attributes[VALUE_ATTR])
        last_sequence = 0
        if counter is not None:
            last_sequence = int(counter.attributes.get(VALUE_ATTR, 0))

        return StreamInfo(
            last_id=last_id,
            length=length,
            last_sequence=last_sequence,
            exists=watermark is not None or length > 0,
        )

    # Consumer groups

    def xgroup(
        self,
        key: str,
        group: str,
        start: XID = XSTART,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """Create a group (or reset its cursor) delivering items after start."""
        with metrics.track_duration("xgroup"):
            self._groups.xgroup(key, group, start, deadline=deadline)

    def xreadgroup(
        self,
        key: str,
        group: str,
        consumer: str,
        mode: ReadMode,
        count: int = 1,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """Read through a consumer group (see ReadMode)."""
        with metrics.track_duration("xreadgroup"):
            return self._groups.xreadgroup(key, group, consumer, mode, count, deadline=deadline)

    def xack(self, key: str, group: str, *ids: XID, deadline: Optional[Deadline] = None) -> List[XID]:
        """Acknowledge items; returns the IDs that were pending."""
        with metrics.track_duration("xack"):
            return self._groups.xack(key, group, *ids, deadline=deadline)

    def xclaim(
        self,
        key: str,
        group: str,
        consumer: str,
        before: datetime,
        *ids: XID,
        deadline: Optional[Deadline] = None,
    ) -> List[StreamItem]:
        """Take over pending entries last delivered at or before `before`."""
        with metrics.track_duration("xclaim"):
            return self._groups.xclaim(key, group, consumer, before, *ids, deadline=deadline)

    def xpending(
        self,
        key: str,
        group: str,
        count: int,
        deadline: Optional[Deadline] = None,
    ) -> List[PendingItem]:
        """Up to count pending entries of the group, any consumer."""
        with metrics.track_duration("xpending"):
            return self._groups.xpending(key, group, count, deadline=deadline)
