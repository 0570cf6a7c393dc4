"""
Append engine: XADD.

Admission is one transaction of two writes:
- put the new stream item (unconditional)
- raise the stream's watermark to the new ID, conditioned on stored < new

The watermark record is created lazily. A brand-new stream fails the
condition because no watermark exists yet, so the first failure triggers an
idempotent initialization to XSTART and the append is retried. Later failures
mean the ID was not greater than the watermark, either because the caller
passed a stale explicit ID or because another writer got there first.
"""

import logging
from typing import Any, Dict, Optional

from .. import metrics
from ..core.clock import Deadline, SystemClock, check_deadline
from ..core.errors import AppendRejected, ConditionNotMet
from ..core.xid import XAUTO, XID, XSTART
from ..store.base import KeyedStore, Put, Update
from ..store.expressions import ExpressionBuilder
from .keys import VALUE_ATTR, item_key, watermark_key
from .models import StreamItem
from .sequence import SequenceGenerator

logger = logging.getLogger(__name__)


class Appender:
    """
    Admits items to streams.

    Guarantees:
    - Append-only: items are never updated in place
    - Monotonic: every admitted ID is greater than all earlier IDs in the stream
    """

    def __init__(
        self,
        store: KeyedStore,
        sequences: SequenceGenerator,
        clock: Any = None,
        retries: int = 1,
    ) -> None:
        """
        Args:
            store: Keyed store
            sequences: Sequence generator for auto-assigned IDs
            clock: Time source with now() -> unix seconds (default: system clock)
            retries: Attempts after the first
        """
        self.store = store
        self.sequences = sequences
        self.clock = clock or SystemClock()
        self.retries = retries

    def _watermark_action(self, key: str, xid: XID) -> Update:
        expression = ExpressionBuilder()
        expression.condition_compare(VALUE_ATTR, "<", str(xid))
        expression.set(VALUE_ATTR, str(xid))
        return Update(key=watermark_key(key), expression=expression)

    def init_watermark(self, key: str) -> bool:
        """
        Create the stream's watermark at XSTART if it does not exist.

        Returns:
            True if created, False if it already existed
        """
        expression = ExpressionBuilder()
        expression.condition_not_exists(VALUE_ATTR)
        expression.set(VALUE_ATTR, str(XSTART))
        try:
            self.store.update_item(watermark_key(key), expression)
        except ConditionNotMet:
            return False
        logger.debug("Initialized watermark for stream %s", key)
        return True

    def xadd(
        self,
        key: str,
        xid: XID,
        fields: Dict[str, Any],
        deadline: Optional[Deadline] = None,
    ) -> XID:
        """
        Append fields to the stream at key, creating the stream if needed.

        Pass XAUTO to have an ID assigned from the current time and the
        stream's sequence generator. An explicit ID must be greater than every
        ID already admitted; the stream only moves forward, which is what
        makes xread-from-last-ID resumption safe.

        Args:
            key: Stream key
            xid: Explicit XID or XAUTO
            fields: Field map (str -> str/int/bytes)
            deadline: Optional deadline

        Returns:
            The admitted XID

        Raises:
            AppendRejected: ID not greater than the watermark, or retries lost
            InvalidXID: Explicit ID not in canonical form
            TransportFailure: Store failure
        """
        if xid == XAUTO:
            check_deadline(deadline)
            xid = XID.from_parts(self.clock.now(), self.sequences.next(key, deadline=deadline))
        else:
            xid = XID.parse(xid)

        item = StreamItem(id=xid, fields=dict(fields))
        actions = [
            Put(key=item_key(key, xid), attributes=item.to_attributes()),
            self._watermark_action(key, xid),
        ]

        for attempt in range(self.retries + 1):
            check_deadline(deadline)
            try:
                self.store.transact_write(actions)
            except ConditionNotMet:
                metrics.track_condition_failure("xadd")
                if attempt == 0:
                    # The stream may not have a watermark yet
                    self.init_watermark(key)
                logger.debug("XADD %s %s lost watermark race (attempt %d)", key, xid, attempt + 1)
                continue
            metrics.track_append()
            return xid

        metrics.track_contention_exhausted("xadd")
        raise AppendRejected(
            f"could not append {xid} to {key}: ID must be greater than the stream's last ID"
        )
