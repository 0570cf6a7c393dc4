"""
Deletion: XDEL and XTRIM.

Deletes are per ID and not atomic across a batch. When a batch stops early,
PartialBatchFailure reports what was already removed.

Deleting stream items never touches consumer-group pending ledgers. A pending
entry may outlive the item it refers to; group reads skip such entries and
XCLAIM reports them as a failure.
"""

import logging
from typing import List, Optional

from ..core.clock import Deadline, check_deadline
from ..core.errors import PartialBatchFailure, StreamError
from ..core.xid import XEND, XID, XSTART
from ..store.base import KeyedStore
from .keys import item_key

logger = logging.getLogger(__name__)


class Trimmer:
    """Removes stream items by ID or by retention count."""

    def __init__(self, store: KeyedStore) -> None:
        self.store = store

    def xdel(self, key: str, *ids: XID, deadline: Optional[Deadline] = None) -> List[XID]:
        """
        Delete the given IDs from the stream.

        Returns:
            IDs that existed and were deleted, in argument order

        Raises:
            PartialBatchFailure: A delete failed or the deadline passed;
                .partial holds the IDs deleted before that
        """
        deleted: List[XID] = []
        for xid in ids:
            try:
                check_deadline(deadline)
                old = self.store.delete_item(item_key(key, xid))
            except StreamError as e:
                raise PartialBatchFailure(
                    f"XDEL {key} stopped after {len(deleted)} of {len(ids)} IDs: {e}",
                    partial=deleted,
                ) from e
            if old is not None:
                deleted.append(XID(xid))
        return deleted

    def xtrim(self, key: str, new_count: int, deadline: Optional[Deadline] = None) -> int:
        """
        Trim the stream to its newest new_count items.

        Scans newest-first, keeps the first new_count IDs seen and deletes the
        rest. Not snapshot-isolated: an item appended while a long trim runs
        may land on either side.

        Returns:
            Number of items deleted

        Raises:
            PartialBatchFailure: .partial is the number deleted before the stop
        """
        if new_count < 0:
            raise ValueError(f"new_count must be >= 0, got {new_count}")

        to_delete: List[XID] = []
        kept = 0
        cursor = None

        while True:
            check_deadline(deadline)
            page = self.store.query(
                key, str(XSTART), str(XEND), forward=False, cursor=cursor, keys_only=True
            )
            for record in page.records:
                if kept < new_count:
                    kept += 1
                else:
                    to_delete.append(XID(record.key.sk))
            cursor = page.cursor
            if cursor is None:
                break

        if not to_delete:
            return 0

        try:
            deleted = self.xdel(key, *to_delete, deadline=deadline)
        except PartialBatchFailure as e:
            raise PartialBatchFailure(str(e), partial=len(e.partial)) from e.__cause__

        logger.debug("XTRIM %s kept %d, deleted %d", key, kept, len(deleted))
        return len(deleted)
