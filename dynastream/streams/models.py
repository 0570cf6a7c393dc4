"""
Stream data model.

Stream items are immutable once written. Pending items are the per-group
delivery ledger: who received an item, when, and how many times.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ..core.xid import XID, XSTART
from ..store.base import Record
from .keys import (
    CONSUMER_ATTR,
    DELIVERY_COUNT_ATTR,
    FIELD_PREFIX,
    LAST_DELIVERED_ATTR,
)


class ReadMode(str, Enum):
    """XREADGROUP modes."""

    # Redeliver this consumer's unacknowledged items
    PENDING = "PENDING"
    # Deliver the next undelivered item and track it as pending
    READ_NEW = "READ_NEW"
    # Deliver the next undelivered item without tracking it
    READ_NEW_NO_ACK = "READ_NEW_NO_ACK"


@dataclass(frozen=True)
class StreamItem:
    """
    One stream entry.

    Fields:
        id: Item XID
        fields: Caller fields (strings / integers / bytes)
    """
    id: XID
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_attributes(self) -> Dict[str, Any]:
        """Caller fields with the field prefix, ready to store."""
        return {FIELD_PREFIX + name: value for name, value in self.fields.items()}

    @classmethod
    def from_record(cls, record: Record) -> "StreamItem":
        fields = {
            name[len(FIELD_PREFIX):]: value
            for name, value in record.attributes.items()
            if name.startswith(FIELD_PREFIX)
        }
        return cls(id=XID(record.key.sk), fields=fields)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": str(self.id), "fields": dict(self.fields)}


@dataclass(frozen=True)
class PendingItem:
    """
    Pending-entry ledger row.

    Fields:
        id: XID of the delivered stream item
        consumer: Consumer currently owning the delivery
        last_delivered: Time of the last (re)delivery or claim, UTC
        delivery_count: Deliveries to the current owner (reset to 0 by claim)
    """
    id: XID
    consumer: str
    last_delivered: datetime
    delivery_count: int

    @classmethod
    def from_record(cls, record: Record) -> "PendingItem":
        attrs = record.attributes
        return cls(
            id=XID(record.key.sk),
            consumer=str(attrs.get(CONSUMER_ATTR, "")),
            last_delivered=datetime.fromtimestamp(
                int(attrs.get(LAST_DELIVERED_ATTR, 0)), tz=timezone.utc
            ),
            delivery_count=int(attrs.get(DELIVERY_COUNT_ATTR, 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "consumer": self.consumer,
            "last_delivered": self.last_delivered.isoformat(),
            "delivery_count": self.delivery_count,
        }


@dataclass(frozen=True)
class StreamInfo:
    """
    Stream summary (XINFO).

    Fields:
        last_id: Highest XID ever admitted (watermark), XSTART if never written
        length: Number of items currently stored
        last_sequence: Last value minted by the sequence generator (0 if unused)
    """
    last_id: XID = XSTART
    length: int = 0
    last_sequence: int = 0
    exists: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_id": str(self.last_id),
            "length": self.length,
            "last_sequence": self.last_sequence,
            "exists": self.exists,
        }


def unix_seconds(ts: Optional[datetime]) -> int:
    """Unix seconds for a datetime; naive datetimes are taken as UTC."""
    if ts is None:
        return 0
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return int(ts.timestamp())
