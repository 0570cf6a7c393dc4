"""
Stream item identifiers.

An XID is a (timestamp, sequence) pair rendered as two 20-digit zero-padded
decimal fields joined by "-". Fixed width makes plain string comparison agree
with pair ordering, so the store's sorted key space orders stream items
chronologically without parsing.

Example:
    00000000001700000000-00000000000000000042
"""

from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from .errors import InvalidXID

FIELD_WIDTH = 20
SEPARATOR = "-"
MAX_FIELD = 10 ** FIELD_WIDTH - 1


def encode(timestamp: int, sequence: int) -> str:
    """
    Encode a (timestamp, sequence) pair into canonical XID form.

    Args:
        timestamp: Unix time in seconds
        sequence: Sequence number within the second

    Returns:
        Canonical XID string

    Raises:
        InvalidXID: If either field is negative or wider than 20 digits
    """
    for name, value in (("timestamp", timestamp), ("sequence", sequence)):
        if value < 0 or value > MAX_FIELD:
            raise InvalidXID(f"{name} out of range: {value}")
    return f"{timestamp:020d}{SEPARATOR}{sequence:020d}"


def decode(raw: str) -> Tuple[int, int]:
    """
    Decode a canonical XID string.

    Args:
        raw: XID string

    Returns:
        (timestamp, sequence) tuple

    Raises:
        InvalidXID: If raw is not exactly two 20-digit fields joined by "-"
    """
    parts = raw.split(SEPARATOR)
    if len(parts) != 2:
        raise InvalidXID(f"not a canonical XID: {raw!r}")
    for part in parts:
        if len(part) != FIELD_WIDTH or not part.isdigit() or not part.isascii():
            raise InvalidXID(f"not a canonical XID: {raw!r}")
    return int(parts[0]), int(parts[1])


class XID(str):
    """
    Stream item ID.

    Most callers never build XIDs: pass XAUTO to xadd and the stream assigns
    one. To query a time window, use XID.from_time(start).first() and
    XID.from_time(end).last(). last() matters for the upper bound: a bare
    time XID has sequence 0 and would exclude every item in the final second.
    """

    __slots__ = ()

    @classmethod
    def from_parts(cls, timestamp: int, sequence: int) -> "XID":
        return cls(encode(timestamp, sequence))

    @classmethod
    def from_time(cls, ts: Union[datetime, int, float]) -> "XID":
        """XID at the given time with sequence 0."""
        if isinstance(ts, datetime):
            ts = ts.timestamp()
        return cls.from_parts(int(ts), 0)

    @classmethod
    def parse(cls, raw: str) -> "XID":
        """Validate raw as a canonical XID and return it."""
        decode(raw)
        return cls(raw)

    @property
    def timestamp(self) -> int:
        return decode(self)[0]

    @property
    def sequence(self) -> int:
        return decode(self)[1]

    @property
    def time(self) -> datetime:
        """Timestamp as an aware UTC datetime (one second resolution)."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    def next(self) -> "XID":
        """Next sequence number at the same timestamp."""
        ts, seq = decode(self)
        return XID.from_parts(ts, seq + 1)

    def prev(self) -> "XID":
        """Previous sequence number at the same timestamp, floored at sequence 1."""
        ts, seq = decode(self)
        if seq <= 1:
            return self
        return XID.from_parts(ts, seq - 1)

    def first(self) -> "XID":
        """Smallest XID at this timestamp. Use as a range start."""
        return XID.from_parts(self.timestamp, 0)

    def last(self) -> "XID":
        """Largest XID at this timestamp. Use as an inclusive range end."""
        return XID.from_parts(self.timestamp, MAX_FIELD)

    def __repr__(self) -> str:
        return f"XID({str.__repr__(self)})"


XSTART = XID(encode(0, 0))
XEND = XID(encode(MAX_FIELD, MAX_FIELD))
XAUTO = XID("*")


def successor(xid: str) -> Optional[XID]:
    """
    Smallest XID strictly greater than xid, or None for XEND.

    Unlike XID.next(), rolls over into the following second when the sequence
    field is exhausted.
    """
    ts, seq = decode(xid)
    if seq < MAX_FIELD:
        return XID.from_parts(ts, seq + 1)
    if ts < MAX_FIELD:
        return XID.from_parts(ts + 1, 0)
    return None
