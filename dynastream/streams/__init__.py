"""
Stream engines.

- Appender: XADD with watermark-enforced monotonic IDs
- RangeReader: XRANGE / XREVRANGE / XREAD / XLEN
- Trimmer: XTRIM / XDEL
- GroupCoordinator: XGROUP / XREADGROUP / XACK / XCLAIM / XPENDING
"""

from .models import StreamItem, PendingItem, StreamInfo, ReadMode
from .sequence import SequenceGenerator
from .append import Appender
from .ranges import RangeReader
from .trim import Trimmer
from .groups import GroupCoordinator

__all__ = [
    "StreamItem",
    "PendingItem",
    "StreamInfo",
    "ReadMode",
    "SequenceGenerator",
    "Appender",
    "RangeReader",
    "Trimmer",
    "GroupCoordinator",
]
