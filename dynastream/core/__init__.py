"""
Core stream primitives.

- XID: fixed-width, lexicographically ordered stream item IDs
- Codec: Python value <-> DynamoDB attribute value
- Clock/Deadline: injectable time source and cancellation signal
- Errors: exception taxonomy
"""

from .xid import XID, XSTART, XEND, XAUTO, encode, decode, successor
from .codec import to_attribute, from_attribute
from .clock import SystemClock, ManualClock, Deadline
from .errors import (
    StreamError,
    TransportFailure,
    ConditionNotMet,
    GroupNotInitialized,
    ContentionExhausted,
    AppendRejected,
    PartialBatchFailure,
    DeadlineExceeded,
    InvalidXID,
    TransactionTooLarge,
)

__all__ = [
    "XID",
    "XSTART",
    "XEND",
    "XAUTO",
    "encode",
    "decode",
    "successor",
    "to_attribute",
    "from_attribute",
    "SystemClock",
    "ManualClock",
    "Deadline",
    "StreamError",
    "TransportFailure",
    "ConditionNotMet",
    "GroupNotInitialized",
    "ContentionExhausted",
    "AppendRejected",
    "PartialBatchFailure",
    "DeadlineExceeded",
    "InvalidXID",
    "TransactionTooLarge",
]
