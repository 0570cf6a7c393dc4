"""
dynastream

Redis-Streams-style ordered, replayable event logs with consumer groups,
built on a DynamoDB table.
"""

__version__ = "0.1.0"

from .core.xid import XID, XSTART, XEND, XAUTO
from .core.errors import (
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
from .core.clock import Deadline
from .streams.models import StreamItem, PendingItem, StreamInfo, ReadMode
from .config import StreamConfig, RetryPolicy
from .client import StreamClient

__all__ = [
    "XID",
    "XSTART",
    "XEND",
    "XAUTO",
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
    "Deadline",
    "StreamItem",
    "PendingItem",
    "StreamInfo",
    "ReadMode",
    "StreamConfig",
    "RetryPolicy",
    "StreamClient",
]
