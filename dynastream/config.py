"""
Configuration for dynastream clients.

All configuration comes from environment variables; there are no config files.

Environment Variables:
    DYNASTREAM_TABLE: DynamoDB table name - default: dynastream
    DYNASTREAM_ENDPOINT_URL: DynamoDB endpoint (DynamoDB Local, localstack) - default: AWS
    DYNASTREAM_REGION: AWS region - default: AWS_REGION, then us-east-1
    DYNASTREAM_PARTITION_KEY: Partition key attribute - default: pk
    DYNASTREAM_SORT_KEY: Sort key attribute - default: sk
    DYNASTREAM_CONSISTENT_READS: Strongly consistent reads (true/false) - default: true
    DYNASTREAM_MAX_TRANSACTION_ITEMS: Items per transaction - default: 25
    DYNASTREAM_APPEND_RETRIES: XADD retries after the first attempt - default: 1
    DYNASTREAM_GROUP_READ_ATTEMPTS: XREADGROUP attempts in new modes - default: 5
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


def _env_int(key: str, default: int, minimum: int = 0) -> int:
    val = os.getenv(key)
    if not val:
        return default
    try:
        parsed = int(val)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", key, val, default)
        return default
    if parsed < minimum:
        logger.warning("Ignoring %s=%d below minimum %d, using %d", key, parsed, minimum, default)
        return default
    return parsed


def _env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None or val == "":
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry budgets for optimistic-concurrency loops.

    Attributes:
        append_retries: XADD attempts after the first (the first failure also
            triggers lazy watermark initialization)
        group_read_attempts: Total XREADGROUP attempts in the new-item modes
    """

    append_retries: int = 1
    group_read_attempts: int = 5

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        """Load configuration from environment variables."""
        return cls(
            append_retries=_env_int("DYNASTREAM_APPEND_RETRIES", 1),
            group_read_attempts=_env_int("DYNASTREAM_GROUP_READ_ATTEMPTS", 5, minimum=1),
        )


@dataclass(frozen=True)
class StreamConfig:
    """
    Store and client configuration.

    Attributes:
        table: DynamoDB table name
        endpoint_url: Endpoint override (None = AWS)
        region: AWS region
        partition_key: Partition key attribute name
        sort_key: Sort key attribute name
        consistent_reads: Use strongly consistent reads
        max_transaction_items: Upper bound on items per transaction
        retry: Retry budgets
    """

    table: str = "dynastream"
    endpoint_url: Optional[str] = None
    region: str = "us-east-1"
    partition_key: str = "pk"
    sort_key: str = "sk"
    consistent_reads: bool = True
    max_transaction_items: int = 25
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_env(cls) -> "StreamConfig":
        """Load configuration from environment variables."""
        return cls(
            table=os.getenv("DYNASTREAM_TABLE", "dynastream"),
            endpoint_url=os.getenv("DYNASTREAM_ENDPOINT_URL") or None,
            region=os.getenv("DYNASTREAM_REGION") or os.getenv("AWS_REGION") or "us-east-1",
            partition_key=os.getenv("DYNASTREAM_PARTITION_KEY", "pk"),
            sort_key=os.getenv("DYNASTREAM_SORT_KEY", "sk"),
            consistent_reads=_env_bool("DYNASTREAM_CONSISTENT_READS", True),
            max_transaction_items=_env_int("DYNASTREAM_MAX_TRANSACTION_ITEMS", 25, minimum=2),
            retry=RetryPolicy.from_env(),
        )
