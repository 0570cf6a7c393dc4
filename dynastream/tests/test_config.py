"""
Tests for environment-driven configuration.
"""

from dynastream.config import RetryPolicy, StreamConfig

ENV_KEYS = [
    "DYNASTREAM_TABLE",
    "DYNASTREAM_ENDPOINT_URL",
    "DYNASTREAM_REGION",
    "AWS_REGION",
    "DYNASTREAM_PARTITION_KEY",
    "DYNASTREAM_SORT_KEY",
    "DYNASTREAM_CONSISTENT_READS",
    "DYNASTREAM_MAX_TRANSACTION_ITEMS",
    "DYNASTREAM_APPEND_RETRIES",
    "DYNASTREAM_GROUP_READ_ATTEMPTS",
]


def _clear(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch):
    """With no environment set, defaults apply."""
    _clear(monkeypatch)
    config = StreamConfig.from_env()

    assert config.table == "dynastream"
    assert config.endpoint_url is None
    assert config.region == "us-east-1"
    assert config.partition_key == "pk"
    assert config.sort_key == "sk"
    assert config.consistent_reads is True
    assert config.max_transaction_items == 25
    assert config.retry == RetryPolicy(append_retries=1, group_read_attempts=5)


def test_overrides(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("DYNASTREAM_TABLE", "events")
    monkeypatch.setenv("DYNASTREAM_ENDPOINT_URL", "http://localhost:8000")
    monkeypatch.setenv("DYNASTREAM_REGION", "eu-west-1")
    monkeypatch.setenv("DYNASTREAM_CONSISTENT_READS", "false")
    monkeypatch.setenv("DYNASTREAM_APPEND_RETRIES", "3")
    monkeypatch.setenv("DYNASTREAM_GROUP_READ_ATTEMPTS", "10")

    config = StreamConfig.from_env()

    assert config.table == "events"
    assert config.endpoint_url == "http://localhost:8000"
    assert config.region == "eu-west-1"
    assert config.consistent_reads is False
    assert config.retry.append_retries == 3
    assert config.retry.group_read_attempts == 10


def test_region_falls_back_to_aws_region(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("AWS_REGION", "ap-south-1")
    assert StreamConfig.from_env().region == "ap-south-1"


def test_invalid_integers_fall_back(monkeypatch, caplog):
    """Malformed or out-of-range integers are ignored with a warning."""
    _clear(monkeypatch)
    monkeypatch.setenv("DYNASTREAM_APPEND_RETRIES", "many")
    monkeypatch.setenv("DYNASTREAM_GROUP_READ_ATTEMPTS", "0")

    with caplog.at_level("WARNING"):
        retry = RetryPolicy.from_env()

    assert retry.append_retries == 1
    assert retry.group_read_attempts == 5
    assert "DYNASTREAM_APPEND_RETRIES" in caplog.text
    assert "DYNASTREAM_GROUP_READ_ATTEMPTS" in caplog.text
