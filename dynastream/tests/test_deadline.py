"""
Tests for deadlines and cancellation.
"""

from datetime import datetime, timezone

import pytest

from dynastream.core.clock import Deadline, ManualClock, check_deadline
from dynastream.core.errors import DeadlineExceeded, PartialBatchFailure
from dynastream.core.xid import XAUTO, XSTART
from dynastream.streams.models import ReadMode


def test_deadline_without_expiry_never_expires():
    deadline = Deadline()
    assert not deadline.expired()
    deadline.check()
    check_deadline(None)


def test_expired_deadline():
    deadline = Deadline.after(-1)
    assert deadline.expired()
    with pytest.raises(DeadlineExceeded):
        deadline.check()


def test_cancel():
    deadline = Deadline.after(3600)
    assert not deadline.cancelled
    deadline.cancel()
    assert deadline.cancelled
    assert deadline.expired()
    with pytest.raises(DeadlineExceeded, match="cancelled"):
        check_deadline(deadline)


def test_manual_clock():
    clock = ManualClock(current=10)
    assert clock.now() == 10
    assert clock.advance() == 11
    assert clock.advance(5) == 16
    assert clock.now() == 16


def test_expired_deadline_blocks_single_operations(client):
    """Single-shot operations raise DeadlineExceeded before touching the store."""
    expired = Deadline.after(-1)

    with pytest.raises(DeadlineExceeded):
        client.xadd("s", XAUTO, {"a": "1"}, deadline=expired)
    with pytest.raises(DeadlineExceeded):
        client.xrange("s", XSTART, XSTART, 1, deadline=expired)
    with pytest.raises(DeadlineExceeded):
        client.xgroup("s", "g", XSTART, deadline=expired)

    assert client.xlen("s") == 0


def test_cancel_mid_ack_reports_partial(client, store, monkeypatch):
    """Cancelling during XACK keeps the acks already applied."""
    ids = [client.xadd("s", XAUTO, {"i": i}) for i in range(3)]
    client.xgroup("s", "g", XSTART)
    for _ in ids:
        client.xreadgroup("s", "g", "c1", ReadMode.READ_NEW, 1)

    deadline = Deadline()
    original = store.delete_item

    def delete_then_cancel(key):
        result = original(key)
        deadline.cancel()
        return result

    monkeypatch.setattr(store, "delete_item", delete_then_cancel)

    with pytest.raises(PartialBatchFailure) as excinfo:
        client.xack("s", "g", *ids, deadline=deadline)

    assert excinfo.value.partial == [ids[0]]
    assert isinstance(excinfo.value.__cause__, DeadlineExceeded)
    assert [entry.id for entry in client.xpending("s", "g", 10)] == ids[1:]


def test_cancel_mid_claim_reports_partial(client, monkeypatch):
    ids = [client.xadd("s", XAUTO, {"i": i}) for i in range(2)]
    client.xgroup("s", "g", XSTART)
    for _ in ids:
        client.xreadgroup("s", "g", "c1", ReadMode.READ_NEW, 1)

    deadline = Deadline()
    ranges = client._groups.ranges
    original = ranges.xrange

    def fetch_then_cancel(*args, **kwargs):
        result = original(*args, **kwargs)
        deadline.cancel()
        return result

    monkeypatch.setattr(ranges, "xrange", fetch_then_cancel)

    before = datetime.now(timezone.utc)
    with pytest.raises(PartialBatchFailure) as excinfo:
        client.xclaim("s", "g", "c2", before, *ids, deadline=deadline)

    assert [item.id for item in excinfo.value.partial] == [ids[0]]
