"""
Tests for XTRIM and XDEL.

Test coverage:
- Trim boundaries (0, >= length, in between)
- XDEL reports only IDs that existed
- Deleting items leaves pending entries alone
- Partial results when a batch stops early
"""

import pytest

from dynastream.core.clock import Deadline
from dynastream.core.errors import PartialBatchFailure, TransportFailure
from dynastream.core.xid import XAUTO, XEND, XID, XSTART
from dynastream.streams.models import ReadMode


def _fill(client, key, count):
    return [client.xadd(key, XAUTO, {"i": i}) for i in range(count)]


def test_trim_to_zero_deletes_everything(client):
    _fill(client, "s", 5)

    assert client.xtrim("s", 0) == 5
    assert client.xlen("s") == 0


def test_trim_at_or_above_length_deletes_nothing(client):
    ids = _fill(client, "s", 4)

    assert client.xtrim("s", 4) == 0
    assert client.xtrim("s", 100) == 0
    assert [item.id for item in client.xrange("s", XSTART, XEND, 10)] == ids


def test_trim_keeps_newest(client):
    ids = _fill(client, "s", 7)

    assert client.xtrim("s", 3) == 4
    assert [item.id for item in client.xrange("s", XSTART, XEND, 10)] == ids[-3:]


def test_trim_empty_stream(client):
    assert client.xtrim("nothing", 0) == 0


def test_trim_rejects_negative_count(client):
    with pytest.raises(ValueError):
        client.xtrim("s", -1)


def test_trim_keeps_appending_possible(client):
    """The watermark survives a full trim, so IDs keep increasing."""
    ids = _fill(client, "s", 3)
    client.xtrim("s", 0)

    new_id = client.xadd("s", XAUTO, {"i": "after"})

    assert new_id > ids[-1]


def test_xdel_reports_only_existing(client):
    ids = _fill(client, "s", 3)
    missing = XID.from_parts(1, 1)

    deleted = client.xdel("s", ids[0], missing, ids[2])

    assert deleted == [ids[0], ids[2]]
    assert [item.id for item in client.xrange("s", XSTART, XEND, 10)] == [ids[1]]
    assert client.xdel("s", ids[0]) == []


def test_xdel_does_not_cascade_to_pending(client):
    """A pending entry outlives the stream item it references."""
    ids = _fill(client, "s", 2)
    client.xgroup("s", "g", XSTART)
    delivered = client.xreadgroup("s", "g", "c1", ReadMode.READ_NEW, 1)
    assert [item.id for item in delivered] == [ids[0]]

    assert client.xdel("s", ids[0]) == [ids[0]]

    pending = client.xpending("s", "g", 10)
    assert [entry.id for entry in pending] == [ids[0]]

    # PENDING mode skips the orphaned entry instead of failing
    assert client.xreadgroup("s", "g", "c1", ReadMode.PENDING, 10) == []


def test_xtrim_does_not_cascade_to_pending(client):
    ids = _fill(client, "s", 3)
    client.xgroup("s", "g", XSTART)
    client.xreadgroup("s", "g", "c1", ReadMode.READ_NEW, 1)

    client.xtrim("s", 0)

    assert [entry.id for entry in client.xpending("s", "g", 10)] == [ids[0]]


def test_xdel_partial_on_store_failure(client, store, monkeypatch):
    """A failing delete stops the loop and reports what was already deleted."""
    ids = _fill(client, "s", 3)
    original = store.delete_item
    calls = []

    def failing(key):
        calls.append(key)
        if len(calls) == 2:
            raise TransportFailure("DeleteItem failed (code: InternalServerError)")
        return original(key)

    monkeypatch.setattr(store, "delete_item", failing)

    with pytest.raises(PartialBatchFailure) as excinfo:
        client.xdel("s", *ids)

    assert excinfo.value.partial == [ids[0]]
    assert isinstance(excinfo.value.__cause__, TransportFailure)
    assert len(calls) == 2


def test_xdel_partial_on_cancel(client):
    ids = _fill(client, "s", 2)
    deadline = Deadline()
    deadline.cancel()

    with pytest.raises(PartialBatchFailure) as excinfo:
        client.xdel("s", *ids, deadline=deadline)

    assert excinfo.value.partial == []
    assert client.xlen("s") == 2


def test_xtrim_partial_reports_count(client, store, monkeypatch):
    _fill(client, "s", 5)
    original = store.delete_item
    calls = []

    def failing(key):
        calls.append(key)
        if len(calls) == 3:
            raise TransportFailure("DeleteItem failed (code: ThrottlingException)")
        return original(key)

    monkeypatch.setattr(store, "delete_item", failing)

    with pytest.raises(PartialBatchFailure) as excinfo:
        client.xtrim("s", 1)

    assert excinfo.value.partial == 2
    assert isinstance(excinfo.value.__cause__, TransportFailure)
    assert client.xlen("s") == 3
