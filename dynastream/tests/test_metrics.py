"""
Tests for Prometheus metrics wiring.
"""

import pytest
from prometheus_client import REGISTRY

from dynastream import metrics
from dynastream.core.errors import AppendRejected
from dynastream.core.xid import XAUTO, XID, XSTART
from dynastream.streams.models import ReadMode


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_init_metrics_is_idempotent():
    metrics.init_metrics()
    counter = metrics.APPENDS_TOTAL
    metrics.init_metrics()
    assert metrics.APPENDS_TOTAL is counter


def test_operations_are_counted(client):
    metrics.init_metrics()
    appends = _sample("dynastream_appends_total")
    rejected = _sample("dynastream_condition_failures_total", operation="xadd")
    exhausted = _sample("dynastream_contention_exhausted_total", operation="xadd")
    delivered = _sample("dynastream_group_deliveries_total", mode="READ_NEW")
    timed = _sample("dynastream_operation_duration_seconds_count", operation="xadd")

    xid = client.xadd("s", XAUTO, {"a": "1"})
    with pytest.raises(AppendRejected):
        client.xadd("s", XID(xid), {"a": "dup"})
    client.xgroup("s", "g", XSTART)
    client.xreadgroup("s", "g", "c1", ReadMode.READ_NEW, 1)

    assert _sample("dynastream_appends_total") == appends + 1
    # Lazy init on the first append, then two rejections of the duplicate
    assert _sample("dynastream_condition_failures_total", operation="xadd") == rejected + 3
    assert _sample("dynastream_contention_exhausted_total", operation="xadd") == exhausted + 1
    assert _sample("dynastream_group_deliveries_total", mode="READ_NEW") == delivered + 1
    assert _sample("dynastream_operation_duration_seconds_count", operation="xadd") == timed + 2


def test_trackers_are_noops_before_init(monkeypatch):
    monkeypatch.setattr(metrics, "APPENDS_TOTAL", None)
    monkeypatch.setattr(metrics, "OPERATION_DURATION", None)

    metrics.track_append()
    with metrics.track_duration("xadd"):
        pass
