"""
Prometheus metrics for stream operations.

Counters stay inert until init_metrics() runs, so library users who never
export metrics pay nothing beyond a None check.

Environment Variables:
    DYNASTREAM_METRICS_PORT: HTTP port for the /metrics endpoint (CLI only) - default: unset (disabled)

Usage:
    from dynastream.metrics import init_metrics, start_metrics_server

    init_metrics()
    start_metrics_server(port=9100)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

APPENDS_TOTAL: Optional[Counter] = None
CONDITION_FAILURES_TOTAL: Optional[Counter] = None
CONTENTION_EXHAUSTED_TOTAL: Optional[Counter] = None
GROUP_DELIVERIES_TOTAL: Optional[Counter] = None
OPERATION_DURATION: Optional[Histogram] = None

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics() -> None:
    """
    Initialize Prometheus metrics (call once at startup).

    Thread-safe via module-level lock; repeated calls are no-ops.
    """
    global APPENDS_TOTAL, CONDITION_FAILURES_TOTAL, CONTENTION_EXHAUSTED_TOTAL
    global GROUP_DELIVERIES_TOTAL, OPERATION_DURATION, _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        APPENDS_TOTAL = Counter(
            "dynastream_appends_total",
            "Total number of items admitted by XADD",
        )

        # Lost optimistic-concurrency races (labels: operation)
        CONDITION_FAILURES_TOTAL = Counter(
            "dynastream_condition_failures_total",
            "Total number of conditional writes rejected by the store",
            labelnames=["operation"],
        )

        CONTENTION_EXHAUSTED_TOTAL = Counter(
            "dynastream_contention_exhausted_total",
            "Total number of operations that ran out of retries",
            labelnames=["operation"],
        )

        GROUP_DELIVERIES_TOTAL = Counter(
            "dynastream_group_deliveries_total",
            "Total number of items delivered through consumer groups",
            labelnames=["mode"],
        )

        OPERATION_DURATION = Histogram(
            "dynastream_operation_duration_seconds",
            "Duration of stream operations in seconds",
            labelnames=["operation"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def start_metrics_server(port: int) -> None:
    """
    Start Prometheus metrics HTTP server in a background daemon thread.

    Args:
        port: HTTP port for /metrics endpoint
    """
    init_metrics()
    start_http_server(port, addr="0.0.0.0")
    logger.info("Metrics server started on http://0.0.0.0:%d/metrics", port)


def track_append() -> None:
    if APPENDS_TOTAL is not None:
        APPENDS_TOTAL.inc()


def track_condition_failure(operation: str) -> None:
    if CONDITION_FAILURES_TOTAL is not None:
        CONDITION_FAILURES_TOTAL.labels(operation=operation).inc()


def track_contention_exhausted(operation: str) -> None:
    if CONTENTION_EXHAUSTED_TOTAL is not None:
        CONTENTION_EXHAUSTED_TOTAL.labels(operation=operation).inc()


def track_delivery(mode: str, count: int = 1) -> None:
    if GROUP_DELIVERIES_TOTAL is not None and count:
        GROUP_DELIVERIES_TOTAL.labels(mode=mode).inc(count)


@contextmanager
def track_duration(operation: str) -> Generator[None, None, None]:
    """
    Context manager for tracking operation duration.

    Usage:
        with track_duration("xtrim"):
            ...
    """
    if OPERATION_DURATION is None:
        yield
        return

    with OPERATION_DURATION.labels(operation=operation).time():
        yield
