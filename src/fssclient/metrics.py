"""Prometheus metrics definitions for the FSS client.

All metrics use the ``fss_client_`` prefix. Collectors are only registered
in the global registry once :func:`init_metrics` has been called; until
then the recording helpers are no-ops.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Operation counter  (labels: operation, status)
# ---------------------------------------------------------------------------
operations_total: Counter | None = None

# ---------------------------------------------------------------------------
# Byte counters
# ---------------------------------------------------------------------------
bytes_uploaded_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics. Safe to call repeatedly."""
    global _initialized
    global operations_total, bytes_uploaded_total

    if _initialized:
        return

    operations_total = Counter(
        "fss_client_operations_total",
        "Total FSS client operations by type and outcome",
        ["operation", "status"],
    )

    bytes_uploaded_total = Counter(
        "fss_client_bytes_uploaded_total",
        "Total bytes uploaded from fully materialized buffers",
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    """Count one finished operation (``status`` is ``success`` or ``error``)."""
    if operations_total is not None:
        operations_total.labels(operation=operation, status=status).inc()


def record_upload(size: int | None) -> None:
    """Count uploaded bytes when the payload size is known."""
    if bytes_uploaded_total is not None and size:
        bytes_uploaded_total.inc(size)
