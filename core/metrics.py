# core/metrics.py

import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# ----------------------------
# Request Counters
# ----------------------------

STREAM_REQUESTS = Counter(
    "gateway_stream_requests_total",
    "Total streaming generation requests",
    ["status"]  # started, success, error, unavailable, cancelled
)

SUBTASK_REQUESTS = Counter(
    "gateway_subtask_requests_total",
    "Total subtask generation requests",
    ["status"]  # success, unavailable, malformed, error
)

UPSTREAM_ERRORS = Counter(
    "gateway_upstream_errors_total",
    "Classified upstream failures",
    ["kind"]
)

# ----------------------------
# Latency Histograms
# ----------------------------

UPSTREAM_LATENCY = Histogram(
    "gateway_upstream_latency_seconds",
    "Upstream call latency, first byte to completion",
    ["operation"]
)


# ----------------------------
# Stream Metric Helper Functions
# ----------------------------

def record_stream_start() -> None:
    """Record the start of a streaming request."""
    STREAM_REQUESTS.labels(status="started").inc()


def record_stream_end(status: str, duration_sec: float | None = None) -> None:
    """Record how a streaming request ended, with its duration when a call was made."""
    STREAM_REQUESTS.labels(status=status).inc()
    if duration_sec is not None:
        UPSTREAM_LATENCY.labels(operation="generate_stream").observe(duration_sec)


# ----------------------------
# Subtask Metric Helper Functions
# ----------------------------

def record_subtask_result(status: str, duration_sec: float | None = None) -> None:
    SUBTASK_REQUESTS.labels(status=status).inc()
    if duration_sec is not None:
        UPSTREAM_LATENCY.labels(operation="generate_subtasks").observe(duration_sec)


def record_upstream_error(kind: str) -> None:
    UPSTREAM_ERRORS.labels(kind=kind).inc()
