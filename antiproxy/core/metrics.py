"""Prometheus metrics for the dispatcher."""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, Info, generate_latest
from starlette.responses import Response

# --- Metrics ---

APP_INFO = Info("antiproxy", "Anti-Proxy dispatcher info")
APP_INFO.info({"version": "1.0.0", "name": "antiproxy"})

DISPATCH_OUTCOMES = Counter(
    "antiproxy_dispatch_outcomes_total",
    "Terminal outcomes returned to callers",
    ["outcome"],
)

ENDPOINT_ATTEMPTS = Counter(
    "antiproxy_endpoint_attempts_total",
    "Upstream endpoint attempts by classification",
    ["position", "result"],
)

DISPATCH_DURATION = Histogram(
    "antiproxy_dispatch_duration_seconds",
    "Duration of a dispatch sequence, gate wait excluded",
    buckets=[0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300, 600],
)

RATE_LIMIT_WAIT = Histogram(
    "antiproxy_rate_limit_wait_seconds",
    "Time spent waiting for the minimum request interval",
    buckets=[0.0, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5],
)


def metrics_response() -> Response:
    """Render all registered metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
