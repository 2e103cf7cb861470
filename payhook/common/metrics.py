"""Prometheus metric definitions shared across services."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


webhook_requests_total = Counter(
    "webhook_requests_total",
    "Transaction webhook deliveries by outcome",
    ["service", "outcome"],
)
webhook_latency_seconds = Histogram(
    "webhook_latency_seconds",
    "Transaction webhook reconciliation latency seconds",
    ["service"],
)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
push_deliveries_total = Counter(
    "push_deliveries_total",
    "Push delivery attempts by outcome",
    ["service", "outcome"],
)
push_endpoints_pruned_total = Counter(
    "push_endpoints_pruned_total",
    "Push endpoints deleted after a permanent delivery failure",
    ["service"],
)
push_fanout_seconds = Histogram(
    "push_fanout_seconds",
    "Duration of one notification fan-out across all endpoints",
    ["service"],
)
abandoned_events_total = Counter(
    "abandoned_events_total",
    "Abandoned checkout events stored",
    ["service", "event_type"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
