"""
Prometheus metrics for QuickChat.

This module provides:
- HTTP request counter (method, path, status)
- Request latency histogram (method, path)
- Message outcome counter (result)
- Persistence outcome counter (result)
- Message action counter (action)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# Using default buckets: .005, .01, .025, .05, .075, .1, .25, .5, .75, 1.0, 2.5, 5.0, 7.5, 10.0
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)

# result: accepted, oversized_body, invalid_recipient, invalid_identifier
message_outcomes_total = Counter(
    "message_outcomes_total",
    "Total message construction outcomes",
    labelnames=["result"]
)

# result: ok, failed
persist_outcomes_total = Counter(
    "persist_outcomes_total",
    "Total message store append outcomes",
    labelnames=["result"]
)

# action: Send, Store, Disregard
message_actions_total = Counter(
    "message_actions_total",
    "Total actions chosen for accepted messages",
    labelnames=["action"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    # Normalize path to avoid high-cardinality labels
    normalized_path = path.split("?")[0]

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_message_outcome(result: str) -> None:
    """
    Record a message construction outcome.

    Args:
        result: "accepted" or the rejection reason value
    """
    message_outcomes_total.labels(result=result).inc()


def record_persist_outcome(success: bool) -> None:
    """Record whether an append to the message store succeeded."""
    persist_outcomes_total.labels(result="ok" if success else "failed").inc()


def record_message_action(action: str) -> None:
    """Record the action chosen for a message."""
    message_actions_total.labels(action=action).inc()


def get_metrics() -> bytes:
    """
    Generate Prometheus exposition format metrics.

    Returns:
        Metrics in Prometheus text format as bytes
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    """
    Get the content type for Prometheus metrics.

    Returns:
        Content type string for Prometheus exposition format
    """
    return CONTENT_TYPE_LATEST
