"""Prometheus metrics for remote calls and authentication."""

from prometheus_client import Counter, Histogram

# Remote service metrics
remote_latency_ms = Histogram(
    "remote_latency_ms",
    "Remote store call latency in milliseconds",
    ["operation", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000, 16000],
)

remote_errors_total = Counter(
    "remote_errors_total",
    "Total remote store call errors",
    ["operation", "reason"],
)

operation_polls_total = Counter(
    "operation_polls_total",
    "Total status fetches while waiting on long-running operations",
)

# Auth metrics
login_attempts_total = Counter(
    "login_attempts_total",
    "Total login attempts",
    ["outcome"],
)


class PrometheusRemoteMetrics:
    """Prometheus-based remote call metrics implementation."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record remote call latency."""
        remote_latency_ms.labels(operation=operation, outcome=outcome).observe(latency_ms)

    def inc_error(self, operation: str, reason: str) -> None:
        """Increment error counter."""
        remote_errors_total.labels(operation=operation, reason=reason).inc()

    def inc_poll(self) -> None:
        """Increment operation poll counter."""
        operation_polls_total.inc()


def record_login(outcome: str) -> None:
    """Count a login attempt by outcome (success, rejected, invalid)."""
    login_attempts_total.labels(outcome=outcome).inc()
