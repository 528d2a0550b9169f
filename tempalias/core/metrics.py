"""
Prometheus Metrics

Defines application metrics for monitoring:
- Request counters
- Duration histograms
- Alias lifecycle counters
- Provider and sweeper metrics
"""

from prometheus_client import Counter, Histogram, Gauge, Info

from tempalias import __version__


# ===================================
# HTTP Metrics
# ===================================

requests_total = Counter(
    "tempalias_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
)

requests_duration = Histogram(
    "tempalias_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

active_requests = Gauge(
    "tempalias_active_requests",
    "Number of active HTTP requests",
)


# ===================================
# Alias Metrics
# ===================================

aliases_created_total = Counter(
    "tempalias_aliases_created_total",
    "Total number of aliases generated",
)

alias_transitions_total = Counter(
    "tempalias_alias_transitions_total",
    "Total number of alias lifecycle transitions",
    ["transition"],  # generate, toggle, delete, recreate, renew, expire
)


# ===================================
# Provider Metrics
# ===================================

provider_requests_total = Counter(
    "tempalias_provider_requests_total",
    "Total number of Cloudflare API requests",
    ["operation", "outcome"],  # outcome: success, error
)

provider_cleanup_failures_total = Counter(
    "tempalias_provider_cleanup_failures_total",
    "Rule deletions that failed and left an orphaned rule",
)


# ===================================
# Worker Metrics
# ===================================

sweeper_runs_total = Counter(
    "tempalias_sweeper_runs_total",
    "Total number of expiration sweeps",
)

sweeper_duration = Histogram(
    "tempalias_sweeper_duration_seconds",
    "Expiration sweep duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
)

sweeper_expired_total = Counter(
    "tempalias_sweeper_expired_total",
    "Total number of aliases expired by the sweeper",
)

sweeper_errors_total = Counter(
    "tempalias_sweeper_errors_total",
    "Total number of sweeper errors",
)


# ===================================
# Application Info
# ===================================

app_info = Info(
    "tempalias_app",
    "Application information",
)

app_info.info({
    "version": __version__,
    "name": "TempAlias",
})


# ===================================
# Helper Functions
# ===================================

def record_request(method: str, endpoint: str, status: int, duration: float):
    """
    Record HTTP request metrics.
    
    Args:
        method: HTTP method
        endpoint: Endpoint path
        status: HTTP status code
        duration: Request duration in seconds
    """
    requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
    requests_duration.labels(method=method, endpoint=endpoint).observe(duration)


def record_transition(transition: str):
    """Record an alias lifecycle transition."""
    alias_transitions_total.labels(transition=transition).inc()
    if transition == "generate":
        aliases_created_total.inc()


def record_provider_request(operation: str, ok: bool):
    """Record the outcome of a Cloudflare API call."""
    provider_requests_total.labels(
        operation=operation,
        outcome="success" if ok else "error",
    ).inc()
