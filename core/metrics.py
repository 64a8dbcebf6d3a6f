"""
Prometheus metrics for the key service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Key metrics
key_verifications_total = Counter(
    "key_verifications_total",
    "Total key verifications by outcome",
    ["outcome"],
)

key_bind_conflicts_total = Counter(
    "key_bind_conflicts_total",
    "Conditional binds that lost to a concurrent writer",
)

keys_created_total = Counter(
    "keys_created_total",
    "Total keys issued",
)

key_admin_actions_total = Counter(
    "key_admin_actions_total",
    "Total administrative key mutations",
    ["action"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
