"""Prometheus metrics for the Serving Cert Keystore Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "serving_cert_keystore_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "serving_cert_keystore_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

# Keystore outcome metrics (operation: create, remove, noop)
keystore_operations_total = Counter(
    "serving_cert_keystore_operations_total",
    "Total number of keystore decisions applied to secrets",
    ["operation", "result"],
)

# API call metrics
api_call_total = Counter(
    "serving_cert_keystore_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "serving_cert_keystore_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

error_total = Counter(
    "serving_cert_keystore_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

rate_limit_hits_total = Counter(
    "serving_cert_keystore_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
