# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "kutu_requests_total",
    "Total HTTP requests to kutu service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "kutu_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "kutu_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
GROUPS_CREATED = Counter(
    "kutu_groups_created_total",
    "Total savings groups created",
)
PAYMENTS_RECORDED = Counter(
    "kutu_payments_recorded_total",
    "Total member payments marked as paid",
)
PAYOUTS_COMPLETED = Counter(
    "kutu_payouts_completed_total",
    "Total round payouts completed",
)
ROUNDS_ADVANCED = Counter(
    "kutu_rounds_advanced_total",
    "Total rounds opened after a completed payout",
)
CYCLES_COMPLETED = Counter(
    "kutu_cycles_completed_total",
    "Total groups that paid out every member",
)
GROUP_RESETS = Counter(
    "kutu_group_resets_total",
    "Total destructive resets of group progress",
    ["reason"],
)
COMMAND_FAILURES = Counter(
    "kutu_command_failures_total",
    "Total rejected group commands",
    ["command", "error"],
)
PERSIST_FAILURES = Counter(
    "kutu_persist_failures_total",
    "Total failed write-through saves",
)
TIP_FALLBACKS = Counter(
    "kutu_tip_fallbacks_total",
    "Total financial tips served from the static fallback",
)
GROUPS_BY_STATUS = Gauge(
    "kutu_groups",
    "Number of groups per lifecycle status",
    ["status"],
)
