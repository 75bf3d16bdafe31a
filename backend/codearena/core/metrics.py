"""Prometheus metrics shared by the HTTP layer and the scoring services"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "codearena_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "codearena_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
AWARD_OUTCOMES = Counter(
    "codearena_awards_total",
    "Judge results processed by the award rules, by outcome",
    ["outcome"],
)
XP_GRANTED = Counter(
    "codearena_xp_granted_total",
    "XP granted through the ledger, by source",
    ["source"],
)
NOTIFICATION_FAILURES = Counter(
    "codearena_notification_failures_total",
    "Events the notification sink failed to accept",
    ["event_type"],
)
CONTEST_FINALIZATIONS = Counter(
    "codearena_contest_finalizations_total",
    "Contest rank finalization runs",
)
