"""Prometheus metrics for quote outcomes, validation failures and lead scoring"""

from prometheus_client import Counter, Histogram

# Financing metrics
quote_counter = Counter(
    "dealer_financing_quotes_total",
    "Financing quotes issued",
    ["path"],  # campaign | rule
)

quote_rejection_counter = Counter(
    "dealer_financing_rejections_total",
    "Financing requests rejected by validation",
    ["code"],
)

audit_log_failure_counter = Counter(
    "dealer_financing_audit_log_failures_total",
    "Quotes that could not be written to the calculation log",
)

# Lead scoring metrics
score_adjustment_counter = Counter(
    "dealer_lead_score_adjustments_total",
    "Lead score adjustments applied",
    ["event_type", "tier"],
)

score_conflict_counter = Counter(
    "dealer_lead_score_conflicts_total",
    "Score writes rejected because the lead changed concurrently",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_quote(from_campaign: bool) -> None:
    quote_counter.labels(path="campaign" if from_campaign else "rule").inc()


def record_rejection(code: str) -> None:
    quote_rejection_counter.labels(code=code).inc()


def record_score_adjustment(event_type: str, tier: str) -> None:
    score_adjustment_counter.labels(event_type=event_type, tier=tier).inc()
