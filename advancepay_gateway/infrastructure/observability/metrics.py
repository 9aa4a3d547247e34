"""Prometheus metrics for rollover submissions, loan decisions, and card valet calls"""

from prometheus_client import Counter, Histogram

# Rollover metrics
rollover_submission_counter = Counter(
    "advancepay_rollover_submissions_total",
    "Rollover submissions by final state",
    ["outcome"],  # committed | rejected | failed | timed_out
)

rollover_completion_wait_histogram = Histogram(
    "advancepay_rollover_completion_wait_seconds",
    "Time spent waiting for the rollover logging completion event",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Loan decision metrics
loan_decision_counter = Counter(
    "advancepay_loan_decisions_total",
    "New-loan decisions by outcome",
    ["outcome"],  # approved | denied | failure
)

loan_decision_poll_attempts_histogram = Histogram(
    "advancepay_loan_decision_poll_attempts",
    "Reads needed before the decision engine resolved an inquiry",
    buckets=[1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
)

loan_inquiry_failures_counter = Counter(
    "advancepay_loan_inquiry_failures_total",
    "Loan inquiries that could not be stored",
)

# Card valet metrics
cardvalet_request_counter = Counter(
    "cardvalet_sso_requests_total",
    "Card valet SSO requests by vendor status",
    ["status"],  # vendor statusCode, or "error" on transport failure
)

cardvalet_latency_histogram = Histogram(
    "cardvalet_sso_latency_seconds",
    "Card valet SSO response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_rollover_submission(outcome: str) -> None:
    """Record the final state of a rollover submission"""
    rollover_submission_counter.labels(outcome=outcome).inc()


def record_loan_decision(outcome: str, attempts: int | None = None) -> None:
    """Record a loan decision and, when resolved by the engine, how many polls it took"""
    loan_decision_counter.labels(outcome=outcome).inc()
    if attempts is not None:
        loan_decision_poll_attempts_histogram.observe(attempts)
