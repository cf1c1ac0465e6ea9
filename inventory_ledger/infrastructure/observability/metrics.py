"""Prometheus metrics for credit activity, interest accrual and scheduler health"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Credit metrics
credit_accounts_created_counter = Counter(
    "ledger_credit_accounts_created_total",
    "Credit accounts opened",
)

payments_recorded_counter = Counter(
    "ledger_payments_recorded_total",
    "Payments appended to the journal",
)

payment_amount_counter = Counter(
    "ledger_payment_amount_total",
    "Sum of recorded payment amounts",
)

# Interest metrics
interest_accrued_counter = Counter(
    "ledger_interest_accrued_total",
    "Interest charged to credit accounts",
    ["method"],  # prorated_30 | simple_365
)

interest_calculations_counter = Counter(
    "ledger_interest_calculations_total",
    "Interest calculation records written",
    ["mode"],  # manual-days | monthly-batch | date-range | scheduled
)

# Scheduler metrics
scheduler_runs_counter = Counter(
    "ledger_scheduler_runs_total",
    "Interest scheduler passes",
)

scheduler_account_failures_counter = Counter(
    "ledger_scheduler_account_failures_total",
    "Accounts that failed during a scheduled accrual",
)

scheduler_run_duration_histogram = Histogram(
    "ledger_scheduler_run_duration_seconds",
    "Interest scheduler pass duration",
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0],
)

# Stock metrics
insufficient_stock_counter = Counter(
    "ledger_insufficient_stock_total",
    "Reservations refused for lack of stock",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_interest(method: str, mode: str, interest_amount: Decimal) -> None:
    """Record an interest calculation and the amount it charged"""
    interest_calculations_counter.labels(mode=mode).inc()
    if interest_amount > 0:
        interest_accrued_counter.labels(method=method).inc(float(interest_amount))


def record_payment(payment_amount: Decimal) -> None:
    payments_recorded_counter.inc()
    if payment_amount > 0:
        payment_amount_counter.inc(float(payment_amount))
