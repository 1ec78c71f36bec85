"""Prometheus metrics for monitoring purchase allocation, invoice payments and webhook performance"""

from prometheus_client import Counter, Histogram

# Allocation metrics
purchase_counter = Counter(
    "card_billing_purchases_total",
    "Card purchases allocated",
    ["plan"],  # single | installments
)

installment_rows_counter = Counter(
    "card_billing_installment_rows_total",
    "Purchase rows created across all allocations",
)

limit_rejection_counter = Counter(
    "card_billing_limit_rejections_total",
    "Purchases rejected for exceeding available credit",
)

invoice_created_counter = Counter(
    "card_billing_invoices_created_total",
    "Invoices lazily created for a new billing period",
)

# Reconciliation metrics
payment_counter = Counter(
    "card_billing_invoice_payments_total",
    "Invoice payments that produced a ledger expense",
    ["kind"],  # full | partial
)

payment_amount_histogram = Histogram(
    "card_billing_invoice_payment_cents",
    "Amount of registered invoice payments in cents",
    buckets=[1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000],
)

purchase_deletion_counter = Counter(
    "card_billing_purchase_deletions_total",
    "Purchase deletions",
    ["scope"],  # single | group
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Cache invalidation webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_allocation(installments: int) -> None:
    """Record purchase metrics split by single vs installment plans"""
    plan = "installments" if installments > 1 else "single"
    purchase_counter.labels(plan=plan).inc()
    installment_rows_counter.inc(installments)


def record_payment(payment_cents: int, full: bool) -> None:
    payment_counter.labels(kind="full" if full else "partial").inc()
    payment_amount_histogram.observe(payment_cents)
