"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter, Gauge, Histogram

# Revenue metrics
arr_gauge = Gauge(
    "arr",
    "Annual Recurring Revenue of the latest report",
    labelnames=["currency"],
)

mrr_gauge = Gauge(
    "mrr",
    "Monthly Recurring Revenue of the latest report",
    labelnames=["currency"],
)

active_customers_gauge = Gauge(
    "active_customers",
    "Customers contributing to ARR in the latest report",
)

# Retention metrics
churn_rate_gauge = Gauge(
    "churn_rate_percent",
    "Customer churn over the trailing period (%)",
)

# Report metrics
report_duration_seconds = Histogram(
    "analytics_report_duration_seconds",
    "Time spent computing an analytics report",
    labelnames=["report"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

reports_generated_total = Counter(
    "analytics_reports_generated_total",
    "Total analytics reports generated",
    labelnames=["report"],
)

# Marketing spend ledger
marketing_spend_writes_total = Counter(
    "marketing_spend_writes_total",
    "Total marketing spend ledger writes",
    labelnames=["operation"],  # operation: created, updated, deleted
)
