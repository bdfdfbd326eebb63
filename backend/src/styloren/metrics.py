"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# Credit ledger metrics
credits_consumed_total = Counter(
    "credits_consumed_total",
    "Total credits debited from user batches",
)

credit_batches_added_total = Counter(
    "credit_batches_added_total",
    "Total credit batches granted",
    labelnames=["plan"],
)

credit_consume_failures_total = Counter(
    "credit_consume_failures_total",
    "Total failed credit debits",
    labelnames=["reason"],  # no_credits, conflict, persistence
)

# AI gateway metrics
ai_gateway_requests_total = Counter(
    "ai_gateway_requests_total",
    "Total AI gateway calls made for billable features",
    labelnames=["feature", "outcome"],  # feature: analyze, chat, compare
)

# Scan history metrics
scans_saved_total = Counter(
    "scans_saved_total",
    "Total outfit analyses saved to history",
)
