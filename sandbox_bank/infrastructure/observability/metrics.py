"""Prometheus metrics for provisioning output and scheduled transfer runs"""

from prometheus_client import Counter, Histogram

# Provisioning metrics
accounts_provisioned_counter = Counter(
    "sandbox_accounts_provisioned_total",
    "Accounts provisioned",
    ["tier"],  # low | moderate | high
)

transactions_generated_counter = Counter(
    "sandbox_transactions_generated_total",
    "Synthetic transactions generated",
    ["account"],  # checking | savings | credit
)

cards_issued_counter = Counter(
    "sandbox_cards_issued_total",
    "Payment cards issued",
    ["card_type", "brand"],
)

synthesis_failures_counter = Counter(
    "sandbox_synthesis_failures_total",
    "Provisioning enrichment steps that failed and were skipped",
    ["step"],  # activity | cards
)

# Scheduled transfer metrics
transfer_executions_counter = Counter(
    "sandbox_transfer_executions_total",
    "Scheduled transfer runs",
    ["outcome"],  # completed | failed
)

transfer_claim_conflicts_counter = Counter(
    "sandbox_transfer_claim_conflicts_total",
    "Due transfers already claimed by another worker",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_provisioning(tier: str, transactions, cards) -> None:
    """Record what a provisioning run produced"""
    accounts_provisioned_counter.labels(tier=tier).inc()

    for txn in transactions:
        transactions_generated_counter.labels(account=txn.account_id.value).inc()

    for card in cards:
        cards_issued_counter.labels(card_type=card.card_type.value, brand=card.brand.value).inc()


def record_transfer_execution(outcome: str) -> None:
    transfer_executions_counter.labels(outcome=outcome).inc()
