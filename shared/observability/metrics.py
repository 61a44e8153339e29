from prometheus_client import Counter, Histogram

# Business Metrics
bakery_order_transitions_total = Counter(
    "bakery_order_transitions_total",
    "Order status transitions applied",
    ["from_status", "to_status"]
)

bakery_assignments_total = Counter(
    "bakery_assignments_total",
    "Order assignments performed by main bakers",
    ["mode"] # Labels: 'junior_baker', 'self'
)

bakery_payment_distributions_total = Counter(
    "bakery_payment_distributions_total",
    "Payment distribution attempts by outcome",
    ["outcome"] # Labels: 'distributed', 'not_delivered', 'no_main_baker', 'already_distributed'
)

bakery_payment_distribution_duration_seconds = Histogram(
    "bakery_payment_distribution_duration_seconds",
    "Payment distribution duration in seconds"
)

bakery_side_effect_failures_total = Counter(
    "bakery_side_effect_failures_total",
    "Best-effort side effects that failed and were swallowed",
    ["effect"] # Labels: 'chat_reconcile', 'notification', 'payment_distribution'
)

bakery_team_changes_total = Counter(
    "bakery_team_changes_total",
    "Baker team membership changes",
    ["change"] # Labels: 'joined', 'moved', 'promoted'
)
