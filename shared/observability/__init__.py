from .setup import setup_observability
from .metrics import (
    bakery_order_transitions_total,
    bakery_assignments_total,
    bakery_payment_distributions_total,
    bakery_payment_distribution_duration_seconds,
    bakery_side_effect_failures_total,
    bakery_team_changes_total
)
