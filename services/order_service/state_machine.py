"""
Order status lifecycle.

    pending -> processing -> quality_check -> ready -> delivered
    cancelled is reachable from every non-terminal state.
    delivered and cancelled are terminal.

`transition` is a pure state update. Whatever has to happen because an order
reached a state (payment distribution on delivery) is triggered by the
caller that observed the new state, never from here.
"""
from shared.config.database import utcnow
from shared.exceptions import InvalidTransition

from .models import Order, OrderStatus

_FORWARD = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.QUALITY_CHECK,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
]

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

VALID_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    status: frozenset() for status in OrderStatus
}
for current, following in zip(_FORWARD, _FORWARD[1:]):
    VALID_TRANSITIONS[current] = frozenset({following, OrderStatus.CANCELLED})


def allowed_transitions(current: OrderStatus) -> frozenset[OrderStatus]:
    return VALID_TRANSITIONS[OrderStatus(current)]


def can_transition(current: OrderStatus, new_status: OrderStatus) -> bool:
    return OrderStatus(new_status) in allowed_transitions(current)


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATES


def transition(order: Order, new_status: OrderStatus) -> Order:
    """Moves `order` to `new_status` or raises InvalidTransition leaving it untouched."""
    current = OrderStatus(order.status)
    new_status = OrderStatus(new_status)

    if is_terminal(current):
        raise InvalidTransition(
            current, new_status, f"Order is already {current.value}"
        )
    if not can_transition(current, new_status):
        raise InvalidTransition(current, new_status)

    order.status = new_status
    order.updated_at = utcnow()
    return order
