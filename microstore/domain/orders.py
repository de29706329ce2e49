# microstore/domain/orders.py
import re
from enum import Enum

from microstore.domain.errors import InvalidStatusTransitionError, ValidationError


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


#dozwolone przejscia: obecny status -> zbior nastepnych
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in ORDER_TRANSITIONS.items() if not nxt)

STATUS_MESSAGES = {
    OrderStatus.PROCESSING: "Your order #{order_id} is now being processed. We'll notify you when it ships.",
    OrderStatus.SHIPPED: "Your order #{order_id} has been shipped! You should receive it soon.",
    OrderStatus.DELIVERED: "Your order #{order_id} has been delivered. We hope you enjoy your purchase!",
    OrderStatus.COMPLETED: "Your order #{order_id} is complete. Thank you for shopping with us!",
    OrderStatus.CANCELLED: (
        "Your order #{order_id} has been cancelled. "
        "Please contact customer service if you have any questions."
    ),
}

_ORDER_NUMBER_RE = re.compile(r"^ORD-(\d{4,})$")


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid order status: {value}") from None


def can_transition(current, new) -> bool:
    return parse_status(new) in ORDER_TRANSITIONS[parse_status(current)]


def ensure_transition(current, new) -> OrderStatus:
    """Zwraca nowy status albo rzuca InvalidStatusTransitionError."""
    new_status = parse_status(new)
    current_status = parse_status(current)
    if new_status not in ORDER_TRANSITIONS[current_status]:
        raise InvalidStatusTransitionError(current_status.value, new_status.value)
    return new_status


def status_message(order_id: int, status) -> str:
    try:
        template = STATUS_MESSAGES[OrderStatus(status)]
    except (KeyError, ValueError):
        return f"Your order #{order_id} status has been updated to: {status}"
    return template.format(order_id=order_id)


def format_order_number(order_id: int) -> str:
    return "ORD-%04d" % order_id


def parse_order_number(order_number: str) -> int:
    match = _ORDER_NUMBER_RE.match(order_number.strip())
    if not match:
        raise ValidationError(f"Invalid order number: {order_number}")
    return int(match.group(1))
