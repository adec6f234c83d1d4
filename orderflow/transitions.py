"""
Order status state machine.

    pending ──► confirmed ──► paid
       │            │
       ├────────────┴──► cancelled
       └──► paid

paid and cancelled are terminal. Re-requesting the current status is a no-op.
"""

from __future__ import annotations

from orderflow.domain import OrderStatus, PaymentMethod


ALLOWED: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.PAID, OrderStatus.CANCELLED}
    ),
    # cash collected on delivery, or delivery refused
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    if current == requested:
        return True
    return requested in ALLOWED[current]


def settled_status(method: PaymentMethod) -> OrderStatus:
    """Status an order is finalized to after a successful payment."""
    match method:
        case PaymentMethod.CASH:
            return OrderStatus.CONFIRMED
        case PaymentMethod.CARD:
            return OrderStatus.PAID


__all__ = ("ALLOWED", "can_transition", "settled_status")
