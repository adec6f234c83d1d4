"""
Domain — orders, line items, payments.

Money is Decimal in the domain and integer cents in the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum


CENT = Decimal("0.01")

# store columns are signed 64-bit integers
INT64_MAX = 2**63 - 1


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize to cents. Floats go through str to avoid binary noise."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    return int(to_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def fits_cents(value: Decimal) -> bool:
    """Finite, and its amount in cents fits a 64-bit column after rounding."""
    if not value.is_finite():
        return False
    return abs(value) * 100 < INT64_MAX


# ═══════════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    CASH = "cash"
    CARD = "card"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class SagaStage(Enum):
    """
    Progress of one create-with-payment run.

    START → ID_ALLOCATED → ORDER_PERSISTED → ITEMS_PERSISTED
          → PAYMENT_ATTEMPTED → FINALIZED
    """

    START = "start"
    ID_ALLOCATED = "id_allocated"
    ORDER_PERSISTED = "order_persisted"
    ITEMS_PERSISTED = "items_persisted"
    PAYMENT_ATTEMPTED = "payment_attempted"
    FINALIZED = "finalized"


class Classification(Enum):
    """HTTP-agnostic outcome class of a create request."""

    CREATED = "created"
    PAYMENT_REQUIRED = "payment_required"
    INVALID_REQUEST = "invalid_request"
    CONFLICT = "conflict"
    INTERNAL_ERROR = "internal_error"
    RECONCILIATION_ANOMALY = "reconciliation_anomaly"


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderItem:
    meal_id: int
    quantity: int


@dataclass(frozen=True, slots=True)
class Order:
    order_id: int
    user_id: int
    total_price: Decimal
    status: OrderStatus
    items: tuple[OrderItem, ...]
    shipping_address: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class IdempotentOrder:
    """What the store remembers about an order created under an idempotency key."""

    order_id: int
    status: OrderStatus
    fingerprint: str | None
    outcome: str | None


# ═══════════════════════════════════════════════════════════════════════════════
# Payments
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    """
    Payment part of a create request.

    method stays a plain string: unknown methods are a payment outcome,
    not a parse error.
    """

    method: str
    card_number: str | None = None
    expiry: str | None = None
    cvv: str | None = None


@dataclass(frozen=True, slots=True)
class CardDetails:
    number: str
    expiry: str
    cvv: str


@dataclass(frozen=True, slots=True)
class PaymentRecord:
    payment_id: str
    order_id: int
    method: PaymentMethod
    amount: Decimal
    status: PaymentStatus
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PaymentReceipt:
    payment_id: str
    method: PaymentMethod
    status: PaymentStatus
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Meal:
    meal_id: int
    name: str
    price: Decimal


# ═══════════════════════════════════════════════════════════════════════════════
# Create-with-payment
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CreateOrderCommand:
    user_id: int
    items: tuple[OrderItem, ...]
    total_price: Decimal
    payment: PaymentRequest
    shipping_address: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True, slots=True)
class OrderPlaced:
    order_id: int
    payment_id: str
    status: OrderStatus
    message: str
    replayed: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Read side
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderItemView:
    meal_id: int
    quantity: int
    meal_name: str | None
    unit_price: Decimal | None


@dataclass(frozen=True, slots=True)
class OrderView:
    order_id: int
    user_id: int
    total_price: Decimal
    status: OrderStatus
    items: tuple[OrderItemView, ...]
    payments: tuple[PaymentRecord, ...]
    shipping_address: str | None = None
    created_at: datetime | None = None


__all__ = (
    "CENT",
    "to_money",
    "to_cents",
    "from_cents",
    "fits_cents",
    "INT64_MAX",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "SagaStage",
    "Classification",
    "OrderItem",
    "Order",
    "IdempotentOrder",
    "PaymentRequest",
    "CardDetails",
    "PaymentRecord",
    "PaymentReceipt",
    "Meal",
    "CreateOrderCommand",
    "OrderPlaced",
    "OrderItemView",
    "OrderView",
)
