"""
Error values.

Errors are immutable values carried in Result, not raised. Each one exposes
a `message` safe to show to a client.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain import Classification, OrderStatus


# ═══════════════════════════════════════════════════════════════════════════════
# Validation — user-correctable
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ValidationError:
    """Bad input. `field` names the category (card, method, items, total)."""

    field: str
    message: str


@dataclass(frozen=True, slots=True)
class InvalidCardDetails(ValidationError):
    field: str = "card"
    message: str = "invalid card details"


@dataclass(frozen=True, slots=True)
class InvalidPaymentMethod(ValidationError):
    field: str = "method"
    message: str = "invalid payment method"


@dataclass(frozen=True, slots=True)
class InvalidOrderRequest(ValidationError):
    pass


@dataclass(frozen=True, slots=True)
class TotalMismatch(ValidationError):
    field: str = "total"
    message: str = "total price does not match the items"


# ═══════════════════════════════════════════════════════════════════════════════
# Payment outcomes — business results, not system faults
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PaymentDeclined:
    message: str = "payment declined"


@dataclass(frozen=True, slots=True)
class PaymentTimeout:
    seconds: float

    @property
    def message(self) -> str:
        return "payment timed out"


@dataclass(frozen=True, slots=True)
class PaymentBackendError:
    message: str = "payment processing failed"
    cause: Exception | None = None


@dataclass(frozen=True, slots=True)
class UnrecordedCharge:
    """Card was charged but the payment record could not be stored."""

    order_id: int
    payment_id: str
    cause: object | None = None

    @property
    def message(self) -> str:
        return "payment processing failed"


# ═══════════════════════════════════════════════════════════════════════════════
# Persistence faults
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StoreUnavailable:
    message: str
    cause: Exception | None = None


@dataclass(frozen=True, slots=True)
class DuplicateOrderId:
    order_id: int

    @property
    def message(self) -> str:
        return f"order id {self.order_id} already exists"


@dataclass(frozen=True, slots=True)
class DuplicateIdempotencyKey:
    key: str

    @property
    def message(self) -> str:
        return f"idempotency key {self.key!r} already used"


@dataclass(frozen=True, slots=True)
class ItemInsertFailed:
    order_id: int
    meal_id: int
    position: int
    cause: Exception | None = None

    @property
    def message(self) -> str:
        return f"failed to add item #{self.position} (meal {self.meal_id}) to order {self.order_id}"


# ═══════════════════════════════════════════════════════════════════════════════
# Status & idempotency
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InvalidTransition:
    order_id: int
    current: OrderStatus
    requested: OrderStatus

    @property
    def message(self) -> str:
        return (
            f"cannot move order {self.order_id} "
            f"from {self.current.value} to {self.requested.value}"
        )


@dataclass(frozen=True, slots=True)
class IdempotencyConflict:
    key: str

    @property
    def message(self) -> str:
        return "a request with this idempotency key is still in progress"


# ═══════════════════════════════════════════════════════════════════════════════
# Reconciliation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ReconciliationAnomaly:
    """
    A finalize or compensate write failed after the payment outcome was known.

    The recorded order status disagrees with reality; needs manual inspection.
    """

    order_id: int
    expected_status: OrderStatus
    payment_id: str | None
    reason: str

    @property
    def message(self) -> str:
        return "order state could not be reconciled; it will be reviewed manually"


# ═══════════════════════════════════════════════════════════════════════════════
# Unions
# ═══════════════════════════════════════════════════════════════════════════════

type PaymentFailure = (
    ValidationError
    | PaymentDeclined
    | PaymentTimeout
    | PaymentBackendError
    | UnrecordedCharge
    | StoreUnavailable
)

type PersistenceError = (
    StoreUnavailable | DuplicateOrderId | DuplicateIdempotencyKey | ItemInsertFailed
)

type SagaFailure = PersistenceError | PaymentFailure


# ═══════════════════════════════════════════════════════════════════════════════
# Create result (error side)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CreateOrderFailure:
    classification: Classification
    message: str
    reason: object | None = None
    order_id: int | None = None
    replayed: bool = False


__all__ = (
    "ValidationError",
    "InvalidCardDetails",
    "InvalidPaymentMethod",
    "InvalidOrderRequest",
    "TotalMismatch",
    "PaymentDeclined",
    "PaymentTimeout",
    "PaymentBackendError",
    "UnrecordedCharge",
    "StoreUnavailable",
    "DuplicateOrderId",
    "DuplicateIdempotencyKey",
    "ItemInsertFailed",
    "InvalidTransition",
    "IdempotencyConflict",
    "ReconciliationAnomaly",
    "PaymentFailure",
    "PersistenceError",
    "SagaFailure",
    "CreateOrderFailure",
)
