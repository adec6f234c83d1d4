"""
HTTP models — pydantic in, pydantic out.

Request models convert with `to_domain()`, response models with
`from_domain(result)`.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from kungfu import Result, Ok, Error
from pydantic import BaseModel, Field

from orderflow.domain import (
    Classification,
    CreateOrderCommand,
    OrderItem,
    OrderPlaced,
    OrderStatus,
    OrderView,
    PaymentRequest,
)
from orderflow.errors import CreateOrderFailure


# ═══════════════════════════════════════════════════════════════════════════════
# Create with payment
# ═══════════════════════════════════════════════════════════════════════════════


class OrderItemIn(BaseModel):
    meal_id: int
    quantity: int


class PaymentIn(BaseModel):
    payment_method: str
    card_number: str | None = None
    expiry_date: str | None = None
    cvv: str | None = None

    def to_domain(self) -> PaymentRequest:
        return PaymentRequest(
            method=self.payment_method,
            card_number=self.card_number,
            expiry=self.expiry_date,
            cvv=self.cvv,
        )


class CreateWithPaymentIn(BaseModel):
    items: list[OrderItemIn] = Field(default_factory=list)
    total_price: Decimal
    payment: PaymentIn
    shipping_address: str | None = None

    def to_domain(self, user_id: int, idempotency_key: str | None) -> CreateOrderCommand:
        return CreateOrderCommand(
            user_id=user_id,
            items=tuple(OrderItem(i.meal_id, i.quantity) for i in self.items),
            total_price=self.total_price,
            payment=self.payment.to_domain(),
            shipping_address=self.shipping_address,
            idempotency_key=idempotency_key,
        )


STATUS_CODES: dict[Classification, int] = {
    Classification.CREATED: 201,
    Classification.PAYMENT_REQUIRED: 402,
    Classification.INVALID_REQUEST: 400,
    Classification.CONFLICT: 409,
    Classification.INTERNAL_ERROR: 500,
    Classification.RECONCILIATION_ANOMALY: 500,
}


class CreateWithPaymentOut(BaseModel):
    success: bool
    message: str
    order_id: int | None = None
    payment_id: str | None = None
    status: OrderStatus | None = None
    reason: str | None = None
    replayed: bool = False

    @classmethod
    def from_domain(
        cls,
        dom: Result[OrderPlaced, CreateOrderFailure],
    ) -> tuple[int, CreateWithPaymentOut]:
        """(HTTP status, body)."""
        match dom:
            case Ok(placed):
                return STATUS_CODES[Classification.CREATED], cls(
                    success=True,
                    message=placed.message,
                    order_id=placed.order_id,
                    payment_id=placed.payment_id,
                    status=placed.status,
                    replayed=placed.replayed,
                )
            case Error(failure):
                return STATUS_CODES[failure.classification], cls(
                    success=False,
                    message=failure.message,
                    order_id=failure.order_id,
                    reason=(
                        type(failure.reason).__name__
                        if failure.reason is not None
                        else failure.classification.value
                    ),
                    replayed=failure.replayed,
                )


# ═══════════════════════════════════════════════════════════════════════════════
# Status update
# ═══════════════════════════════════════════════════════════════════════════════


class UpdateStatusIn(BaseModel):
    order_id: int
    status: OrderStatus


class UpdateStatusOut(BaseModel):
    success: bool
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════════════════


class OrderItemOut(BaseModel):
    meal_id: int
    quantity: int
    meal_name: str | None
    unit_price: Decimal | None


class PaymentOut(BaseModel):
    payment_id: str
    payment_method: str
    amount: Decimal
    status: str
    created_at: datetime | None


class OrderOut(BaseModel):
    order_id: int
    user_id: int
    total_price: Decimal
    status: OrderStatus
    shipping_address: str | None
    created_at: datetime | None
    items: list[OrderItemOut]
    payments: list[PaymentOut]

    @classmethod
    def from_domain(cls, view: OrderView) -> OrderOut:
        return cls(
            order_id=view.order_id,
            user_id=view.user_id,
            total_price=view.total_price,
            status=view.status,
            shipping_address=view.shipping_address,
            created_at=view.created_at,
            items=[
                OrderItemOut(
                    meal_id=i.meal_id,
                    quantity=i.quantity,
                    meal_name=i.meal_name,
                    unit_price=i.unit_price,
                )
                for i in view.items
            ],
            payments=[
                PaymentOut(
                    payment_id=p.payment_id,
                    payment_method=p.method.value,
                    amount=p.amount,
                    status=p.status.value,
                    created_at=p.created_at,
                )
                for p in view.payments
            ],
        )


class ErrorOut(BaseModel):
    success: bool = False
    message: str


__all__ = (
    "OrderItemIn",
    "PaymentIn",
    "CreateWithPaymentIn",
    "STATUS_CODES",
    "CreateWithPaymentOut",
    "UpdateStatusIn",
    "UpdateStatusOut",
    "OrderItemOut",
    "PaymentOut",
    "OrderOut",
    "ErrorOut",
)
