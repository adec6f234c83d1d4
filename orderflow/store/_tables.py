"""
Database layer — SQLAlchemy models.

Money is stored as integer cents; statuses as their enum values.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Idempotency columns
# ═══════════════════════════════════════════════════════════════════════════════


class IdempotencyMixin:
    """
    Adds idempotent-create columns to a table.

    - idempotency_key: client token, unique when present
    - idempotency_fingerprint: SHA-256 of the canonical request
    - idempotency_outcome: JSON of the final result, NULL while in flight
    """

    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
    )

    idempotency_fingerprint: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    idempotency_outcome: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderTable(Base, IdempotencyMixin):
    __tablename__ = "orders"

    order_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)

    items: Mapped[list[OrderItemTable]] = relationship(
        order_by="OrderItemTable.position",
        lazy="raise",
    )


class OrderItemTable(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.order_id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    meal_id: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Payments
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentTable(Base):
    __tablename__ = "payments"

    payment_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    order_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)


# ═══════════════════════════════════════════════════════════════════════════════
# Order id sequence — single row per sequence name
# ═══════════════════════════════════════════════════════════════════════════════


class OrderSequenceTable(Base):
    __tablename__ = "order_sequence"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False)


__all__ = (
    "Base",
    "IdempotencyMixin",
    "OrderTable",
    "OrderItemTable",
    "PaymentTable",
    "OrderSequenceTable",
)
