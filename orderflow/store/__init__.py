"""
Store — SQLAlchemy-backed persistence for orders and payments.

    session_factory, engine = await create_database(settings.database_url)
    orders = OrderStore(session_factory)
    payments = PaymentStore(session_factory)
    allocator = OrderIdAllocator(session_factory)
"""

from __future__ import annotations

from orderflow.store._tables import (
    Base,
    IdempotencyMixin,
    OrderTable,
    OrderItemTable,
    PaymentTable,
    OrderSequenceTable,
)
from orderflow.store._db import ORDER_SEQUENCE, create_database
from orderflow.store._allocator import OrderIdAllocator
from orderflow.store._orders import OrderStore
from orderflow.store._payments import PaymentStore

__all__ = (
    "Base",
    "IdempotencyMixin",
    "OrderTable",
    "OrderItemTable",
    "PaymentTable",
    "OrderSequenceTable",
    "ORDER_SEQUENCE",
    "create_database",
    "OrderIdAllocator",
    "OrderStore",
    "PaymentStore",
)
