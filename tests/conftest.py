"""
Shared fixtures and helpers for the orderflow test suite.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from kungfu import Ok, Error

from orderflow.catalog import MemoryCatalog
from orderflow.domain import CreateOrderCommand, Meal, OrderItem, PaymentRequest
from orderflow.orchestrator import OrderService
from orderflow.payments import PaymentProcessor, SimulatedGateway
from orderflow.store import OrderIdAllocator, OrderStore, PaymentStore, create_database


# ============================================================================
# Result helpers
# ============================================================================


def ok(result: Any) -> Any:
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(f"expected Ok, got Error({e!r})")


def err(result: Any) -> Any:
    match result:
        case Error(e):
            return e
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")


# ============================================================================
# Requests
# ============================================================================

VISA = "4111111111111111"
DECLINED_VISA = "4111111111110000"


def cash_command(
    user_id: int = 7,
    items: tuple[OrderItem, ...] = (OrderItem(1, 2),),
    total: str = "19.98",
    key: str | None = None,
) -> CreateOrderCommand:
    return CreateOrderCommand(
        user_id=user_id,
        items=items,
        total_price=Decimal(total),
        payment=PaymentRequest(method="cash"),
        idempotency_key=key,
    )


def card_command(
    number: str = VISA,
    expiry: str = "12/29",
    cvv: str = "123",
    user_id: int = 7,
    items: tuple[OrderItem, ...] = (OrderItem(1, 2),),
    total: str = "19.98",
    key: str | None = None,
) -> CreateOrderCommand:
    return CreateOrderCommand(
        user_id=user_id,
        items=items,
        total_price=Decimal(total),
        payment=PaymentRequest(method="card", card_number=number, expiry=expiry, cvv=cvv),
        idempotency_key=key,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Fresh SQLite file per test."""
    factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    yield factory
    await engine.dispose()


@pytest.fixture
def orders(session_factory) -> OrderStore:
    return OrderStore(session_factory)


@pytest.fixture
def payments(session_factory) -> PaymentStore:
    return PaymentStore(session_factory)


@pytest.fixture
def allocator(session_factory) -> OrderIdAllocator:
    return OrderIdAllocator(session_factory)


@pytest.fixture
def catalog() -> MemoryCatalog:
    return MemoryCatalog([
        Meal(1, "Falafel bowl", Decimal("9.99")),
        Meal(2, "Lentil soup", Decimal("4.50")),
        Meal(3, "Baklava", Decimal("3.25")),
    ])


@pytest.fixture
def gateway() -> SimulatedGateway:
    return SimulatedGateway(latency=0)


@pytest.fixture
def processor(payments, gateway) -> PaymentProcessor:
    return PaymentProcessor(payments, gateway, timeout_seconds=1.0)


@pytest.fixture
def service(allocator, orders, payments, processor, catalog) -> OrderService:
    return OrderService(
        allocator=allocator,
        orders=orders,
        payments=payments,
        processor=processor,
        catalog=catalog,
    )
