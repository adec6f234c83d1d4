"""
Order store: writes, reads, conflicts and validated transitions.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from orderflow.domain import OrderItem, OrderStatus
from orderflow.errors import (
    DuplicateIdempotencyKey,
    DuplicateOrderId,
    InvalidTransition,
)

from tests.conftest import err, ok


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_and_read_back(self, orders):
        assert ok(await orders.create_order(
            1, user_id=7, total_price=Decimal("19.98"), shipping_address="12 Elm St"
        )) == 1
        ok(await orders.add_items(1, [OrderItem(3, 1), OrderItem(1, 2)]))

        order = ok(await orders.get_order(1))
        assert order.order_id == 1
        assert order.user_id == 7
        assert order.total_price == Decimal("19.98")
        assert order.status is OrderStatus.PENDING
        assert order.shipping_address == "12 Elm St"
        assert order.created_at is not None
        # insertion order preserved
        assert order.items == (OrderItem(3, 1), OrderItem(1, 2))

    @pytest.mark.asyncio
    async def test_missing_order_is_none(self, orders):
        assert ok(await orders.get_order(999)) is None

    @pytest.mark.asyncio
    async def test_duplicate_order_id(self, orders):
        ok(await orders.create_order(5, user_id=1, total_price=Decimal("1.00")))
        e = err(await orders.create_order(5, user_id=2, total_price=Decimal("2.00")))
        assert e == DuplicateOrderId(5)

    @pytest.mark.asyncio
    async def test_duplicate_idempotency_key(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00"), idempotency_key="k-1", fingerprint="f"))
        e = err(await orders.create_order(2, 1, Decimal("1.00"), idempotency_key="k-1", fingerprint="f"))
        assert e == DuplicateIdempotencyKey("k-1")

    @pytest.mark.asyncio
    async def test_orders_without_key_do_not_collide(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00")))
        ok(await orders.create_order(2, 1, Decimal("1.00")))

    @pytest.mark.asyncio
    async def test_money_round_trips_through_cents(self, orders):
        ok(await orders.create_order(1, 1, Decimal("0.10")))
        ok(await orders.create_order(2, 1, Decimal("1234.56")))
        assert ok(await orders.get_order(1)).total_price == Decimal("0.10")
        assert ok(await orders.get_order(2)).total_price == Decimal("1234.56")


class TestReads:
    @pytest.mark.asyncio
    async def test_orders_for_user_newest_first(self, orders):
        for order_id in (3, 1, 2):
            ok(await orders.create_order(order_id, user_id=7, total_price=Decimal("1.00")))
        ok(await orders.create_order(4, user_id=8, total_price=Decimal("1.00")))

        listed = ok(await orders.get_orders_for_user(7))
        assert [o.order_id for o in listed] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_orders_for_unknown_user(self, orders):
        assert ok(await orders.get_orders_for_user(404)) == []

    @pytest.mark.asyncio
    async def test_find_by_idempotency_key(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00"), idempotency_key="k", fingerprint="abc"))
        found = ok(await orders.find_by_idempotency_key("k"))
        assert found.order_id == 1
        assert found.fingerprint == "abc"
        assert found.outcome is None

        ok(await orders.record_outcome(1, '{"ok": true}'))
        assert ok(await orders.find_by_idempotency_key("k")).outcome == '{"ok": true}'
        assert ok(await orders.find_by_idempotency_key("other")) is None


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_unvalidated_write(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00"), status=OrderStatus.PAID))
        # saga path does not consult the state machine
        assert ok(await orders.update_status(1, OrderStatus.CANCELLED)) is True
        assert ok(await orders.get_order(1)).status is OrderStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_unknown_order_is_false(self, orders):
        assert ok(await orders.update_status(999, OrderStatus.CANCELLED)) is False


class TestTransitionStatus:
    @pytest.mark.asyncio
    async def test_allowed_transition(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00"), status=OrderStatus.CONFIRMED))
        assert ok(await orders.transition_status(1, OrderStatus.PAID)) is True
        assert ok(await orders.get_order(1)).status is OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00"), status=OrderStatus.CANCELLED))
        assert ok(await orders.transition_status(1, OrderStatus.CANCELLED)) is True

    @pytest.mark.asyncio
    async def test_terminal_status_rejected(self, orders):
        ok(await orders.create_order(1, 1, Decimal("1.00"), status=OrderStatus.PAID))
        e = err(await orders.transition_status(1, OrderStatus.PENDING))
        assert e == InvalidTransition(1, OrderStatus.PAID, OrderStatus.PENDING)
        assert "paid" in e.message
        assert ok(await orders.get_order(1)).status is OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_unknown_order_is_false(self, orders):
        assert ok(await orders.transition_status(999, OrderStatus.PAID)) is False
