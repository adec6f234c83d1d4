"""
Order store — orders and their line items.

All methods return Result; driver exceptions become StoreUnavailable.
Each call opens its own session and commits before returning.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any, cast

from kungfu import Result, Ok, Error
from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from orderflow.domain import (
    IdempotentOrder,
    Order,
    OrderItem,
    OrderStatus,
    from_cents,
    to_cents,
)
from orderflow.errors import (
    DuplicateIdempotencyKey,
    DuplicateOrderId,
    InvalidTransition,
    ItemInsertFailed,
    StoreUnavailable,
)
from orderflow.log import get_logger
from orderflow.store._tables import OrderItemTable, OrderTable
from orderflow.transitions import can_transition

logger = get_logger("store")


def _to_order(row: OrderTable) -> Order:
    return Order(
        order_id=row.order_id,
        user_id=row.user_id,
        total_price=from_cents(row.total_cents),
        status=OrderStatus(row.status),
        items=tuple(OrderItem(meal_id=i.meal_id, quantity=i.quantity) for i in row.items),
        shipping_address=row.shipping_address,
        created_at=row.created_at,
    )


class OrderStore:
    """
    Durable record of orders.

    Example:
        store = OrderStore(session_factory)
        match await store.create_order(17, user_id=1, total_price=Decimal("9.50")):
            case Ok(order_id): ...
            case Error(DuplicateOrderId()): ...
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ───────────────────────────────────────────────────────────────────────────
    # Writes
    # ───────────────────────────────────────────────────────────────────────────

    async def create_order(
        self,
        order_id: int,
        user_id: int,
        total_price: Decimal,
        status: OrderStatus = OrderStatus.PENDING,
        shipping_address: str | None = None,
        idempotency_key: str | None = None,
        fingerprint: str | None = None,
    ) -> Result[int, DuplicateOrderId | DuplicateIdempotencyKey | StoreUnavailable]:
        try:
            async with self._session_factory() as session:
                session.add(OrderTable(
                    order_id=order_id,
                    user_id=user_id,
                    total_cents=to_cents(total_price),
                    status=status.value,
                    shipping_address=shipping_address,
                    idempotency_key=idempotency_key,
                    idempotency_fingerprint=fingerprint,
                ))
                await session.commit()
                return Ok(order_id)

        except IntegrityError as e:
            return await self._classify_conflict(order_id, idempotency_key, e)

        except Exception as e:
            return Error(StoreUnavailable(f"failed to create order {order_id}", e))

    async def _classify_conflict(
        self,
        order_id: int,
        idempotency_key: str | None,
        cause: IntegrityError,
    ) -> Result[int, DuplicateOrderId | DuplicateIdempotencyKey | StoreUnavailable]:
        try:
            async with self._session_factory() as session:
                if await session.get(OrderTable, order_id) is not None:
                    return Error(DuplicateOrderId(order_id))
        except Exception as e:
            return Error(StoreUnavailable(f"failed to create order {order_id}", e))

        if idempotency_key is not None:
            return Error(DuplicateIdempotencyKey(idempotency_key))
        return Error(StoreUnavailable(f"failed to create order {order_id}", cause))

    async def add_items(
        self,
        order_id: int,
        items: Sequence[OrderItem],
    ) -> Result[int, ItemInsertFailed | StoreUnavailable]:
        """Insert all items in one transaction. Returns the number inserted."""
        try:
            async with self._session_factory() as session:
                for position, item in enumerate(items, start=1):
                    session.add(OrderItemTable(
                        order_id=order_id,
                        position=position,
                        meal_id=item.meal_id,
                        quantity=item.quantity,
                    ))
                    try:
                        await session.flush()
                    except Exception as e:
                        await session.rollback()
                        logger.error(
                            "item #%s (meal %s) of order %s rejected: %s",
                            position, item.meal_id, order_id, e,
                        )
                        return Error(ItemInsertFailed(order_id, item.meal_id, position, e))

                await session.commit()
                return Ok(len(items))

        except Exception as e:
            return Error(StoreUnavailable(f"failed to add items to order {order_id}", e))

    async def update_status(
        self,
        order_id: int,
        new_status: OrderStatus,
    ) -> Result[bool, StoreUnavailable]:
        """Unvalidated write. Ok(False) when the order does not exist."""
        try:
            async with self._session_factory() as session:
                stmt = (
                    update(OrderTable)
                    .where(OrderTable.order_id == order_id)
                    .values(status=new_status.value)
                )
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                await session.commit()
                return Ok(cursor.rowcount > 0)

        except Exception as e:
            return Error(StoreUnavailable(f"failed to update order {order_id}", e))

    async def transition_status(
        self,
        order_id: int,
        new_status: OrderStatus,
    ) -> Result[bool, InvalidTransition | StoreUnavailable]:
        """
        Validated status change. Ok(False) when the order does not exist.

        Compare-and-swap on the current status; a lost race re-reads and
        re-validates. The state machine has no cycles, so this terminates.
        """
        try:
            async with self._session_factory() as session:
                while True:
                    current_raw = await session.scalar(
                        select(OrderTable.status).where(OrderTable.order_id == order_id)
                    )
                    if current_raw is None:
                        return Ok(False)

                    current = OrderStatus(current_raw)
                    if not can_transition(current, new_status):
                        return Error(InvalidTransition(order_id, current, new_status))
                    if current == new_status:
                        return Ok(True)

                    stmt = (
                        update(OrderTable)
                        .where(
                            OrderTable.order_id == order_id,
                            OrderTable.status == current.value,
                        )
                        .values(status=new_status.value)
                    )
                    cursor = cast(CursorResult[Any], await session.execute(stmt))
                    await session.commit()
                    if cursor.rowcount > 0:
                        logger.info(
                            "order %s moved %s -> %s",
                            order_id, current.value, new_status.value,
                        )
                        return Ok(True)

        except Exception as e:
            return Error(StoreUnavailable(f"failed to update order {order_id}", e))

    async def record_outcome(
        self,
        order_id: int,
        outcome: str,
    ) -> Result[None, StoreUnavailable]:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    update(OrderTable)
                    .where(OrderTable.order_id == order_id)
                    .values(idempotency_outcome=outcome)
                )
                await session.commit()
                return Ok(None)

        except Exception as e:
            return Error(StoreUnavailable(f"failed to record outcome of order {order_id}", e))

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    async def get_order(self, order_id: int) -> Result[Order | None, StoreUnavailable]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(OrderTable)
                    .where(OrderTable.order_id == order_id)
                    .options(selectinload(OrderTable.items))
                )
                row = (await session.execute(stmt)).scalar_one_or_none()
                return Ok(None if row is None else _to_order(row))

        except Exception as e:
            return Error(StoreUnavailable(f"failed to load order {order_id}", e))

    async def get_orders_for_user(self, user_id: int) -> Result[list[Order], StoreUnavailable]:
        """Newest first."""
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(OrderTable)
                    .where(OrderTable.user_id == user_id)
                    .order_by(OrderTable.order_id.desc())
                    .options(selectinload(OrderTable.items))
                )
                rows = (await session.execute(stmt)).scalars().all()
                return Ok([_to_order(row) for row in rows])

        except Exception as e:
            return Error(StoreUnavailable(f"failed to load orders of user {user_id}", e))

    async def find_by_idempotency_key(
        self,
        key: str,
    ) -> Result[IdempotentOrder | None, StoreUnavailable]:
        try:
            async with self._session_factory() as session:
                stmt = select(OrderTable).where(OrderTable.idempotency_key == key)
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    return Ok(None)
                return Ok(IdempotentOrder(
                    order_id=row.order_id,
                    status=OrderStatus(row.status),
                    fingerprint=row.idempotency_fingerprint,
                    outcome=row.idempotency_outcome,
                ))

        except Exception as e:
            return Error(StoreUnavailable(f"failed to look up idempotency key {key!r}", e))


__all__ = ("OrderStore",)
