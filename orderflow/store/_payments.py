"""
Payment store — one row per payment attempt that produced a record.
"""

from __future__ import annotations

from collections.abc import Iterable

from kungfu import Result, Ok, Error
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.domain import (
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    from_cents,
    to_cents,
)
from orderflow.errors import StoreUnavailable
from orderflow.store._tables import PaymentTable


def _to_record(row: PaymentTable) -> PaymentRecord:
    return PaymentRecord(
        payment_id=row.payment_id,
        order_id=row.order_id,
        method=PaymentMethod(row.method),
        amount=from_cents(row.amount_cents),
        status=PaymentStatus(row.status),
        created_at=row.created_at,
    )


class PaymentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, record: PaymentRecord) -> Result[PaymentRecord, StoreUnavailable]:
        """Insert the record. A duplicate payment_id is rejected by the primary key."""
        try:
            async with self._session_factory() as session:
                row = PaymentTable(
                    payment_id=record.payment_id,
                    order_id=record.order_id,
                    method=record.method.value,
                    amount_cents=to_cents(record.amount),
                    status=record.status.value,
                )
                session.add(row)
                await session.commit()
                return Ok(_to_record(row))

        except Exception as e:
            return Error(StoreUnavailable(f"failed to save payment {record.payment_id}", e))

    async def for_order(self, order_id: int) -> Result[list[PaymentRecord], StoreUnavailable]:
        match await self.for_orders([order_id]):
            case Ok(by_order):
                return Ok(by_order.get(order_id, []))
            case Error(e):
                return Error(e)

    async def for_orders(
        self,
        order_ids: Iterable[int],
    ) -> Result[dict[int, list[PaymentRecord]], StoreUnavailable]:
        """Payments grouped by order, oldest first within an order."""
        ids = list(order_ids)
        if not ids:
            return Ok({})

        try:
            async with self._session_factory() as session:
                stmt = (
                    select(PaymentTable)
                    .where(PaymentTable.order_id.in_(ids))
                    .order_by(PaymentTable.created_at, PaymentTable.payment_id)
                )
                rows = (await session.execute(stmt)).scalars().all()

            by_order: dict[int, list[PaymentRecord]] = {}
            for row in rows:
                by_order.setdefault(row.order_id, []).append(_to_record(row))
            return Ok(by_order)

        except Exception as e:
            return Error(StoreUnavailable("failed to load payments", e))


__all__ = ("PaymentStore",)
