"""
Order-ID allocator — atomic increment of the order sequence row.
"""

from __future__ import annotations

import asyncio

from combinators import lift as L
from kungfu import LazyCoroResult
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.errors import StoreUnavailable
from orderflow.log import get_logger
from orderflow.store._db import ORDER_SEQUENCE
from orderflow.store._tables import OrderSequenceTable

logger = get_logger("allocator")


class OrderIdAllocator:
    """
    Hands out strictly increasing order ids.

    Increment and read happen in one UPDATE ... RETURNING statement, so two
    callers can never observe the same value. The lock keeps in-process
    callers from queueing on the database write lock.

    Example:
        allocator = OrderIdAllocator(session_factory)
        match await allocator.allocate():
            case Ok(order_id): ...
            case Error(e): ...
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._lock = asyncio.Lock()

    async def next_id(self) -> int:
        """Raises on store failure."""
        async with self._lock:
            async with self._session_factory() as session:
                stmt = (
                    update(OrderSequenceTable)
                    .where(OrderSequenceTable.name == ORDER_SEQUENCE)
                    .values(value=OrderSequenceTable.value + 1)
                    .returning(OrderSequenceTable.value)
                    .execution_options(synchronize_session=False)
                )
                value = (await session.execute(stmt)).scalar_one()
                await session.commit()

        logger.debug("allocated order id %s", value)
        return value

    def allocate(self) -> LazyCoroResult[int, StoreUnavailable]:
        return L.catching_async(
            self.next_id,
            on_error=lambda e: StoreUnavailable("could not allocate order id", e),
        )


__all__ = ("OrderIdAllocator",)
