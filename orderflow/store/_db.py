"""
Database setup.
"""

from __future__ import annotations

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from orderflow.log import get_logger
from orderflow.store._tables import Base, OrderSequenceTable, OrderTable

logger = get_logger("store")

ORDER_SEQUENCE = "orders"


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """
    Create tables, seed the order sequence, return (session_factory, engine).

    The sequence starts at MAX(order_id) so existing orders are never reissued.
    """
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

        existing = await conn.scalar(
            select(OrderSequenceTable.value).where(
                OrderSequenceTable.name == ORDER_SEQUENCE
            )
        )
        if existing is None:
            highest = await conn.scalar(
                select(func.coalesce(func.max(OrderTable.order_id), 0))
            )
            await conn.execute(
                insert(OrderSequenceTable).values(
                    name=ORDER_SEQUENCE, value=highest or 0
                )
            )
            logger.info("order sequence seeded at %s", highest or 0)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = ("ORDER_SEQUENCE", "create_database")
