"""
Wiring — build the service from Settings.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from orderflow.catalog import Catalog, MemoryCatalog
from orderflow.config import Settings
from orderflow.log import get_logger
from orderflow.orchestrator import OrderService
from orderflow.payments import PaymentBackend, PaymentProcessor, SimulatedGateway
from orderflow.store import (
    OrderIdAllocator,
    OrderStore,
    PaymentStore,
    create_database,
)

logger = get_logger("bootstrap")


@dataclass(frozen=True, slots=True)
class Wiring:
    service: OrderService
    engine: AsyncEngine

    async def close(self) -> None:
        await self.engine.dispose()


async def build(
    settings: Settings,
    catalog: Catalog | None = None,
    backend: PaymentBackend | None = None,
) -> Wiring:
    """
    Open the database and assemble the service.

    Example:
        wiring = await build(Settings.from_env())
        try:
            await wiring.service.create_with_payment(command)
        finally:
            await wiring.close()
    """
    session_factory, engine = await create_database(settings.database_url)

    orders = OrderStore(session_factory)
    payments = PaymentStore(session_factory)
    processor = PaymentProcessor(
        payments,
        backend if backend is not None else SimulatedGateway(settings.gateway_latency_seconds),
        timeout_seconds=settings.payment_timeout_seconds,
    )
    service = OrderService(
        allocator=OrderIdAllocator(session_factory),
        orders=orders,
        payments=payments,
        processor=processor,
        catalog=catalog if catalog is not None else MemoryCatalog(),
        verify_total=settings.verify_total,
    )

    logger.info("orderflow ready (driver=%s)", settings.database_url.split("://", 1)[0])
    return Wiring(service=service, engine=engine)


__all__ = ("Wiring", "build")
