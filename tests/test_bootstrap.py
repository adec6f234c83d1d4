"""
Wiring from Settings.
"""

from __future__ import annotations

import pytest

from orderflow.bootstrap import build
from orderflow.config import Settings
from orderflow.domain import OrderStatus

from tests.conftest import card_command, ok


@pytest.mark.asyncio
async def test_build_from_settings(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        gateway_latency_seconds=0,
        payment_timeout_seconds=1.0,
    )
    wiring = await build(settings)
    try:
        placed = ok(await wiring.service.create_with_payment(card_command()))
        assert placed.status is OrderStatus.PAID
        assert placed.order_id == 1
    finally:
        await wiring.close()
