"""
Payment backend — the external charge call.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from enum import Enum
from typing import Protocol

from orderflow.domain import CardDetails
from orderflow.log import get_logger

logger = get_logger("gateway")


class ChargeDecision(Enum):
    APPROVED = "approved"
    DECLINED = "declined"


class PaymentBackend(Protocol):
    """Charges a card. May raise; the processor turns exceptions into errors."""

    async def charge(self, card: CardDetails, amount: Decimal) -> ChargeDecision: ...


class SimulatedGateway:
    """
    Stand-in gateway.

    Cards ending in 0000 are declined immediately; everything else is
    approved after `latency` seconds.
    """

    DECLINE_SUFFIX = "0000"

    def __init__(self, latency: float = 1.0) -> None:
        self.latency = latency

    async def charge(self, card: CardDetails, amount: Decimal) -> ChargeDecision:
        if card.number.endswith(self.DECLINE_SUFFIX):
            logger.info("declined card ending %s for %s", card.number[-4:], amount)
            return ChargeDecision.DECLINED

        if self.latency > 0:
            await asyncio.sleep(self.latency)
        return ChargeDecision.APPROVED


__all__ = ("ChargeDecision", "PaymentBackend", "SimulatedGateway")
