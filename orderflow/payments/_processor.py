"""
Payment processor — runs one payment attempt and records its outcome.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from decimal import Decimal

from combinators import lift as L
from kungfu import Result, Ok, Error, LazyCoroResult

from orderflow.domain import (
    CardDetails,
    PaymentMethod,
    PaymentReceipt,
    PaymentRecord,
    PaymentRequest,
    PaymentStatus,
)
from orderflow.errors import (
    InvalidPaymentMethod,
    PaymentBackendError,
    PaymentDeclined,
    PaymentFailure,
    PaymentTimeout,
    UnrecordedCharge,
)
from orderflow.log import get_logger
from orderflow.payments._gateway import ChargeDecision, PaymentBackend
from orderflow.payments._validator import validate
from orderflow.store import PaymentStore

logger = get_logger("payments")

CASH_CONFIRMED = "cash on delivery order confirmed"
PAYMENT_SUCCESSFUL = "payment successful"


def new_payment_id() -> str:
    return f"PAY_{int(time.time() * 1000)}_{uuid.uuid4().hex}"


class PaymentProcessor:
    """
    Executes cash and card payments.

    Records are written only for cash (pending) and approved card charges
    (completed). Validation failures, declines, timeouts and backend errors
    leave no record.

    Example:
        processor = PaymentProcessor(payments, SimulatedGateway(), timeout_seconds=5)
        match await processor.process(request, Decimal("19.98"), order_id=17):
            case Ok(receipt): ...
            case Error(PaymentDeclined()): ...
    """

    def __init__(
        self,
        payments: PaymentStore,
        backend: PaymentBackend,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._payments = payments
        self._backend = backend
        self._timeout = timeout_seconds

    async def process(
        self,
        request: PaymentRequest,
        amount: Decimal,
        order_id: int,
    ) -> Result[PaymentReceipt, PaymentFailure]:
        match validate(request):
            case Ok(None):
                return await self._cash(amount, order_id)
            case Ok(card):
                return await self._card(card, amount, order_id)
            case Error(InvalidPaymentMethod() as e):
                logger.info("order %s: unknown payment method %r", order_id, request.method)
                return Error(e)
            case Error(e):
                logger.info("order %s: card details rejected", order_id)
                return Error(e)

    # ───────────────────────────────────────────────────────────────────────────
    # Cash
    # ───────────────────────────────────────────────────────────────────────────

    async def _cash(
        self,
        amount: Decimal,
        order_id: int,
    ) -> Result[PaymentReceipt, PaymentFailure]:
        record = PaymentRecord(
            payment_id=new_payment_id(),
            order_id=order_id,
            method=PaymentMethod.CASH,
            amount=amount,
            status=PaymentStatus.PENDING,
        )
        match await self._payments.save(record):
            case Ok(saved):
                return Ok(PaymentReceipt(
                    payment_id=saved.payment_id,
                    method=PaymentMethod.CASH,
                    status=PaymentStatus.PENDING,
                    message=CASH_CONFIRMED,
                ))
            case Error(e):
                return Error(e)

    # ───────────────────────────────────────────────────────────────────────────
    # Card
    # ───────────────────────────────────────────────────────────────────────────

    async def _card(
        self,
        card: CardDetails,
        amount: Decimal,
        order_id: int,
    ) -> Result[PaymentReceipt, PaymentFailure]:
        match await self._charge(card, amount):
            case Ok(ChargeDecision.APPROVED):
                pass
            case Ok(ChargeDecision.DECLINED):
                return Error(PaymentDeclined())
            case Error(e):
                return Error(e)

        record = PaymentRecord(
            payment_id=new_payment_id(),
            order_id=order_id,
            method=PaymentMethod.CARD,
            amount=amount,
            status=PaymentStatus.COMPLETED,
        )
        match await self._payments.save(record):
            case Ok(saved):
                return Ok(PaymentReceipt(
                    payment_id=saved.payment_id,
                    method=PaymentMethod.CARD,
                    status=PaymentStatus.COMPLETED,
                    message=PAYMENT_SUCCESSFUL,
                ))
            case Error(e):
                logger.critical(
                    "order %s: card charged %s but payment %s was not recorded: %s",
                    order_id, amount, record.payment_id, e.message,
                )
                return Error(UnrecordedCharge(order_id, record.payment_id, e))

    def _charge(
        self,
        card: CardDetails,
        amount: Decimal,
    ) -> LazyCoroResult[ChargeDecision, PaymentTimeout | PaymentBackendError]:
        async def bounded() -> ChargeDecision:
            async with asyncio.timeout(self._timeout):
                return await self._backend.charge(card, amount)

        return L.catching_async(bounded, on_error=self._charge_error)

    def _charge_error(self, e: Exception) -> PaymentTimeout | PaymentBackendError:
        if isinstance(e, TimeoutError):
            logger.warning("payment backend timed out after %ss", self._timeout)
            return PaymentTimeout(self._timeout)
        logger.error("payment backend failed: %r", e)
        return PaymentBackendError(cause=e)


__all__ = ("CASH_CONFIRMED", "PAYMENT_SUCCESSFUL", "new_payment_id", "PaymentProcessor")
