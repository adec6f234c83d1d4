"""
Order-payment orchestrator.

One create-with-payment run is a saga:

    allocate-id ──► persist-order ──► persist-items ──► pay
                        │ compensate: mark cancelled

followed by finalizing the status (confirmed for cash, paid for card).
Finalizing is the commit point; a failure there, or a failed compensation,
is a reconciliation anomaly rather than a plain error.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal

from kungfu import Result, Ok, Error, LazyCoroResult

from orderflow import saga as S
from orderflow.catalog import Catalog
from orderflow.domain import (
    Classification,
    CreateOrderCommand,
    IdempotentOrder,
    INT64_MAX,
    OrderPlaced,
    OrderStatus,
    OrderView,
    PaymentMethod,
    PaymentReceipt,
    SagaStage,
    fits_cents,
    to_money,
)
from orderflow.errors import (
    CreateOrderFailure,
    DuplicateIdempotencyKey,
    DuplicateOrderId,
    IdempotencyConflict,
    InvalidOrderRequest,
    InvalidTransition,
    ItemInsertFailed,
    PaymentBackendError,
    PaymentDeclined,
    PaymentFailure,
    PaymentTimeout,
    ReconciliationAnomaly,
    SagaFailure,
    StoreUnavailable,
    TotalMismatch,
    UnrecordedCharge,
    ValidationError,
)
from orderflow.idempotency import decode_outcome, encode_outcome, request_fingerprint
from orderflow.log import get_logger
from orderflow.payments import CASH_CONFIRMED, PAYMENT_SUCCESSFUL, PaymentProcessor
from orderflow.store import OrderIdAllocator, OrderStore, PaymentStore
from orderflow.transitions import settled_status
from orderflow.views import OrdersQuery, load_views

logger = get_logger("orchestrator")

INTERNAL_ERROR_MESSAGE = "order could not be created"


class CompensationFailed(Exception):
    """Raised by a compensator that could not undo its step."""


@dataclass(slots=True)
class _Progress:
    stage: SagaStage = SagaStage.START
    order_id: int | None = None


def _failure(
    classification: Classification,
    message: str,
    reason: object | None = None,
    order_id: int | None = None,
) -> Result[OrderPlaced, CreateOrderFailure]:
    return Error(CreateOrderFailure(classification, message, reason, order_id))


class OrderService:
    """
    Orders with payment.

    Example:
        service = OrderService(allocator, orders, payments, processor, catalog)

        match await service.create_with_payment(command):
            case Ok(placed):
                print(placed.order_id, placed.status)
            case Error(failure):
                print(failure.classification, failure.message)
    """

    def __init__(
        self,
        allocator: OrderIdAllocator,
        orders: OrderStore,
        payments: PaymentStore,
        processor: PaymentProcessor,
        catalog: Catalog,
        verify_total: bool = False,
    ) -> None:
        self._allocator = allocator
        self._orders = orders
        self._payments = payments
        self._processor = processor
        self._catalog = catalog
        self._verify_total = verify_total

    # ═══════════════════════════════════════════════════════════════════════════
    # Create with payment
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_with_payment(
        self,
        command: CreateOrderCommand,
    ) -> Result[OrderPlaced, CreateOrderFailure]:
        """
        Create an order and run its payment to a terminal status.

        The run is shielded: a caller that goes away does not leave the
        order half-written.
        """
        return await asyncio.shield(self._create(command))

    async def _create(
        self,
        command: CreateOrderCommand,
    ) -> Result[OrderPlaced, CreateOrderFailure]:
        match await self._check_request(command):
            case Error(StoreUnavailable() as e):
                return _failure(Classification.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, e)
            case Error(e):
                return _failure(Classification.INVALID_REQUEST, e.message, e)
            case Ok(_):
                pass

        key = command.idempotency_key
        fingerprint = request_fingerprint(command) if key is not None else None
        if key is not None:
            match await self._replay(key, fingerprint):
                case Ok(None):
                    pass
                case Ok(previous):
                    return previous
                case Error(failure):
                    return Error(failure)

        progress = _Progress()
        match await S.run(self._saga(command, fingerprint, progress)):
            case Ok(result):
                order_id, receipt = result.value
                outcome = await self._finalize(order_id, receipt, progress)
            case Error(S.SagaError(error=DuplicateIdempotencyKey())):
                # lost the race to a concurrent request with the same key
                match await self._replay(key or "", fingerprint):
                    case Ok(previous) if previous is not None:
                        return previous
                    case Ok(_):
                        return _failure(
                            Classification.CONFLICT,
                            IdempotencyConflict(key or "").message,
                        )
                    case Error(failure):
                        return Error(failure)
            case Error(err):
                outcome = self._classify(err, progress)

        if key is not None and progress.order_id is not None:
            match await self._orders.record_outcome(progress.order_id, encode_outcome(outcome)):
                case Error(e):
                    logger.error(
                        "order %s: outcome for key %r not recorded: %s",
                        progress.order_id, key, e.message,
                    )
                case Ok(_):
                    pass

        return outcome

    # ───────────────────────────────────────────────────────────────────────────
    # Saga
    # ───────────────────────────────────────────────────────────────────────────

    def _saga(
        self,
        command: CreateOrderCommand,
        fingerprint: str | None,
        progress: _Progress,
    ) -> S.SagaExpr[tuple[int, PaymentReceipt], SagaFailure]:
        return (
            S.step("allocate-id", self._allocator.allocate())
            .then(lambda order_id: S.step(
                "persist-order",
                self._persist_order(order_id, command, fingerprint, progress),
                compensate=self._cancel,
            ))
            .then(lambda order_id: S.step(
                "persist-items",
                self._persist_items(order_id, command, progress),
            ))
            .then(lambda order_id: S.step(
                "pay",
                self._pay(order_id, command, progress),
            ))
        )

    def _persist_order(
        self,
        order_id: int,
        command: CreateOrderCommand,
        fingerprint: str | None,
        progress: _Progress,
    ) -> LazyCoroResult[int, DuplicateOrderId | DuplicateIdempotencyKey | StoreUnavailable]:
        async def impl() -> Result[int, DuplicateOrderId | DuplicateIdempotencyKey | StoreUnavailable]:
            progress.stage = SagaStage.ID_ALLOCATED
            match await self._orders.create_order(
                order_id,
                user_id=command.user_id,
                total_price=to_money(command.total_price),
                status=OrderStatus.PENDING,
                shipping_address=command.shipping_address,
                idempotency_key=command.idempotency_key,
                fingerprint=fingerprint,
            ):
                case Ok(_):
                    progress.order_id = order_id
                    progress.stage = SagaStage.ORDER_PERSISTED
                    return Ok(order_id)
                case Error(e):
                    return Error(e)

        return LazyCoroResult(impl)

    def _persist_items(
        self,
        order_id: int,
        command: CreateOrderCommand,
        progress: _Progress,
    ) -> LazyCoroResult[int, ItemInsertFailed | StoreUnavailable]:
        async def impl() -> Result[int, ItemInsertFailed | StoreUnavailable]:
            match await self._orders.add_items(order_id, command.items):
                case Ok(_):
                    progress.stage = SagaStage.ITEMS_PERSISTED
                    return Ok(order_id)
                case Error(e):
                    return Error(e)

        return LazyCoroResult(impl)

    def _pay(
        self,
        order_id: int,
        command: CreateOrderCommand,
        progress: _Progress,
    ) -> LazyCoroResult[tuple[int, PaymentReceipt], PaymentFailure]:
        async def impl() -> Result[tuple[int, PaymentReceipt], PaymentFailure]:
            progress.stage = SagaStage.PAYMENT_ATTEMPTED
            match await self._processor.process(
                command.payment, to_money(command.total_price), order_id
            ):
                case Ok(receipt):
                    return Ok((order_id, receipt))
                case Error(e):
                    return Error(e)

        return LazyCoroResult(impl)

    async def _cancel(self, order_id: int) -> None:
        match await self._orders.update_status(order_id, OrderStatus.CANCELLED):
            case Ok(True):
                logger.warning("order %s cancelled", order_id)
            case Ok(False):
                raise CompensationFailed(f"order {order_id} vanished before cancel")
            case Error(e):
                raise CompensationFailed(e.message)

    # ───────────────────────────────────────────────────────────────────────────
    # Outcome
    # ───────────────────────────────────────────────────────────────────────────

    async def _finalize(
        self,
        order_id: int,
        receipt: PaymentReceipt,
        progress: _Progress,
    ) -> Result[OrderPlaced, CreateOrderFailure]:
        status = settled_status(receipt.method)

        match await self._orders.update_status(order_id, status):
            case Ok(True):
                progress.stage = SagaStage.FINALIZED
                logger.info("order %s %s (%s)", order_id, status.value, receipt.payment_id)
                return Ok(OrderPlaced(
                    order_id=order_id,
                    payment_id=receipt.payment_id,
                    status=status,
                    message=receipt.message,
                ))
            case Ok(False):
                reason = "order row missing at finalize"
            case Error(e):
                reason = e.message

        return self._anomaly(ReconciliationAnomaly(
            order_id=order_id,
            expected_status=status,
            payment_id=receipt.payment_id,
            reason=reason,
        ))

    def _classify(
        self,
        err: S.SagaError[SagaFailure],
        progress: _Progress,
    ) -> Result[OrderPlaced, CreateOrderFailure]:
        error = err.error
        order_id = progress.order_id
        logger.info(
            "order %s: step %s failed at stage %s: %r",
            order_id, err.failed_step, progress.stage.value, error,
        )

        if order_id is not None and not err.rollback_complete:
            return self._anomaly(ReconciliationAnomaly(
                order_id=order_id,
                expected_status=OrderStatus.CANCELLED,
                payment_id=None,
                reason=f"cancel after failed {err.failed_step} did not apply",
            ))

        match error:
            case UnrecordedCharge(payment_id=payment_id):
                return self._anomaly(ReconciliationAnomaly(
                    order_id=error.order_id,
                    expected_status=OrderStatus.PAID,
                    payment_id=payment_id,
                    reason="card charged without a payment record",
                ))
            case ValidationError() | PaymentDeclined() | PaymentTimeout() | PaymentBackendError():
                return _failure(
                    Classification.PAYMENT_REQUIRED, error.message, error, order_id
                )
            case _:
                return _failure(
                    Classification.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, error, order_id
                )

    def _anomaly(
        self,
        anomaly: ReconciliationAnomaly,
    ) -> Result[OrderPlaced, CreateOrderFailure]:
        logger.critical(
            "RECONCILIATION order=%s expected=%s payment=%s: %s",
            anomaly.order_id,
            anomaly.expected_status.value,
            anomaly.payment_id,
            anomaly.reason,
        )
        return _failure(
            Classification.RECONCILIATION_ANOMALY,
            anomaly.message,
            anomaly,
            anomaly.order_id,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Request checks & replay
    # ───────────────────────────────────────────────────────────────────────────

    async def _check_request(
        self,
        command: CreateOrderCommand,
    ) -> Result[None, ValidationError | StoreUnavailable]:
        if not command.items:
            return Error(InvalidOrderRequest("items", "order has no items"))
        if any(item.quantity <= 0 for item in command.items):
            return Error(InvalidOrderRequest("items", "item quantity must be positive"))
        if any(
            item.quantity > INT64_MAX or not 0 <= item.meal_id <= INT64_MAX
            for item in command.items
        ):
            return Error(InvalidOrderRequest("items", "item is out of range"))
        if not fits_cents(command.total_price):
            return Error(InvalidOrderRequest("total", "total price is out of range"))
        if command.total_price < 0:
            return Error(InvalidOrderRequest("total", "total price must not be negative"))

        if self._verify_total:
            return await self._check_total(command)
        return Ok(None)

    async def _check_total(
        self,
        command: CreateOrderCommand,
    ) -> Result[None, ValidationError | StoreUnavailable]:
        try:
            meals = await self._catalog.get_meals(item.meal_id for item in command.items)
        except Exception as e:
            logger.error("catalog lookup for total check failed: %s", e)
            return Error(StoreUnavailable("catalog unavailable", e))

        missing = [i.meal_id for i in command.items if i.meal_id not in meals]
        if missing:
            return Error(InvalidOrderRequest("items", f"unknown meal {missing[0]}"))

        expected = sum(
            (meals[i.meal_id].price * i.quantity for i in command.items),
            Decimal("0"),
        )
        if to_money(expected) != to_money(command.total_price):
            return Error(TotalMismatch())
        return Ok(None)

    async def _replay(
        self,
        key: str,
        fingerprint: str | None,
    ) -> Result[Result[OrderPlaced, CreateOrderFailure] | None, CreateOrderFailure]:
        """Ok(None) when the key is new, Ok(outcome) to replay, Error to refuse."""
        match await self._orders.find_by_idempotency_key(key):
            case Error(e):
                logger.error("idempotency lookup for %r failed: %s", key, e.message)
                return Error(CreateOrderFailure(
                    Classification.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, e
                ))
            case Ok(None):
                return Ok(None)
            case Ok(previous):
                pass

        if previous.fingerprint != fingerprint:
            e = InvalidOrderRequest(
                "idempotency_key", "idempotency key reused with a different request"
            )
            return Error(CreateOrderFailure(
                Classification.INVALID_REQUEST, e.message, e, previous.order_id
            ))
        if previous.outcome is None:
            return await self._rebuild(key, previous)

        logger.info("replaying order %s for key %r", previous.order_id, key)
        return Ok(decode_outcome(previous.outcome))

    async def _rebuild(
        self,
        key: str,
        previous: IdempotentOrder,
    ) -> Result[Result[OrderPlaced, CreateOrderFailure] | None, CreateOrderFailure]:
        """
        Outcome for a keyed order whose outcome was never stored.

        A pending order is still in flight (or stuck awaiting reconciliation)
        and stays a conflict. Settled and cancelled orders are rebuilt from
        their status and payment records, then stored for later replays.
        """
        order_id = previous.order_id
        in_flight = IdempotencyConflict(key)
        conflict = Error(CreateOrderFailure(
            Classification.CONFLICT, in_flight.message, in_flight, order_id
        ))

        match previous.status:
            case OrderStatus.PENDING:
                return conflict
            case OrderStatus.CANCELLED:
                outcome: Result[OrderPlaced, CreateOrderFailure] = _failure(
                    Classification.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, None, order_id
                )
            case status:
                match await self._payments.for_order(order_id):
                    case Error(e):
                        logger.error("payments lookup for order %s failed: %s", order_id, e.message)
                        return Error(CreateOrderFailure(
                            Classification.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, e
                        ))
                    case Ok(records):
                        pass
                if not records:
                    return conflict
                record = records[-1]
                outcome = Ok(OrderPlaced(
                    order_id=order_id,
                    payment_id=record.payment_id,
                    status=status,
                    message=(
                        CASH_CONFIRMED if record.method is PaymentMethod.CASH
                        else PAYMENT_SUCCESSFUL
                    ),
                ))

        logger.warning(
            "order %s: rebuilt missing outcome for key %r from status %s",
            order_id, key, previous.status.value,
        )
        encoded = encode_outcome(outcome)
        match await self._orders.record_outcome(order_id, encoded):
            case Error(e):
                logger.error("order %s: rebuilt outcome not recorded: %s", order_id, e.message)
            case Ok(_):
                pass
        return Ok(decode_outcome(encoded))

    # ═══════════════════════════════════════════════════════════════════════════
    # Administrative status path
    # ═══════════════════════════════════════════════════════════════════════════

    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
    ) -> Result[bool, InvalidTransition | StoreUnavailable]:
        """Validated transition. Ok(False) when the order does not exist."""
        return await self._orders.transition_status(order_id, new_status)

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_order(self, order_id: int) -> Result[OrderView | None, StoreUnavailable]:
        match await load_views(
            OrdersQuery(order_id=order_id), self._orders, self._payments, self._catalog
        ):
            case Ok(views):
                return Ok(views[0] if views else None)
            case Error(e):
                return Error(e)

    async def get_orders_for_user(
        self,
        user_id: int,
    ) -> Result[list[OrderView], StoreUnavailable]:
        return await load_views(
            OrdersQuery(user_id=user_id), self._orders, self._payments, self._catalog
        )


__all__ = ("CompensationFailed", "OrderService", "INTERNAL_ERROR_MESSAGE")
