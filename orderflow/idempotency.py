"""
Idempotent create — request fingerprints and stored outcomes.

The outcome of a finished create is stored as JSON on the order row and
decoded on replay.
"""

from __future__ import annotations

import hashlib
import json

from kungfu import Result, Ok, Error

from orderflow.domain import (
    Classification,
    CreateOrderCommand,
    OrderPlaced,
    OrderStatus,
    to_money,
)
from orderflow.errors import CreateOrderFailure


def request_fingerprint(command: CreateOrderCommand) -> str:
    """
    SHA-256 over the canonical request.

    Only the last four card digits take part; CVV never does.
    """
    payment = command.payment
    card_tail = None
    if payment.card_number is not None:
        card_tail = "".join(payment.card_number.split())[-4:]

    canonical = json.dumps(
        {
            "user_id": command.user_id,
            "items": [[item.meal_id, item.quantity] for item in command.items],
            "total_price": str(to_money(command.total_price)),
            "payment": {
                "method": payment.method,
                "card_tail": card_tail,
                "expiry": payment.expiry,
            },
            "shipping_address": command.shipping_address,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode()).hexdigest()


def encode_outcome(outcome: Result[OrderPlaced, CreateOrderFailure]) -> str:
    match outcome:
        case Ok(placed):
            return json.dumps({
                "ok": True,
                "order_id": placed.order_id,
                "payment_id": placed.payment_id,
                "status": placed.status.value,
                "message": placed.message,
            })
        case Error(failure):
            return json.dumps({
                "ok": False,
                "classification": failure.classification.value,
                "message": failure.message,
                "order_id": failure.order_id,
            })


def decode_outcome(raw: str) -> Result[OrderPlaced, CreateOrderFailure]:
    """Rebuild a stored outcome, flagged as replayed."""
    data = json.loads(raw)
    if data["ok"]:
        return Ok(OrderPlaced(
            order_id=data["order_id"],
            payment_id=data["payment_id"],
            status=OrderStatus(data["status"]),
            message=data["message"],
            replayed=True,
        ))
    return Error(CreateOrderFailure(
        classification=Classification(data["classification"]),
        message=data["message"],
        order_id=data["order_id"],
        replayed=True,
    ))


__all__ = ("request_fingerprint", "encode_outcome", "decode_outcome")
