"""
Payment validator — pure checks, no I/O.
"""

from __future__ import annotations

import re

from kungfu import Result, Ok, Error

from orderflow.domain import CardDetails, PaymentMethod, PaymentRequest
from orderflow.errors import InvalidCardDetails, InvalidPaymentMethod

CARD_NUMBER = re.compile(r"[0-9]{13,19}")
EXPIRY = re.compile(r"(0[1-9]|1[0-2])/[0-9]{2}")
CVV = re.compile(r"[0-9]{3}")
CARD_PREFIXES = ("4", "5")


def normalize_card_number(number: str) -> str:
    return re.sub(r"\s+", "", number)


def parse_method(raw: str) -> Result[PaymentMethod, InvalidPaymentMethod]:
    """Exact, case-sensitive match on the method name."""
    for method in PaymentMethod:
        if raw == method.value:
            return Ok(method)
    return Error(InvalidPaymentMethod())


def validate_card(request: PaymentRequest) -> Result[CardDetails, InvalidCardDetails]:
    """
    Shape checks only: 13-19 digits starting with 4 or 5, MM/YY, 3-digit CVV.

    No Luhn check and no expiry-date-in-the-past check.
    """
    if request.card_number is None or request.expiry is None or request.cvv is None:
        return Error(InvalidCardDetails())

    number = normalize_card_number(request.card_number)
    if not CARD_NUMBER.fullmatch(number) or not number.startswith(CARD_PREFIXES):
        return Error(InvalidCardDetails())
    if not EXPIRY.fullmatch(request.expiry):
        return Error(InvalidCardDetails())
    if not CVV.fullmatch(request.cvv):
        return Error(InvalidCardDetails())

    return Ok(CardDetails(number=number, expiry=request.expiry, cvv=request.cvv))


def validate(
    request: PaymentRequest,
) -> Result[CardDetails | None, InvalidCardDetails | InvalidPaymentMethod]:
    """Card details for card payments, None for cash."""
    match parse_method(request.method):
        case Ok(PaymentMethod.CASH):
            return Ok(None)
        case Ok(PaymentMethod.CARD):
            return validate_card(request)
        case Error(e):
            return Error(e)


__all__ = ("normalize_card_number", "parse_method", "validate_card", "validate")
