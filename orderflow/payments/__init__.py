"""
Payments — validation, gateway and processing.
"""

from __future__ import annotations

from orderflow.payments._validator import (
    normalize_card_number,
    parse_method,
    validate_card,
    validate,
)
from orderflow.payments._gateway import ChargeDecision, PaymentBackend, SimulatedGateway
from orderflow.payments._processor import (
    CASH_CONFIRMED,
    PAYMENT_SUCCESSFUL,
    PaymentProcessor,
    new_payment_id,
)

__all__ = (
    "normalize_card_number",
    "parse_method",
    "validate_card",
    "validate",
    "ChargeDecision",
    "PaymentBackend",
    "SimulatedGateway",
    "CASH_CONFIRMED",
    "PAYMENT_SUCCESSFUL",
    "PaymentProcessor",
    "new_payment_id",
)
