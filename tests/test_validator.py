"""
Payment validator: card shape checks and method parsing.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from orderflow.domain import CardDetails, PaymentMethod, PaymentRequest
from orderflow.errors import InvalidCardDetails, InvalidPaymentMethod, ValidationError
from orderflow.payments import normalize_card_number, parse_method, validate, validate_card

from tests.conftest import err, ok


def card(number: str | None = "4111111111111111", expiry: str | None = "12/29", cvv: str | None = "123"):
    return PaymentRequest(method="card", card_number=number, expiry=expiry, cvv=cvv)


class TestCardNumber:
    @pytest.mark.parametrize("number", [
        "4111111111111111",
        "5500000000000004",
        "4111 1111 1111 1111",
        "4111\t1111\n1111 1111",
        "4222222222222",          # 13 digits
        "5" + "0" * 18,           # 19 digits
    ])
    def test_accepted(self, number):
        details = ok(validate_card(card(number=number)))
        assert details.number == normalize_card_number(number)
        assert " " not in details.number

    @pytest.mark.parametrize("number", [
        "378282246310005",        # amex prefix
        "6011111111111117",       # discover prefix
        "411111111111",           # 12 digits
        "4" + "1" * 19,           # 20 digits
        "4111-1111-1111-1111",
        "4111a11111111111",
        "",
    ])
    def test_rejected(self, number):
        e = err(validate_card(card(number=number)))
        assert isinstance(e, InvalidCardDetails)
        assert e.field == "card"
        assert e.message == "invalid card details"

    def test_no_luhn_check(self):
        ok(validate_card(card(number="4111111111111112")))

    @given(st.text(alphabet="0123456789", min_size=12, max_size=18))
    @settings(max_examples=50)
    def test_any_visa_shaped_number_passes(self, digits):
        ok(validate_card(card(number="4" + digits)))


class TestExpiryAndCvv:
    @pytest.mark.parametrize("expiry", ["01/24", "12/99", "09/00"])
    def test_expiry_accepted(self, expiry):
        ok(validate_card(card(expiry=expiry)))

    @pytest.mark.parametrize("expiry", ["13/29", "00/29", "1/29", "12/2029", "12-29", "12/29 "])
    def test_expiry_rejected(self, expiry):
        assert isinstance(err(validate_card(card(expiry=expiry))), InvalidCardDetails)

    @pytest.mark.parametrize("cvv", ["12", "1234", "12a", ""])
    def test_cvv_rejected(self, cvv):
        assert isinstance(err(validate_card(card(cvv=cvv))), InvalidCardDetails)

    @pytest.mark.parametrize("missing", ["number", "expiry", "cvv"])
    def test_missing_field_rejected(self, missing):
        request = card(**{missing: None})
        assert isinstance(err(validate_card(request)), InvalidCardDetails)


class TestMethod:
    def test_cash_always_passes(self):
        assert ok(validate(PaymentRequest(method="cash"))) is None

    def test_card_returns_details(self):
        assert ok(validate(card())) == CardDetails("4111111111111111", "12/29", "123")

    @pytest.mark.parametrize("method", ["paypal", "CASH", "Card", ""])
    def test_unknown_method(self, method):
        e = err(validate(PaymentRequest(method=method)))
        assert isinstance(e, InvalidPaymentMethod)
        assert isinstance(e, ValidationError)
        assert e.field == "method"
        assert e.message == "invalid payment method"

    def test_parse_method(self):
        assert ok(parse_method("card")) is PaymentMethod.CARD
        assert ok(parse_method("cash")) is PaymentMethod.CASH
