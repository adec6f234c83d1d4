"""
FastAPI surface: status mapping, headers, bodies.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from orderflow.api import create_app

from tests.conftest import DECLINED_VISA, VISA

USER = {"X-User-Id": "7"}


def body(method: str = "cash", **card) -> dict:
    payment = {"payment_method": method, **card}
    return {
        "items": [{"meal_id": 1, "quantity": 2}],
        "total_price": "19.98",
        "payment": payment,
        "shipping_address": "12 Elm St",
    }


def card_body(number: str = VISA) -> dict:
    return body("card", card_number=number, expiry_date="12/29", cvv="123")


@pytest_asyncio.fixture
async def client(service):
    app = create_app(service)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


async def create(client, payload, headers=USER):
    return await client.post("/orders/create-with-payment", json=payload, headers=headers)


class TestCreateWithPayment:
    @pytest.mark.asyncio
    async def test_cash_created(self, client):
        resp = await create(client, body())
        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["status"] == "confirmed"
        assert data["message"] == "cash on delivery order confirmed"
        assert data["payment_id"].startswith("PAY_")
        assert data["replayed"] is False

    @pytest.mark.asyncio
    async def test_card_created(self, client):
        resp = await create(client, card_body())
        assert resp.status_code == 201
        assert resp.json()["status"] == "paid"

    @pytest.mark.asyncio
    async def test_declined_is_payment_required(self, client):
        resp = await create(client, card_body(DECLINED_VISA))
        assert resp.status_code == 402
        data = resp.json()
        assert data["success"] is False
        assert data["reason"] == "PaymentDeclined"
        assert data["message"] == "payment declined"

        order = await client.get(f"/orders/{data['order_id']}", headers=USER)
        assert order.json()["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_invalid_card_is_payment_required(self, client):
        resp = await create(client, card_body("abc"))
        assert resp.status_code == 402
        assert resp.json()["reason"] == "InvalidCardDetails"

    @pytest.mark.asyncio
    async def test_missing_user_is_unauthorized(self, client):
        resp = await create(client, body(), headers={})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_empty_items_is_bad_request(self, client):
        payload = body()
        payload["items"] = []
        resp = await create(client, payload)
        assert resp.status_code == 400
        assert resp.json()["reason"] == "InvalidOrderRequest"

    @pytest.mark.asyncio
    async def test_malformed_body_is_bad_request(self, client):
        resp = await create(client, {"items": "lots"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("total_price", "1E+30"),
        ("total_price", "1E+17"),
        ("quantity", 2**63),
        ("meal_id", 2**63),
    ])
    @pytest.mark.parametrize("key", [None, "huge-1"])
    async def test_out_of_range_is_bad_request(self, client, field, value, key):
        payload = body()
        if field == "total_price":
            payload["total_price"] = value
        else:
            payload["items"][0][field] = value
        headers = USER if key is None else {**USER, "Idempotency-Key": key}

        resp = await create(client, payload, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["reason"] == "InvalidOrderRequest"

        orders = await client.get("/orders/user", headers=USER)
        assert orders.json() == []

    @pytest.mark.asyncio
    async def test_idempotency_key_replays(self, client):
        headers = {**USER, "Idempotency-Key": "abc-123"}
        first = await create(client, card_body(), headers=headers)
        again = await create(client, card_body(), headers=headers)
        assert first.status_code == again.status_code == 201
        assert again.json()["order_id"] == first.json()["order_id"]
        assert again.json()["replayed"] is True

        orders = await client.get("/orders/user", headers=USER)
        assert len(orders.json()) == 1


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_update(self, client):
        order_id = (await create(client, body())).json()["order_id"]
        resp = await client.post(
            "/orders/update-status",
            json={"order_id": order_id, "status": "paid"},
            headers=USER,
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    @pytest.mark.asyncio
    async def test_invalid_transition_is_conflict(self, client):
        order_id = (await create(client, card_body())).json()["order_id"]
        resp = await client.post(
            "/orders/update-status",
            json={"order_id": order_id, "status": "pending"},
            headers=USER,
        )
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_order_is_not_found(self, client):
        resp = await client.post(
            "/orders/update-status",
            json={"order_id": 999, "status": "cancelled"},
            headers=USER,
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_status_is_bad_request(self, client):
        resp = await client.post(
            "/orders/update-status",
            json={"order_id": 1, "status": "shipped"},
            headers=USER,
        )
        assert resp.status_code == 400


class TestReads:
    @pytest.mark.asyncio
    async def test_order_by_id(self, client):
        created = (await create(client, body())).json()
        resp = await client.get(f"/orders/{created['order_id']}", headers=USER)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_price"] == "19.98"
        assert data["shipping_address"] == "12 Elm St"
        assert data["items"] == [
            {"meal_id": 1, "quantity": 2, "meal_name": "Falafel bowl", "unit_price": "9.99"}
        ]
        assert [p["payment_method"] for p in data["payments"]] == ["cash"]

    @pytest.mark.asyncio
    async def test_other_users_order_is_hidden(self, client):
        created = (await create(client, body())).json()
        resp = await client.get(f"/orders/{created['order_id']}", headers={"X-User-Id": "8"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_orders_for_user(self, client):
        first = (await create(client, body())).json()["order_id"]
        second = (await create(client, card_body())).json()["order_id"]
        resp = await client.get("/orders/user", headers=USER)
        assert resp.status_code == 200
        assert [o["order_id"] for o in resp.json()] == [second, first]

    @pytest.mark.asyncio
    async def test_reads_require_user(self, client):
        assert (await client.get("/orders/user")).status_code == 401
        assert (await client.get("/orders/1")).status_code == 401
