"""HTTP tests for the top-up, payment and quota routes"""

from decimal import Decimal
import pytest

from src.domain.topup_transaction import TopupStatus
from tests.fixtures.gateway import sign_body

USER = {"X-User-Id": "42", "X-User-Name": "Budi", "X-User-Email": "budi@example.com"}
OTHER_USER = {"X-User-Id": "7"}


async def _post_callback(client, body: bytes, signature=None, event="payment_status"):
    return await client.post(
        "/payment/callback",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Callback-Signature": signature or sign_body(body),
            "X-Callback-Event": event,
        },
    )


@pytest.mark.asyncio
class TestQuoteEndpoint:

    async def test_quote_applies_bulk_discount(self, client):
        response = await client.post("/topup/quote", json={"quantity": 5})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["subtotal"]) == Decimal("25000")
        assert Decimal(data["discount_percent"]) == Decimal("12")
        assert Decimal(data["final_amount"]) == Decimal("22000")

    async def test_quote_rejects_zero_quantity(self, client):
        response = await client.post("/topup/quote", json={"quantity": 0})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_QUANTITY"

    async def test_quote_rejects_missing_quantity(self, client):
        response = await client.post("/topup/quote", json={})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
class TestTopupEndpoints:

    async def test_create_topup_requires_user(self, client):
        response = await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_create_topup_returns_checkout_payload(self, client, fake_gateway):
        response = await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"}, headers=USER)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == TopupStatus.UNPAID.value
        assert data["gateway_ref"] == "DEV-T000001"
        assert data["checkout_url"] == "https://gateway.test/checkout/DEV-T000001"
        assert data["merchant_ref"].endswith("_U42_Q5")
        assert fake_gateway.transactions["DEV-T000001"]["amount"] == 22000

    async def test_create_topup_gateway_down_returns_503(self, client, fake_gateway):
        fake_gateway.unavailable = True

        response = await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=USER)

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "GATEWAY_UNAVAILABLE"

    async def test_create_topup_gateway_rejection_returns_502(self, client, fake_gateway):
        fake_gateway.reject_message = "Payment channel is not enabled"

        response = await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=USER)

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "Payment channel is not enabled"

    async def test_create_topup_with_disabled_method_returns_409(self, client, fake_gateway):
        await client.post("/admin/payment-methods/sync", headers={"X-User-Role": "admin"})
        await client.patch(
            "/admin/payment-methods/QRIS", json={"is_enabled": False}, headers={"X-User-Role": "admin"}
        )

        response = await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=USER)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "PAYMENT_METHOD_DISABLED"
        assert fake_gateway.transactions == {}

    async def test_poll_unknown_or_foreign_topup_returns_404(self, client):
        created = await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=USER)
        merchant_ref = created.json()["merchant_ref"]

        foreign = await client.get(f"/topup/{merchant_ref}", headers=OTHER_USER)
        unknown = await client.get("/topup/INV0000000000000000000_U42_Q1", headers=USER)

        assert foreign.status_code == 404
        assert unknown.status_code == 404
        assert unknown.json()["error"]["code"] == "RECORD_NOT_FOUND"

    async def test_history_lists_newest_first(self, client):
        await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=USER)
        await client.post("/topup", json={"quantity": 2, "payment_method": "BRIVA"}, headers=USER)

        response = await client.get("/topup/history", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [item["quantity"] for item in data["items"]] == [2, 1]

    async def test_history_rejects_oversized_page(self, client):
        response = await client.get("/topup/history?limit=500", headers=USER)

        assert response.status_code == 400


@pytest.mark.asyncio
class TestPaymentCallbackEndpoint:

    async def test_paid_callback_credits_quota_and_replay_is_acknowledged(self, client, fake_gateway):
        """
        Given: An UNPAID top-up of 5
        When: The gateway posts PAID twice
        Then: Both deliveries get success, the balance is 5 and the poll shows PAID
        """
        created = (await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"}, headers=USER)).json()
        body = fake_gateway.callback_body(created["gateway_ref"], "PAID")

        first = await _post_callback(client, body)
        replay = await _post_callback(client, body)

        assert first.status_code == 200
        assert first.json() == {
            "success": True,
            "merchant_ref": created["merchant_ref"],
            "status": "PAID",
            "changed": True,
        }
        assert replay.status_code == 200
        assert replay.json()["success"] is True
        assert replay.json()["changed"] is False

        balance = await client.get("/quota", headers=USER)
        assert balance.json()["balance"] == 5

        polled = await client.get(f"/topup/{created['merchant_ref']}", headers=USER)
        assert polled.json()["status"] == "PAID"
        assert polled.json()["credited"] is True

    async def test_invalid_signature_is_rejected(self, client, fake_gateway):
        created = (await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"}, headers=USER)).json()
        body = fake_gateway.callback_body(created["gateway_ref"], "PAID")

        response = await _post_callback(client, body, signature="deadbeef")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_SIGNATURE"
        assert (await client.get("/quota", headers=USER)).json()["balance"] == 0

    async def test_non_ascii_signature_is_rejected(self, client, fake_gateway):
        created = (await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"}, headers=USER)).json()
        body = fake_gateway.callback_body(created["gateway_ref"], "PAID")

        response = await client.post(
            "/payment/callback",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Callback-Signature": "\u00e9".encode("latin-1"),
                "X-Callback-Event": "payment_status",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_SIGNATURE"

    async def test_unknown_event_is_rejected(self, client, fake_gateway):
        created = (await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"}, headers=USER)).json()
        body = fake_gateway.callback_body(created["gateway_ref"], "PAID")

        response = await _post_callback(client, body, event="payout_status")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNRECOGNIZED_EVENT"

    async def test_callback_for_unknown_transaction_returns_404(self, client):
        body = b'{"reference":"DEV-T999999","merchant_ref":"INV0000000000000000000_U1_Q1","status":"PAID","is_closed_payment":1}'

        response = await _post_callback(client, body)

        assert response.status_code == 404

    async def test_payment_methods_lists_enabled_only(self, client):
        await client.post("/admin/payment-methods/sync", headers={"X-User-Role": "admin"})
        await client.patch(
            "/admin/payment-methods/BRIVA", json={"is_enabled": False}, headers={"X-User-Role": "admin"}
        )

        response = await client.get("/payment-methods")

        assert response.status_code == 200
        assert [m["code"] for m in response.json()["items"]] == ["QRIS"]


@pytest.mark.asyncio
class TestQuotaEndpoints:

    async def test_balance_of_new_user_is_zero(self, client):
        response = await client.get("/quota", headers=USER)

        assert response.status_code == 200
        assert response.json()["user_id"] == 42
        assert response.json()["balance"] == 0

    async def test_consume_without_quota_returns_402(self, client):
        response = await client.post("/quota/consume", json={"idempotency_key": "install:1"}, headers=USER)

        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_QUOTA"

    async def test_consume_is_idempotent(self, client, fake_gateway):
        """
        Given: A user with 2 units bought through a paid top-up
        When: The same install request is consumed twice
        Then: Only one unit is spent and the same movement is returned
        """
        created = (await client.post("/topup", json={"quantity": 2, "payment_method": "QRIS"}, headers=USER)).json()
        await _post_callback(client, fake_gateway.callback_body(created["gateway_ref"], "PAID"))

        payload = {"idempotency_key": "install:1234", "reference_id": "1234"}
        first = await client.post("/quota/consume", json=payload, headers=USER)
        second = await client.post("/quota/consume", json=payload, headers=USER)

        assert first.status_code == 200
        assert first.json()["balance_after"] == 1
        assert second.json()["movement_id"] == first.json()["movement_id"]
        assert (await client.get("/quota", headers=USER)).json()["balance"] == 1

    async def test_consume_cannot_take_a_topup_credit_key(self, client, fake_gateway):
        """
        Given: A user with 1 unit and an open 5-unit top-up
        When: The user consumes with the top-up's credit key, then the top-up is paid
        Then: The key is refused and the 5 units still land
        """
        first = (await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=USER)).json()
        await _post_callback(client, fake_gateway.callback_body(first["gateway_ref"], "PAID"))
        second = (await client.post("/topup", json={"quantity": 5, "payment_method": "QRIS"}, headers=USER)).json()

        consumed = await client.post(
            "/quota/consume", json={"idempotency_key": f"topup:{second['merchant_ref']}"}, headers=USER
        )
        paid = await _post_callback(client, fake_gateway.callback_body(second["gateway_ref"], "PAID"))

        assert consumed.status_code == 400
        assert consumed.json()["error"]["code"] == "INVALID_IDEMPOTENCY_KEY"
        assert paid.json()["changed"] is True
        assert (await client.get("/quota", headers=USER)).json()["balance"] == 6

    async def test_same_key_from_two_users_spends_each_once(self, client, fake_gateway):
        for headers in (USER, OTHER_USER):
            created = (await client.post("/topup", json={"quantity": 1, "payment_method": "QRIS"}, headers=headers)).json()
            await _post_callback(client, fake_gateway.callback_body(created["gateway_ref"], "PAID"))

        mine = await client.post("/quota/consume", json={"idempotency_key": "install:1"}, headers=USER)
        theirs = await client.post("/quota/consume", json={"idempotency_key": "install:1"}, headers=OTHER_USER)

        assert mine.status_code == 200
        assert theirs.status_code == 200
        assert theirs.json()["movement_id"] != mine.json()["movement_id"]
        assert (await client.get("/quota", headers=OTHER_USER)).json()["balance"] == 0
