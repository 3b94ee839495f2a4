"""HTTP tests for the admin payment method routes"""

import pytest

ADMIN = {"X-User-Role": "admin"}


@pytest.mark.asyncio
class TestAdminPaymentMethods:

    async def test_requires_admin_role(self, client):
        response = await client.get("/admin/payment-methods", headers={"X-User-Role": "customer"})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    async def test_sync_inserts_gateway_channels(self, client):
        response = await client.post("/admin/payment-methods/sync", headers=ADMIN)

        assert response.status_code == 200
        assert response.json() == {"total_fetched": 2, "updated_count": 0, "inserted_count": 2}

        listed = await client.get("/admin/payment-methods", headers=ADMIN)
        assert listed.json()["total"] == 2
        assert {m["code"] for m in listed.json()["items"]} == {"QRIS", "BRIVA"}

    async def test_resync_keeps_admin_override(self, client, fake_gateway):
        """
        Given: QRIS disabled by an admin
        When: The gateway changes the QRIS fee and a sync runs
        Then: The fee is refreshed and QRIS stays disabled
        """
        await client.post("/admin/payment-methods/sync", headers=ADMIN)
        await client.patch("/admin/payment-methods/QRIS", json={"is_enabled": False}, headers=ADMIN)
        fake_gateway.channels[0]["fee_customer"] = {"flat": 1000, "percent": 0}

        response = await client.post("/admin/payment-methods/sync", headers=ADMIN)

        assert response.json()["updated_count"] == 2
        listed = {m["code"]: m for m in (await client.get("/admin/payment-methods", headers=ADMIN)).json()["items"]}
        assert listed["QRIS"]["fee_flat"] == 1000
        assert listed["QRIS"]["is_enabled"] is False
        assert listed["BRIVA"]["is_enabled"] is True

    async def test_enable_uncached_method_fetches_it_from_gateway(self, client):
        response = await client.patch("/admin/payment-methods/BRIVA", json={"is_enabled": True}, headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["code"] == "BRIVA"
        assert response.json()["name"] == "BRI Virtual Account"
        assert response.json()["is_enabled"] is True

    async def test_unknown_method_returns_404(self, client):
        response = await client.patch("/admin/payment-methods/NOPE", json={"is_enabled": True}, headers=ADMIN)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PAYMENT_METHOD_NOT_FOUND"

    async def test_sync_with_gateway_down_changes_nothing(self, client, fake_gateway):
        fake_gateway.unavailable = True

        response = await client.post("/admin/payment-methods/sync", headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["total_fetched"] == 0
        assert (await client.get("/admin/payment-methods", headers=ADMIN)).json()["total"] == 0
