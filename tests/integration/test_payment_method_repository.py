"""Integration tests for payment method sync against SQLite"""

import pytest

from src.adapter.repositories import SqlAlchemyPaymentMethodRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.payment_methods import SyncPaymentMethods, SetPaymentMethodEnabled


@pytest.mark.asyncio
class TestPaymentMethodSync:

    async def test_sync_inserts_then_updates(self, db_session, fake_gateway):
        use_case = SyncPaymentMethods(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyPaymentMethodRepository(db_session), fake_gateway.client()
        )

        first = await use_case.execute()
        fake_gateway.channels[0]["name"] = "QRIS by ShopeePay"
        second = await use_case.execute()

        assert (first.value.inserted_count, first.value.updated_count) == (2, 0)
        assert (second.value.inserted_count, second.value.updated_count) == (0, 2)
        qris = await SqlAlchemyPaymentMethodRepository(db_session).get_by_code("QRIS")
        assert qris.name == "QRIS by ShopeePay"
        assert qris.fee_flat == 750

    async def test_sync_preserves_disabled_override(self, db_session, fake_gateway):
        """
        Given: An admin disabled QRIS locally
        When: Sync runs and the gateway reports QRIS as active
        Then: Gateway fields are refreshed, is_enabled stays False
        """
        repo = SqlAlchemyPaymentMethodRepository(db_session)
        uow = SqlAlchemyUnitOfWork(db_session)
        gateway = fake_gateway.client()
        await SyncPaymentMethods(uow, repo, gateway).execute()
        await SetPaymentMethodEnabled(uow, repo, gateway).execute("QRIS", False)

        fake_gateway.channels[0]["fee_customer"]["flat"] = 1000
        await SyncPaymentMethods(uow, repo, gateway).execute()

        qris = await repo.get_by_code("QRIS")
        assert qris.is_enabled is False
        assert qris.fee_flat == 1000
        assert [m.code for m in await repo.list_all(enabled_only=True)] == ["BRIVA"]

    async def test_upsert_of_existing_code_keeps_override(self, db_session):
        repo = SqlAlchemyPaymentMethodRepository(db_session)
        fields = {"name": "OVO", "type": "DIRECT", "fee_flat": 0}
        await repo.upsert_gateway_fields("OVO", fields, is_enabled=False)
        await db_session.commit()

        await repo.upsert_gateway_fields("OVO", {**fields, "name": "OVO Wallet"}, is_enabled=True)
        await db_session.commit()

        ovo = await repo.get_by_code("OVO")
        assert ovo.name == "OVO Wallet"
        assert ovo.is_enabled is False

    async def test_channels_missing_from_gateway_are_left_alone(self, db_session, fake_gateway):
        repo = SqlAlchemyPaymentMethodRepository(db_session)
        uow = SqlAlchemyUnitOfWork(db_session)
        await SyncPaymentMethods(uow, repo, fake_gateway.client()).execute()

        fake_gateway.channels = fake_gateway.channels[:1]
        result = await SyncPaymentMethods(uow, repo, fake_gateway.client()).execute()

        assert result.value.total_fetched == 1
        assert {m.code for m in await repo.list_all()} == {"QRIS", "BRIVA"}
