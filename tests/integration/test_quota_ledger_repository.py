"""Integration tests for the quota ledger and movement repositories on SQLite"""

import pytest

from src.adapter.repositories import SqlAlchemyQuotaLedgerRepository, SqlAlchemyQuotaMovementRepository
from src.domain.quota_movement import QuotaMovement, MovementType


@pytest.mark.asyncio
class TestQuotaLedgerRepository:

    async def test_get_or_create_is_stable(self, db_session):
        repo = SqlAlchemyQuotaLedgerRepository(db_session)

        first = await repo.get_or_create(42)
        second = await repo.get_or_create(42)
        await db_session.commit()

        assert first.id == second.id
        assert first.balance == 0

    async def test_increment_creates_ledger(self, db_session):
        repo = SqlAlchemyQuotaLedgerRepository(db_session)

        ledger = await repo.increment(42, 5)
        ledger = await repo.increment(42, 10)
        await db_session.commit()

        assert ledger.balance == 15
        assert len(await repo.get_all()) == 1

    async def test_decrement_never_goes_negative(self, db_session):
        repo = SqlAlchemyQuotaLedgerRepository(db_session)
        await repo.increment(42, 1)

        first = await repo.decrement(42, 1)
        second = await repo.decrement(42, 1)
        await db_session.commit()

        assert first.balance == 0
        assert second is None
        assert (await repo.get_by_user_id(42)).balance == 0

    async def test_decrement_without_ledger(self, db_session):
        repo = SqlAlchemyQuotaLedgerRepository(db_session)

        assert await repo.decrement(99, 1) is None


@pytest.mark.asyncio
class TestQuotaMovementRepository:

    async def test_movement_sum_and_lookup(self, db_session):
        ledger = await SqlAlchemyQuotaLedgerRepository(db_session).increment(42, 5)
        repo = SqlAlchemyQuotaMovementRepository(db_session)

        await repo.create(
            QuotaMovement(
                user_id=42, ledger_id=ledger.id, movement_type=MovementType.TOPUP,
                amount=5, balance_after=5, idempotency_key="topup:INV-1",
            )
        )
        await repo.create(
            QuotaMovement(
                user_id=42, ledger_id=ledger.id, movement_type=MovementType.CONSUME,
                amount=-1, balance_after=4, idempotency_key="install:1",
            )
        )
        await db_session.commit()

        assert await repo.get_movement_sum_by_ledger(ledger.id) == 4
        assert (await repo.get_by_idempotency_key("topup:INV-1")).amount == 5
        assert await repo.get_by_idempotency_key("missing") is None
        assert await repo.get_movement_sum_by_ledger(12345) == 0
