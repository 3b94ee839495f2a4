"""SQLAlchemy implementation of QuotaLedgerRepository

Balance changes are expressed as single UPDATE statements so the database
serializes concurrent writers for the same user.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.dialect import upsert_insert
from src.app.repositories.quota_ledger_repository import QuotaLedgerRepository
from src.domain.quota_ledger import QuotaLedger


class SqlAlchemyQuotaLedgerRepository(QuotaLedgerRepository):
    """
    SQLAlchemy implementation of QuotaLedgerRepository

    Features:
    - Atomic increment/decrement (balance = balance +/- n)
    - Non-negative balance enforced in the WHERE clause and a CHECK constraint
    - Optional SELECT FOR UPDATE reads
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: int, for_update: bool = False) -> Optional[QuotaLedger]:
        stmt = select(QuotaLedger).where(QuotaLedger.user_id == user_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> QuotaLedger:
        """
        Return the user's ledger, creating it if missing

        Concurrent creators collapse onto one row via ON CONFLICT DO NOTHING.
        """
        ledger = await self.get_by_user_id(user_id)
        if ledger:
            return ledger

        now = datetime.utcnow()
        stmt = (
            upsert_insert(self.session, QuotaLedger)
            .values(user_id=user_id, balance=0, created_at=now, updated_at=now)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        await self.session.execute(stmt)
        return await self.get_by_user_id(user_id)

    async def increment(self, user_id: int, amount: int) -> QuotaLedger:
        await self.get_or_create(user_id)
        stmt = (
            update(QuotaLedger)
            .where(QuotaLedger.user_id == user_id)
            .values(balance=QuotaLedger.balance + amount, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        return await self.get_by_user_id(user_id)

    async def decrement(self, user_id: int, amount: int) -> Optional[QuotaLedger]:
        stmt = (
            update(QuotaLedger)
            .where(QuotaLedger.user_id == user_id, QuotaLedger.balance >= amount)
            .values(balance=QuotaLedger.balance - amount, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self.get_by_user_id(user_id)

    async def get_all(self) -> list[QuotaLedger]:
        result = await self.session.execute(select(QuotaLedger).order_by(QuotaLedger.id))
        return list(result.scalars().all())
