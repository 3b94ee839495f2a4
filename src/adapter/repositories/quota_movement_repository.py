"""SQLAlchemy implementation of QuotaMovementRepository"""

from typing import Optional
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.quota_movement_repository import QuotaMovementRepository
from src.domain.quota_movement import QuotaMovement


class SqlAlchemyQuotaMovementRepository(QuotaMovementRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, movement: QuotaMovement) -> QuotaMovement:
        """
        Raises:
            IntegrityError: If idempotency_key already exists (duplicate credit or consume)
        """
        self.session.add(movement)
        await self.session.flush()
        await self.session.refresh(movement)
        return movement

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[QuotaMovement]:
        stmt = select(QuotaMovement).where(QuotaMovement.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_movement_sum_by_ledger(self, ledger_id: int) -> int:
        stmt = select(func.coalesce(func.sum(QuotaMovement.amount), 0)).where(
            QuotaMovement.ledger_id == ledger_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
