"""SQLAlchemy implementation of TopupTransactionRepository

Status changes are compare-and-set UPDATE statements. The affected row count
tells the caller whether it won the transition; on PostgreSQL the competing
UPDATE blocks on the row lock and then re-checks the WHERE clause, on SQLite
the database write lock serializes writers.
"""

from datetime import datetime
from typing import Optional, Union
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.domain.topup_transaction import (
    TopupTransaction,
    TopupStatus,
    AlreadyTerminal,
    OPEN_STATUSES,
)


class SqlAlchemyTopupTransactionRepository(TopupTransactionRepository):
    """
    SQLAlchemy implementation of TopupTransactionRepository

    Features:
    - Conditional status updates (no application-level locks)
    - Append-only: nothing is ever deleted
    - Reads bypass the identity map so racing sessions see committed state
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: TopupTransaction) -> TopupTransaction:
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def attach_gateway_info(
        self,
        merchant_ref: str,
        gateway_ref: str,
        checkout_url: Optional[str],
        qr_url: Optional[str],
        pay_code: Optional[str],
        expires_at: Optional[int],
    ) -> Union[TopupTransaction, AlreadyTerminal, None]:
        values = {
            "gateway_ref": gateway_ref,
            "checkout_url": checkout_url,
            "qr_url": qr_url,
            "pay_code": pay_code,
            "status": TopupStatus.UNPAID,
            "updated_at": datetime.utcnow(),
        }
        if expires_at is not None:
            values["expires_at"] = expires_at

        stmt = (
            update(TopupTransaction)
            .where(
                TopupTransaction.merchant_ref == merchant_ref,
                TopupTransaction.status == TopupStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._conditional_update(merchant_ref, stmt)

    async def transition_to_terminal(
        self,
        merchant_ref: str,
        target_status: TopupStatus,
        paid_at: Optional[datetime] = None,
        failure_reason: Optional[str] = None,
    ) -> Union[TopupTransaction, AlreadyTerminal, None]:
        if not target_status.is_terminal:
            raise ValueError(f"{target_status.value} is not a terminal status")

        now = datetime.utcnow()
        values = {"status": target_status, "updated_at": now}
        if target_status == TopupStatus.PAID:
            values["paid_at"] = paid_at or now
        if failure_reason is not None:
            values["failure_reason"] = failure_reason

        stmt = (
            update(TopupTransaction)
            .where(
                TopupTransaction.merchant_ref == merchant_ref,
                TopupTransaction.status.in_(OPEN_STATUSES),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._conditional_update(merchant_ref, stmt)

    async def _conditional_update(self, merchant_ref: str, stmt) -> Union[TopupTransaction, AlreadyTerminal, None]:
        result = await self.session.execute(stmt)
        record = await self.get_by_merchant_ref(merchant_ref)
        if record is None:
            return None
        if result.rowcount == 1:
            return record
        return AlreadyTerminal(record=record)

    async def get_by_merchant_ref(self, merchant_ref: str) -> Optional[TopupTransaction]:
        stmt = (
            select(TopupTransaction)
            .where(TopupTransaction.merchant_ref == merchant_ref)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_gateway_ref(self, gateway_ref: str) -> Optional[TopupTransaction]:
        stmt = (
            select(TopupTransaction)
            .where(TopupTransaction.gateway_ref == gateway_ref)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_user_id(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> tuple[list[TopupTransaction], int]:
        count_stmt = select(func.count()).select_from(TopupTransaction).where(
            TopupTransaction.user_id == user_id
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(TopupTransaction)
            .where(TopupTransaction.user_id == user_id)
            .order_by(TopupTransaction.created_at.desc(), TopupTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def mark_credited(self, merchant_ref: str, credited_at: datetime) -> None:
        stmt = (
            update(TopupTransaction)
            .where(
                TopupTransaction.merchant_ref == merchant_ref,
                TopupTransaction.credited_at.is_(None),
            )
            .values(credited_at=credited_at, updated_at=credited_at)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def list_paid_uncredited(self, limit: int = 100) -> list[TopupTransaction]:
        stmt = (
            select(TopupTransaction)
            .where(
                TopupTransaction.status == TopupStatus.PAID,
                TopupTransaction.credited_at.is_(None),
            )
            .order_by(TopupTransaction.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_unresolved_expired(self, now: int, limit: int = 100) -> list[TopupTransaction]:
        stmt = (
            select(TopupTransaction)
            .where(
                TopupTransaction.status.in_(OPEN_STATUSES),
                TopupTransaction.expires_at.is_not(None),
                TopupTransaction.expires_at <= now,
            )
            .order_by(TopupTransaction.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
