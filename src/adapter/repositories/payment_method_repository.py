"""SQLAlchemy implementation of PaymentMethodRepository

The sync only ever writes gateway-owned columns; is_enabled is written on
insert and by the admin toggle, nowhere else.
"""

from datetime import datetime
from typing import Any, Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.dialect import upsert_insert
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from src.domain.payment_method import PaymentMethod, GATEWAY_OWNED_FIELDS


class SqlAlchemyPaymentMethodRepository(PaymentMethodRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_code(self, code: str) -> Optional[PaymentMethod]:
        stmt = (
            select(PaymentMethod)
            .where(PaymentMethod.code == code)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self, enabled_only: bool = False) -> list[PaymentMethod]:
        stmt = select(PaymentMethod)
        if enabled_only:
            stmt = stmt.where(PaymentMethod.is_enabled.is_(True))
        stmt = stmt.order_by(PaymentMethod.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_gateway_fields(self, code: str, fields: dict[str, Any]) -> bool:
        values = _gateway_values(fields)
        values["updated_at"] = datetime.utcnow()
        stmt = (
            update(PaymentMethod)
            .where(PaymentMethod.code == code)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def upsert_gateway_fields(self, code: str, fields: dict[str, Any], is_enabled: bool = True) -> None:
        now = datetime.utcnow()
        values = _gateway_values(fields)
        insert_stmt = upsert_insert(self.session, PaymentMethod).values(
            code=code,
            is_enabled=is_enabled,
            created_at=now,
            updated_at=now,
            **values,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=["code"],
            set_={**{name: insert_stmt.excluded[name] for name in values}, "updated_at": now},
        )
        await self.session.execute(stmt)

    async def set_enabled(self, code: str, is_enabled: bool) -> Optional[PaymentMethod]:
        stmt = (
            update(PaymentMethod)
            .where(PaymentMethod.code == code)
            .values(is_enabled=is_enabled, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_code(code)


def _gateway_values(fields: dict[str, Any]) -> dict[str, Any]:
    return {name: fields[name] for name in GATEWAY_OWNED_FIELDS if name in fields}
