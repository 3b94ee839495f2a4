"""Dialect-specific INSERT ... ON CONFLICT support"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel.ext.asyncio.session import AsyncSession


def upsert_insert(session: AsyncSession, model):
    """Return an INSERT construct that supports on_conflict_do_* for the session's database"""
    dialect = session.bind.dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for {dialect}")
