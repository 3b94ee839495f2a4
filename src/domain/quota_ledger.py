"""Quota Ledger Domain Entity

Tracks the install quota balance per user. Each user has exactly one ledger.
Balance is always >= 0 and only changes through QuotaMovements.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, BigInteger, Integer
from src.domain.base import BaseModel, BigIntPK


class QuotaLedger(BaseModel, table=True):
    """
    Quota Ledger - Tracks user install quota

    Domain Rules:
    - One ledger per user (user_id is unique)
    - Balance must be non-negative
    - Balance is changed with atomic SQL updates, never read-modify-write
    """

    __tablename__ = "quota_ledgers"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='quota_balance_non_negative'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique ledger identifier (auto-increment)"
    )

    user_id: int = Field(
        sa_column=Column(BigInteger, nullable=False, unique=True, index=True),
        description="User ID (unique - one ledger per user)"
    )

    balance: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Remaining install quota (must be >= 0)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Ledger creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last balance update timestamp"
    )
