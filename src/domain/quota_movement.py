"""Quota Movement Domain Entity

Immutable append-only audit trail of quota changes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, BigInteger, Integer, String
from src.domain.base import BaseModel, BigIntPK


class MovementType(str, Enum):
    """Quota movement types"""
    TOPUP = "topup"          # Quota bought through the payment gateway
    CONSUME = "consume"      # Quota spent on an install request


class QuotaMovement(BaseModel, table=True):
    """
    Quota Movement - one row per ledger change

    Domain Rules:
    - Movements are immutable (append-only)
    - idempotency_key is unique; a top-up credit uses "topup:{merchant_ref}",
      so a purchase can never be credited twice
    - amount is signed: positive for TOPUP, negative for CONSUME
    """

    __tablename__ = "quota_movements"
    __table_args__ = (
        Index('ix_quota_movements_reference', 'reference_type', 'reference_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    user_id: int = Field(
        sa_column=Column(BigInteger, nullable=False, index=True),
    )

    ledger_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("quota_ledgers.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to QuotaLedger"
    )

    movement_type: MovementType = Field(
        description="topup or consume"
    )

    amount: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Signed quota delta"
    )

    balance_after: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Ledger balance right after this movement"
    )

    reference_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="e.g. 'topup_transaction', 'install_request'"
    )

    reference_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    idempotency_key: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
