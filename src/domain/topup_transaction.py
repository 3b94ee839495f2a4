"""Top-up Transaction Domain Entity

One row per attempt to buy install quota through the payment gateway.
Rows are never deleted; status only moves forward.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, Numeric, String, Text
from src.domain.base import BaseModel, BigIntPK


class TopupStatus(str, Enum):
    """Top-up transaction states"""
    PENDING = "PENDING"    # Created locally, gateway not called yet
    UNPAID = "UNPAID"      # Gateway transaction created, awaiting payment
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({TopupStatus.PAID, TopupStatus.EXPIRED, TopupStatus.FAILED})
OPEN_STATUSES = (TopupStatus.PENDING, TopupStatus.UNPAID)


class TopupTransaction(BaseModel, table=True):
    """
    Top-up Transaction - quota purchase tracked through the gateway

    Domain Rules:
    - merchant_ref is generated locally, unique and immutable
    - gateway_ref is assigned once the gateway accepts the transaction
    - final_amount = subtotal - discount_amount
    - Status transitions: PENDING -> UNPAID -> PAID/EXPIRED/FAILED,
      PENDING -> FAILED when the gateway call fails
    - A terminal record never goes back to PENDING/UNPAID
    - credited_at is set once the quota for a PAID record has been applied
    """

    __tablename__ = "topup_transactions"
    __table_args__ = (
        Index('ix_topup_transactions_user_created', 'user_id', 'created_at'),
        Index('ix_topup_transactions_status', 'status'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Internal identifier (auto-increment)"
    )

    user_id: int = Field(
        sa_column=Column(BigInteger, nullable=False, index=True),
        description="Owner of the purchase"
    )

    merchant_ref: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True),
        description="Locally generated merchant reference"
    )

    gateway_ref: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True, index=True),
        description="Reference assigned by the payment gateway"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Price of a single quota unit"
    )

    quantity: int = Field(
        description="Quota units purchased"
    )

    subtotal: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="quantity * unit_price"
    )

    discount_percent: Decimal = Field(
        sa_column=Column(Numeric(5, 2), nullable=False, default=0),
        description="Tier discount in percentage points"
    )

    discount_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="subtotal * discount_percent / 100"
    )

    final_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Amount charged through the gateway"
    )

    payment_method_code: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Gateway payment channel code"
    )

    checkout_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    qr_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    pay_code: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))

    status: TopupStatus = Field(
        default=TopupStatus.PENDING,
        description="PENDING, UNPAID, PAID, EXPIRED or FAILED"
    )

    expires_at: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
        description="Payment deadline (epoch seconds)"
    )

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Gateway error for FAILED records"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    paid_at: Optional[datetime] = Field(default=None)
    credited_at: Optional[datetime] = Field(
        default=None,
        description="When the purchased quota was added to the ledger"
    )

    def is_expired(self, now: Optional[int] = None) -> bool:
        """True if the record is still open and its payment deadline passed"""
        if self.status.is_terminal or self.expires_at is None:
            return False
        if now is None:
            now = int(time.time())
        return self.expires_at <= now

    def effective_status(self, now: Optional[int] = None) -> TopupStatus:
        """Status as readers should see it (lazy expiry)"""
        if self.is_expired(now):
            return TopupStatus.EXPIRED
        return self.status

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": 42,
                "merchant_ref": "INV1717000000000123456_U42_Q5",
                "gateway_ref": "T0001000000000",
                "unit_price": "5000.00",
                "quantity": 5,
                "subtotal": "25000.00",
                "discount_percent": "12.00",
                "discount_amount": "3000.00",
                "final_amount": "22000.00",
                "payment_method_code": "QRIS",
                "status": "UNPAID",
                "expires_at": 1717086400,
            }
        }


@dataclass(frozen=True)
class AlreadyTerminal:
    """
    Returned instead of a record when a conditional update changed nothing

    status and credited are read when the outcome is built, so they stay
    usable after the session rolls back and expires the record.
    """
    record: TopupTransaction
    status: TopupStatus = field(init=False)
    credited: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "status", self.record.status)
        object.__setattr__(self, "credited", self.record.credited_at is not None)
