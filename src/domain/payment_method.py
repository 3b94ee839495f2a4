"""Payment Method Domain Entity

Local cache of the gateway's payment channels. Everything except
is_enabled is owned by the gateway and refreshed by the admin sync.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Boolean, Numeric, String, Text, Integer
from src.domain.base import BaseModel, BigIntPK

# Columns the sync is allowed to overwrite
GATEWAY_OWNED_FIELDS = (
    "name",
    "type",
    "icon_url",
    "fee_flat",
    "fee_percent",
    "minimum_fee",
    "maximum_fee",
)


class PaymentMethod(BaseModel, table=True):
    __tablename__ = "payment_methods"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    code: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True, index=True),
        description="Gateway channel code"
    )

    name: str = Field(sa_column=Column(String(100), nullable=False))
    type: str = Field(sa_column=Column(String(50), nullable=False))
    icon_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    fee_flat: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    fee_percent: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=False, default=0),
    )
    minimum_fee: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    maximum_fee: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    is_enabled: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True, index=True),
        description="Local override; never written by the sync"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
