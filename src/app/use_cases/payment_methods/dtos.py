"""Data Transfer Objects for Payment Method Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel
from src.domain.payment_method import PaymentMethod


class PaymentMethodDTO(BaseModel):
    code: str
    name: str
    type: str
    icon_url: Optional[str] = None
    fee_flat: int
    fee_percent: Decimal
    minimum_fee: int
    maximum_fee: int
    is_enabled: bool
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, method: PaymentMethod) -> "PaymentMethodDTO":
        return cls(
            code=method.code,
            name=method.name,
            type=method.type,
            icon_url=method.icon_url,
            fee_flat=method.fee_flat,
            fee_percent=method.fee_percent,
            minimum_fee=method.minimum_fee,
            maximum_fee=method.maximum_fee,
            is_enabled=method.is_enabled,
            updated_at=method.updated_at,
        )


class ListPaymentMethodsResponseDTO(BaseModel):
    items: list[PaymentMethodDTO]
    total: int


class SyncPaymentMethodsResultDTO(BaseModel):
    """Counts reported by an admin sync"""

    total_fetched: int
    updated_count: int
    inserted_count: int
