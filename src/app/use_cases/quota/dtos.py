"""Data Transfer Objects for Quota Use Cases"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ConsumeQuotaCommandDTO(BaseModel):
    """
    Command DTO for spending quota on an install request

    Used as input to ConsumeQuota use case.
    """

    user_id: int = Field(..., description="User identifier")

    amount: int = Field(
        default=1,
        gt=0,
        description="Quota units to consume (one per install request)"
    )

    idempotency_key: str = Field(
        ...,
        min_length=1,
        description="Unique key for the install request (e.g., install:1234)"
    )

    reference_type: Optional[str] = Field(default="install_request")
    reference_id: Optional[str] = Field(default=None)


class QuotaMovementResponseDTO(BaseModel):
    """Response DTO for a quota change"""

    movement_id: int
    user_id: int
    movement_type: str
    amount: int
    balance_after: int
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    idempotency_key: str
    created_at: datetime


class QuotaBalanceResponseDTO(BaseModel):
    user_id: int
    balance: int
    last_updated: Optional[datetime] = None


class QuotaCreditDTO(BaseModel):
    """Outcome of crediting a paid top-up"""

    merchant_ref: str
    user_id: int
    quantity: int
    balance_after: int
    already_credited: bool = Field(
        default=False,
        description="True if an earlier call had already applied this credit"
    )
