"""Request schemas for the quota API"""

from typing import Optional
from pydantic import BaseModel, Field


class ConsumeQuotaRequestSchema(BaseModel):
    """
    Request schema for spending install quota

    Used for POST /quota/consume endpoint.
    """

    amount: int = Field(default=1, gt=0, description="Units to consume")

    idempotency_key: str = Field(
        ...,
        min_length=1,
        description="Unique key for the install request"
    )

    reference_id: Optional[str] = Field(
        default=None,
        description="Install request identifier"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "amount": 1,
                "idempotency_key": "install:1234",
                "reference_id": "1234",
            }
        }
