"""Request schemas for the top-up API"""

from pydantic import BaseModel, Field


class QuoteRequestSchema(BaseModel):
    """Used for POST /topup/quote"""

    quantity: int = Field(..., description="Number of install quota units")

    class Config:
        json_schema_extra = {"example": {"quantity": 5}}


class TopupRequestSchema(BaseModel):
    """Used for POST /topup"""

    quantity: int = Field(..., description="Number of install quota units")

    payment_method: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Payment channel code (see GET /payment-methods)"
    )

    class Config:
        json_schema_extra = {"example": {"quantity": 5, "payment_method": "QRIS"}}
