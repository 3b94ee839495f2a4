"""Request schemas for the admin API"""

from pydantic import BaseModel, Field


class SetPaymentMethodEnabledSchema(BaseModel):
    is_enabled: bool = Field(..., description="Local override; sync never changes it")
