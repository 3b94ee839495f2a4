"""Payment Gateway Interface

Contract for the external payment gateway plus the data it exchanges.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class GatewayError(Exception):
    """Base class for gateway failures"""


class GatewayUnavailable(GatewayError):
    """Network error, timeout, 5xx or unreadable response"""


class GatewayRejected(GatewayError):
    """The gateway answered but refused the request"""


class GatewayOrderItem(BaseModel):
    sku: str
    name: str
    price: int
    quantity: int
    product_url: Optional[str] = None
    image_url: Optional[str] = None


class GatewayTransactionRequest(BaseModel):
    """Body of the transaction-creation call (signature is added by the client)"""

    method: str
    merchant_ref: str
    amount: int = Field(..., gt=0, description="Whole currency units")
    customer_name: str
    customer_email: str = ""
    customer_phone: str = ""
    order_items: list[GatewayOrderItem]
    return_url: Optional[str] = None
    callback_url: Optional[str] = None
    expired_time: int = Field(..., description="Epoch seconds")


class GatewayTransaction(BaseModel):
    """Transaction as reported by the gateway"""

    gateway_ref: str
    merchant_ref: Optional[str] = None
    checkout_url: Optional[str] = None
    qr_url: Optional[str] = None
    pay_code: Optional[str] = None
    payment_name: Optional[str] = None
    status: str
    expires_at: Optional[int] = None


class PaymentChannel(BaseModel):
    """Payment channel descriptor from the gateway"""

    code: str
    name: str
    type: str = ""
    icon_url: Optional[str] = None
    fee_flat: int = 0
    fee_percent: Decimal = Decimal("0")
    minimum_fee: int = 0
    maximum_fee: int = 0
    active: bool = True

    def gateway_fields(self) -> dict:
        """Columns of the local cache owned by the gateway"""
        return {
            "name": self.name,
            "type": self.type,
            "icon_url": self.icon_url,
            "fee_flat": self.fee_flat,
            "fee_percent": self.fee_percent,
            "minimum_fee": self.minimum_fee,
            "maximum_fee": self.maximum_fee,
        }


class PaymentGatewayClient(ABC):

    @abstractmethod
    def sign_request(self, merchant_code: str, merchant_ref: str, amount: int) -> str:
        """HMAC-SHA256 over merchant_code + merchant_ref + amount, hex encoded"""
        pass

    @abstractmethod
    def verify_callback_signature(self, raw_body: bytes, header_signature: Optional[str]) -> bool:
        """Check a callback signature against the exact raw body bytes"""
        pass

    @abstractmethod
    async def create_transaction(self, request: GatewayTransactionRequest) -> GatewayTransaction:
        """
        Create the remote transaction

        Raises:
            GatewayUnavailable: transport failure, timeout or 5xx
            GatewayRejected: the gateway reported a failure
        """
        pass

    @abstractmethod
    async def get_transaction_detail(self, gateway_ref: str) -> GatewayTransaction:
        """
        Fetch the current state of a remote transaction

        Raises:
            GatewayUnavailable, GatewayRejected
        """
        pass

    @abstractmethod
    async def list_payment_channels(self) -> list[PaymentChannel]:
        """Live channel list; empty on any failure"""
        pass
