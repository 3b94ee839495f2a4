"""Data Transfer Objects for Top-up Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from src.domain.pricing import PriceQuote
from src.domain.topup_transaction import TopupTransaction, TopupStatus


class PriceQuoteDTO(BaseModel):
    """Pricing breakdown for a quantity"""

    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    discount_percent: Decimal = Field(..., description="Discount in percentage points")
    discount_amount: Decimal
    final_amount: Decimal
    gateway_amount: int = Field(..., description="Final amount in whole currency units")

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "PriceQuoteDTO":
        return cls(
            quantity=quote.quantity,
            unit_price=quote.unit_price,
            subtotal=quote.subtotal,
            discount_percent=quote.discount_percent,
            discount_amount=quote.discount_amount,
            final_amount=quote.final_amount,
            gateway_amount=quote.gateway_amount,
        )


class InitiateTopupCommandDTO(BaseModel):
    """
    Command DTO for starting a top-up

    Used as input to InitiateTopup use case.
    """

    user_id: int
    quantity: int
    payment_method: str = Field(..., min_length=1, description="Gateway channel code, e.g. QRIS")
    customer_name: str
    customer_email: str = ""
    customer_phone: str = ""


class TopupTransactionDTO(BaseModel):
    """Top-up as shown to its owner (checkout payload, poll, history)"""

    merchant_ref: str
    gateway_ref: Optional[str] = None
    status: TopupStatus
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    payment_method: str
    checkout_url: Optional[str] = None
    qr_url: Optional[str] = None
    pay_code: Optional[str] = None
    expires_at: Optional[int] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None
    credited: bool = False

    @classmethod
    def from_record(cls, record: TopupTransaction, now: Optional[int] = None) -> "TopupTransactionDTO":
        return cls(
            merchant_ref=record.merchant_ref,
            gateway_ref=record.gateway_ref,
            status=record.effective_status(now),
            quantity=record.quantity,
            unit_price=record.unit_price,
            subtotal=record.subtotal,
            discount_percent=record.discount_percent,
            discount_amount=record.discount_amount,
            final_amount=record.final_amount,
            payment_method=record.payment_method_code,
            checkout_url=record.checkout_url,
            qr_url=record.qr_url,
            pay_code=record.pay_code,
            expires_at=record.expires_at,
            failure_reason=record.failure_reason,
            created_at=record.created_at,
            paid_at=record.paid_at,
            credited=record.credited_at is not None,
        )


class ListTopupsResponseDTO(BaseModel):
    items: list[TopupTransactionDTO]
    total: int
    limit: int
    offset: int


class ResolveOutcomeDTO(BaseModel):
    """Result of pushing a top-up to a terminal status"""

    merchant_ref: str
    status: TopupStatus
    changed: bool = Field(..., description="False if another caller had already resolved it")
    credited: bool = False
    balance_after: Optional[int] = None


class CallbackPayloadDTO(BaseModel):
    """Gateway payment_status callback body"""

    reference: Optional[str] = None
    merchant_ref: Optional[str] = None
    status: str
    is_closed_payment: int = 0
    total_amount: Optional[int] = None
    payment_method_code: Optional[str] = None
    paid_at: Optional[int] = None
    note: Optional[str] = None


class CallbackAckDTO(BaseModel):
    success: bool = True
    merchant_ref: Optional[str] = None
    status: Optional[TopupStatus] = None
    changed: bool = False


class LedgerCreditMismatchDTO(BaseModel):
    """A PAID top-up whose quota was not found on the ledger"""

    merchant_ref: str
    user_id: int
    quantity: int
    final_amount: Decimal
    paid_at: Optional[datetime] = None
    repaired: bool = False


class LedgerDiscrepancyDTO(BaseModel):
    """Ledger balance that disagrees with the sum of its movements"""

    user_id: int
    ledger_id: int
    ledger_balance: int
    calculated_balance: int
    discrepancy: int


class ReconciliationResultDTO(BaseModel):
    """Summary of one safety-net pass"""

    credit_mismatches: list[LedgerCreditMismatchDTO] = []
    credits_repaired: int = 0
    total_ledgers_checked: int = 0
    discrepancies_found: int = 0
    discrepancies: list[LedgerDiscrepancyDTO] = []
    expired_checked: int = 0
    expired_resolved: int = 0
    paid_resolved: int = 0
    expiry_skipped: int = 0
    reconciliation_time: datetime
    execution_time_ms: int = 0
