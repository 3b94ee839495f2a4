"""InitiateTopup Use Case

Creates the local record first, then the gateway transaction, so that every
gateway transaction has a record to resolve against.
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import (
    PaymentGatewayClient,
    GatewayTransactionRequest,
    GatewayOrderItem,
    GatewayUnavailable,
    GatewayRejected,
)
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from src.domain import pricing
from src.domain.merchant_ref import generate_merchant_ref
from src.domain.topup_transaction import TopupTransaction, TopupStatus, AlreadyTerminal
from .dtos import InitiateTopupCommandDTO, TopupTransactionDTO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopupSettings:
    unit_price: Decimal
    product_sku: str = "WIN-INSTALL-QUOTA"
    product_name: str = "Windows Install Quota"
    expiry_seconds: int = 86400
    return_url: Optional[str] = None
    callback_url: Optional[str] = None

    @classmethod
    def from_app_config(cls, config) -> "TopupSettings":
        return cls(
            unit_price=Decimal(str(config.TOPUP_UNIT_PRICE)),
            product_sku=config.TOPUP_PRODUCT_SKU,
            product_name=config.TOPUP_PRODUCT_NAME,
            expiry_seconds=int(config.TOPUP_EXPIRY_SECONDS),
            return_url=config.GATEWAY_RETURN_URL or None,
            callback_url=config.GATEWAY_CALLBACK_URL or None,
        )


class InitiateTopup:
    """
    Use Case: Start a quota purchase

    Business Rules:
    1. Quantity must be a positive integer (INVALID_QUANTITY)
    2. Locally disabled payment methods are refused before anything is
       created (PAYMENT_METHOD_DISABLED); unknown codes go to the gateway
    3. The PENDING record is committed before the gateway is called
    4. A gateway failure moves the record to FAILED with the error text
    5. A successful call stores the gateway data and moves the record to UNPAID

    Flow:
    1. Quote the quantity
    2. Check the payment method override
    3. Create and commit the PENDING record
    4. Create the gateway transaction
    5. Attach gateway info (PENDING -> UNPAID) and commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        topup_repo: TopupTransactionRepository,
        payment_method_repo: PaymentMethodRepository,
        gateway: PaymentGatewayClient,
        settings: TopupSettings,
    ):
        self.uow = uow
        self.topup_repo = topup_repo
        self.payment_method_repo = payment_method_repo
        self.gateway = gateway
        self.settings = settings

    async def execute(self, command: InitiateTopupCommandDTO) -> Result[TopupTransactionDTO]:
        try:
            quote = pricing.calculate(command.quantity, self.settings.unit_price)
        except pricing.InvalidQuantity as e:
            return Return.err(Error(code="INVALID_QUANTITY", message=str(e)))

        method = await self.payment_method_repo.get_by_code(command.payment_method)
        if method is not None and not method.is_enabled:
            return Return.err(
                Error(
                    code="PAYMENT_METHOD_DISABLED",
                    message=f"Payment method {command.payment_method} is currently unavailable",
                )
            )

        expires_at = int(time.time()) + self.settings.expiry_seconds
        merchant_ref = generate_merchant_ref(command.user_id, command.quantity)

        try:
            record = await self.topup_repo.create(
                TopupTransaction(
                    user_id=command.user_id,
                    merchant_ref=merchant_ref,
                    unit_price=quote.unit_price,
                    quantity=quote.quantity,
                    subtotal=quote.subtotal,
                    discount_percent=quote.discount_percent,
                    discount_amount=quote.discount_amount,
                    final_amount=quote.final_amount,
                    payment_method_code=command.payment_method,
                    status=TopupStatus.PENDING,
                    expires_at=expires_at,
                )
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="TOPUP_CREATE_FAILED", message="Failed to create top-up", reason=str(e))
            )

        request = GatewayTransactionRequest(
            method=command.payment_method,
            merchant_ref=merchant_ref,
            amount=quote.gateway_amount,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            customer_phone=command.customer_phone,
            order_items=[
                GatewayOrderItem(
                    sku=self.settings.product_sku,
                    name=f"{self.settings.product_name} x{quote.quantity}",
                    price=quote.gateway_amount,
                    quantity=1,
                )
            ],
            return_url=self.settings.return_url,
            callback_url=self.settings.callback_url,
            expired_time=expires_at,
        )

        try:
            remote = await self.gateway.create_transaction(request)
        except GatewayUnavailable as e:
            await self._mark_failed(merchant_ref, str(e))
            return Return.err(
                Error(
                    code="GATEWAY_UNAVAILABLE",
                    message="Payment gateway is unavailable, please try again later",
                    reason=str(e),
                )
            )
        except GatewayRejected as e:
            await self._mark_failed(merchant_ref, str(e))
            return Return.err(
                Error(code="GATEWAY_REJECTED", message=str(e) or "Payment gateway rejected the request")
            )

        try:
            outcome = await self.topup_repo.attach_gateway_info(
                merchant_ref,
                gateway_ref=remote.gateway_ref,
                checkout_url=remote.checkout_url,
                qr_url=remote.qr_url,
                pay_code=remote.pay_code,
                expires_at=remote.expires_at,
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Gateway transaction {remote.gateway_ref} created but not stored "
                f"for {merchant_ref}: {e}"
            )
            return Return.err(
                Error(code="TOPUP_UPDATE_FAILED", message="Failed to store gateway transaction", reason=str(e))
            )

        if isinstance(outcome, AlreadyTerminal):
            # Resolved by a callback before we stored the gateway data
            record = outcome.record
        elif outcome is not None:
            record = outcome

        logger.info(
            f"Top-up {merchant_ref} initiated for user {command.user_id}: "
            f"quantity={quote.quantity} amount={quote.gateway_amount} method={command.payment_method}"
        )
        return Return.ok(TopupTransactionDTO.from_record(record))

    async def _mark_failed(self, merchant_ref: str, reason: str) -> None:
        logger.warning(f"Gateway call failed for {merchant_ref}: {reason}")
        try:
            await self.topup_repo.transition_to_terminal(
                merchant_ref, TopupStatus.FAILED, failure_reason=reason
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Could not mark {merchant_ref} as FAILED: {e}")
