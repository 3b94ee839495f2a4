"""SetPaymentMethodEnabled Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from .dtos import PaymentMethodDTO

logger = logging.getLogger(__name__)


class SetPaymentMethodEnabled:
    """
    Use Case: Admin enable/disable of a payment method

    The flag is a local override that sync never overwrites. A code that is
    not cached yet is looked up in the gateway's live list and inserted.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_method_repo: PaymentMethodRepository,
        gateway: PaymentGatewayClient,
    ):
        self.uow = uow
        self.payment_method_repo = payment_method_repo
        self.gateway = gateway

    async def execute(self, code: str, is_enabled: bool) -> Result[PaymentMethodDTO]:
        try:
            method = await self.payment_method_repo.set_enabled(code, is_enabled)

            if method is None:
                channels = await self.gateway.list_payment_channels()
                channel = next((c for c in channels if c.code == code), None)
                if channel is None:
                    await self.uow.rollback()
                    return Return.err(
                        Error(code="PAYMENT_METHOD_NOT_FOUND", message=f"Payment method {code} not found")
                    )
                await self.payment_method_repo.upsert_gateway_fields(
                    code, channel.gateway_fields(), is_enabled=is_enabled
                )
                method = await self.payment_method_repo.set_enabled(code, is_enabled)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="PAYMENT_METHOD_UPDATE_FAILED",
                    message=f"Failed to update payment method {code}",
                    reason=str(e),
                )
            )

        logger.info(f"Payment method {code} {'enabled' if is_enabled else 'disabled'}")
        return Return.ok(PaymentMethodDTO.from_model(method))
