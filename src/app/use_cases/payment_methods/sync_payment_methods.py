"""SyncPaymentMethods Use Case

Refreshes the local payment method cache from the gateway's live channel list.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from .dtos import SyncPaymentMethodsResultDTO

logger = logging.getLogger(__name__)


class SyncPaymentMethods:
    """
    Use Case: Admin sync of payment methods

    Business Rules:
    1. Existing codes get their gateway-owned fields refreshed
    2. New codes are inserted, enabled according to the gateway's active flag
    3. is_enabled of an existing row is never touched (admin override wins)
    4. Codes missing from the gateway response are left alone
    5. A new code inserted concurrently by another sync is upserted, never
       reported as an error

    An unreachable gateway yields an empty list and therefore a no-op sync.
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

    async def execute(self) -> Result[SyncPaymentMethodsResultDTO]:
        channels = await self.gateway.list_payment_channels()
        updated_count = 0
        inserted_count = 0

        try:
            for channel in channels:
                fields = channel.gateway_fields()
                if await self.payment_method_repo.update_gateway_fields(channel.code, fields):
                    updated_count += 1
                else:
                    await self.payment_method_repo.upsert_gateway_fields(
                        channel.code, fields, is_enabled=channel.active
                    )
                    inserted_count += 1

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Payment method sync failed: {e}")
            return Return.err(
                Error(
                    code="SYNC_FAILED",
                    message="Failed to sync payment methods",
                    reason=str(e),
                )
            )

        logger.info(
            f"Payment method sync: fetched={len(channels)} "
            f"updated={updated_count} inserted={inserted_count}"
        )
        return Return.ok(
            SyncPaymentMethodsResultDTO(
                total_fetched=len(channels),
                updated_count=updated_count,
                inserted_count=inserted_count,
            )
        )
