"""ResolveTopup Use Case

The one path by which a top-up reaches PAID, EXPIRED or FAILED. Callbacks,
polls and the expiry sweep all go through here.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.app.use_cases.quota.credit_topup_quota import CreditTopupQuota
from src.domain.topup_transaction import TopupStatus, AlreadyTerminal
from .dtos import ResolveOutcomeDTO

logger = logging.getLogger(__name__)

# Gateway statuses that end a transaction
TERMINAL_FROM_GATEWAY = {
    "PAID": TopupStatus.PAID,
    "EXPIRED": TopupStatus.EXPIRED,
    "FAILED": TopupStatus.FAILED,
}


class ResolveTopup:
    """
    Use Case: Move a top-up to a terminal status and apply its effects

    Business Rules:
    1. The conditional status update is committed on its own; only the
       caller whose update changed the row goes on to apply side effects
    2. For PAID, quota is credited through CreditTopupQuota (idempotent)
    3. A failed credit does not undo PAID; it is logged and left for the
       reconciler, which looks for PAID records without credited_at
    4. Notification failures never affect the outcome
    """

    def __init__(
        self,
        uow: UnitOfWork,
        topup_repo: TopupTransactionRepository,
        credit_quota: CreditTopupQuota,
        notification_service: Optional[NotificationService] = None,
    ):
        self.uow = uow
        self.topup_repo = topup_repo
        self.credit_quota = credit_quota
        self.notification_service = notification_service

    async def execute(
        self,
        merchant_ref: str,
        target_status: TopupStatus,
        paid_at: Optional[datetime] = None,
        failure_reason: Optional[str] = None,
    ) -> Result[ResolveOutcomeDTO]:
        if not target_status.is_terminal:
            return Return.err(
                Error(
                    code="INVALID_TARGET_STATUS",
                    message=f"{target_status.value} is not a terminal status",
                )
            )

        try:
            outcome = await self.topup_repo.transition_to_terminal(
                merchant_ref, target_status, paid_at=paid_at, failure_reason=failure_reason
            )

            if outcome is None:
                await self.uow.rollback()
                return Return.err(
                    Error(code="RECORD_NOT_FOUND", message=f"Top-up {merchant_ref} not found")
                )

            if isinstance(outcome, AlreadyTerminal):
                await self.uow.rollback()
                logger.info(
                    f"Top-up {merchant_ref} already {outcome.status.value}, "
                    f"ignoring transition to {target_status.value}"
                )
                return Return.ok(
                    ResolveOutcomeDTO(
                        merchant_ref=merchant_ref,
                        status=outcome.status,
                        changed=False,
                        credited=outcome.credited,
                    )
                )

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to resolve top-up {merchant_ref} to {target_status.value}: {e}")
            return Return.err(
                Error(
                    code="RESOLVE_FAILED",
                    message=f"Failed to resolve top-up {merchant_ref}",
                    reason=str(e),
                )
            )

        record = outcome
        logger.info(f"Top-up {merchant_ref} resolved as {target_status.value}")

        if target_status != TopupStatus.PAID:
            return Return.ok(
                ResolveOutcomeDTO(merchant_ref=merchant_ref, status=target_status, changed=True)
            )

        # A failed credit rolls the session back and expires the record
        user_id, quantity, amount = record.user_id, record.quantity, record.final_amount

        credit = await self.credit_quota.execute(record)
        if credit.is_err():
            logger.error(
                f"Top-up {merchant_ref} is PAID but quota was not credited "
                f"(user_id={user_id}, quantity={quantity}, "
                f"amount={amount}): {credit.error.reason or credit.error.message}"
            )
            return Return.ok(
                ResolveOutcomeDTO(merchant_ref=merchant_ref, status=TopupStatus.PAID, changed=True)
            )

        if self.notification_service and not credit.value.already_credited:
            await self._notify(record, credit.value.balance_after)

        return Return.ok(
            ResolveOutcomeDTO(
                merchant_ref=merchant_ref,
                status=TopupStatus.PAID,
                changed=True,
                credited=True,
                balance_after=credit.value.balance_after,
            )
        )

    async def _notify(self, record, balance_after: int) -> None:
        try:
            sent = await self.notification_service.send_topup_credited(record, balance_after)
        except Exception as e:
            logger.warning(f"Notification for {record.merchant_ref} raised: {e}")
            return
        if not sent:
            logger.warning(f"Notification for {record.merchant_ref} was not delivered")
