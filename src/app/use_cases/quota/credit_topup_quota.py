"""CreditTopupQuota Use Case

Adds the quantity of a PAID top-up to the user's quota, exactly once.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.quota_ledger_repository import QuotaLedgerRepository
from src.app.repositories.quota_movement_repository import QuotaMovementRepository
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.domain.quota_movement import QuotaMovement, MovementType
from src.domain.topup_transaction import TopupTransaction, TopupStatus
from .dtos import QuotaCreditDTO

logger = logging.getLogger(__name__)


def credit_idempotency_key(merchant_ref: str) -> str:
    return f"topup:{merchant_ref}"


class CreditTopupQuota:
    """
    Use Case: Credit quota for a paid top-up

    Business Rules:
    1. Only PAID transactions are credited
    2. The movement idempotency key "topup:{merchant_ref}" is unique, so a
       second credit (retry, reconciler repair, racing caller) is refused by
       the database and rolled back together with its ledger increment
    3. Ledger increment, movement row and credited_at flag commit together

    Called by ResolveTopup for the caller that won the PAID transition and by
    the reconciler for PAID transactions whose credit never landed.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger_repo: QuotaLedgerRepository,
        movement_repo: QuotaMovementRepository,
        topup_repo: TopupTransactionRepository,
    ):
        self.uow = uow
        self.ledger_repo = ledger_repo
        self.movement_repo = movement_repo
        self.topup_repo = topup_repo

    async def execute(self, transaction: TopupTransaction) -> Result[QuotaCreditDTO]:
        if transaction.status != TopupStatus.PAID:
            return Return.err(
                Error(
                    code="TOPUP_NOT_PAID",
                    message=f"Top-up {transaction.merchant_ref} is {transaction.status.value}, not PAID",
                )
            )

        # Plain values: a rollback below expires the transaction instance
        credit = _Credit(
            merchant_ref=transaction.merchant_ref,
            user_id=transaction.user_id,
            quantity=transaction.quantity,
            final_amount=transaction.final_amount,
        )
        key = credit_idempotency_key(credit.merchant_ref)

        try:
            existing = await self.movement_repo.get_by_idempotency_key(key)
            if existing:
                if not _is_credit_for(existing, credit):
                    await self.uow.rollback()
                    return Return.err(_foreign_key_error(credit))
                await self.topup_repo.mark_credited(credit.merchant_ref, existing.created_at)
                await self.uow.commit()
                return Return.ok(credit.to_dto(existing.balance_after, already_credited=True))

            ledger = await self.ledger_repo.increment(credit.user_id, credit.quantity)

            await self.movement_repo.create(
                QuotaMovement(
                    user_id=credit.user_id,
                    ledger_id=ledger.id,
                    movement_type=MovementType.TOPUP,
                    amount=credit.quantity,
                    balance_after=ledger.balance,
                    reference_type="topup_transaction",
                    reference_id=credit.merchant_ref,
                    idempotency_key=key,
                )
            )
            await self.topup_repo.mark_credited(credit.merchant_ref, datetime.utcnow())
            balance_after = ledger.balance

            await self.uow.commit()

            logger.info(
                f"Credited {credit.quantity} quota to user {credit.user_id} "
                f"for {credit.merchant_ref}, balance={balance_after}"
            )
            return Return.ok(credit.to_dto(balance_after))

        except IntegrityError:
            # Another caller committed the same credit first
            await self.uow.rollback()
            existing = await self.movement_repo.get_by_idempotency_key(key)
            if existing and _is_credit_for(existing, credit):
                return Return.ok(credit.to_dto(existing.balance_after, already_credited=True))
            return Return.err(
                Error(
                    code="QUOTA_CREDIT_FAILED",
                    message=f"Failed to credit quota for {credit.merchant_ref}",
                    reason="integrity error without an existing credit",
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Quota credit failed merchant_ref={credit.merchant_ref} "
                f"user_id={credit.user_id} quantity={credit.quantity} "
                f"amount={credit.final_amount}: {e}"
            )
            return Return.err(
                Error(
                    code="QUOTA_CREDIT_FAILED",
                    message=f"Failed to credit quota for {credit.merchant_ref}",
                    reason=str(e),
                )
            )


@dataclass(frozen=True)
class _Credit:
    merchant_ref: str
    user_id: int
    quantity: int
    final_amount: Decimal

    def to_dto(self, balance_after: int, already_credited: bool = False) -> QuotaCreditDTO:
        return QuotaCreditDTO(
            merchant_ref=self.merchant_ref,
            user_id=self.user_id,
            quantity=self.quantity,
            balance_after=balance_after,
            already_credited=already_credited,
        )


def _is_credit_for(movement: QuotaMovement, credit: _Credit) -> bool:
    return (
        movement.movement_type == MovementType.TOPUP
        and movement.user_id == credit.user_id
        and movement.reference_id == credit.merchant_ref
    )


def _foreign_key_error(credit: _Credit) -> Error:
    logger.error(
        f"Credit key for {credit.merchant_ref} is held by another movement; "
        f"user_id={credit.user_id} quantity={credit.quantity} amount={credit.final_amount} not credited"
    )
    return Error(
        code="QUOTA_CREDIT_FAILED",
        message=f"Failed to credit quota for {credit.merchant_ref}",
        reason="idempotency key belongs to another movement",
    )
