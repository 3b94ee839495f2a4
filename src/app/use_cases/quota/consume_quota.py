"""ConsumeQuota Use Case

Spends install quota with idempotency guarantees. The decrement is a single
conditional UPDATE, so it cannot overdraw even when it races a top-up credit.
"""

import logging
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.quota_ledger_repository import QuotaLedgerRepository
from src.app.repositories.quota_movement_repository import QuotaMovementRepository
from src.domain.quota_movement import QuotaMovement, MovementType
from .dtos import ConsumeQuotaCommandDTO, QuotaMovementResponseDTO

logger = logging.getLogger(__name__)

# Prefix of the keys CreditTopupQuota writes
RESERVED_KEY_PREFIX = "topup:"


def consume_idempotency_key(user_id: int, key: str) -> str:
    """Stored key for a caller's install request, scoped to the user"""
    return f"install:{user_id}:{key}"


class ConsumeQuota:
    """
    Use Case: Consume quota for an install request

    Business Rules:
    1. Idempotency: Same idempotency_key returns the original movement
    2. Caller keys are stored per user, apart from top-up credit keys; keys
       starting with "topup:" are refused (INVALID_IDEMPOTENCY_KEY)
    3. A stored key is only replayed for the same user's consume movement
       (IDEMPOTENCY_KEY_CONFLICT otherwise)
    4. Sufficient balance: rejected with INSUFFICIENT_QUOTA otherwise
    5. Atomic: ledger decrement and movement row commit together

    Flow:
    1. Check idempotency (return existing if found)
    2. Conditional decrement (balance >= amount)
    3. Record movement
    4. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger_repo: QuotaLedgerRepository,
        movement_repo: QuotaMovementRepository,
    ):
        self.uow = uow
        self.ledger_repo = ledger_repo
        self.movement_repo = movement_repo

    async def execute(self, command: ConsumeQuotaCommandDTO) -> Result[QuotaMovementResponseDTO]:
        if command.idempotency_key.startswith(RESERVED_KEY_PREFIX):
            return Return.err(
                Error(
                    code="INVALID_IDEMPOTENCY_KEY",
                    message=f"Idempotency keys may not start with '{RESERVED_KEY_PREFIX}'",
                )
            )

        key = consume_idempotency_key(command.user_id, command.idempotency_key)

        try:
            existing = await self.movement_repo.get_by_idempotency_key(key)
            if existing:
                return self._replay(existing, command)

            ledger = await self.ledger_repo.decrement(command.user_id, command.amount)
            if ledger is None:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="INSUFFICIENT_QUOTA",
                        message="Your quota is insufficient for Windows installation. Please top up your quota to proceed.",
                        reason=f"user_id={command.user_id}, required={command.amount}",
                    )
                )

            movement = await self.movement_repo.create(
                QuotaMovement(
                    user_id=command.user_id,
                    ledger_id=ledger.id,
                    movement_type=MovementType.CONSUME,
                    amount=-command.amount,
                    balance_after=ledger.balance,
                    reference_type=command.reference_type,
                    reference_id=command.reference_id,
                    idempotency_key=key,
                )
            )
            response = _to_response_dto(movement, command.idempotency_key)

            await self.uow.commit()
            return Return.ok(response)

        except IntegrityError:
            # The same request committed first on another connection
            await self.uow.rollback()
            existing = await self.movement_repo.get_by_idempotency_key(key)
            if existing:
                return self._replay(existing, command)
            return Return.err(
                Error(
                    code="CONSUME_QUOTA_FAILED",
                    message="Failed to consume quota",
                    reason="integrity error without an existing movement",
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CONSUME_QUOTA_FAILED",
                    message="Failed to consume quota",
                    reason=str(e),
                )
            )

    @staticmethod
    def _replay(existing: QuotaMovement, command: ConsumeQuotaCommandDTO) -> Result[QuotaMovementResponseDTO]:
        if existing.user_id != command.user_id or existing.movement_type != MovementType.CONSUME:
            logger.warning(
                f"Idempotency key {command.idempotency_key} of user {command.user_id} "
                f"matches movement {existing.id} of user {existing.user_id} ({existing.movement_type.value})"
            )
            return Return.err(
                Error(
                    code="IDEMPOTENCY_KEY_CONFLICT",
                    message="Idempotency key was already used for a different operation",
                )
            )
        return Return.ok(_to_response_dto(existing, command.idempotency_key))


def _to_response_dto(movement: QuotaMovement, idempotency_key: str) -> QuotaMovementResponseDTO:
    return QuotaMovementResponseDTO(
        movement_id=movement.id,
        user_id=movement.user_id,
        movement_type=movement.movement_type.value,
        amount=movement.amount,
        balance_after=movement.balance_after,
        reference_type=movement.reference_type,
        reference_id=movement.reference_id,
        idempotency_key=idempotency_key,
        created_at=movement.created_at,
    )
