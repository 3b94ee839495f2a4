"""Quota Movement Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.quota_movement import QuotaMovement


class QuotaMovementRepository(ABC):
    """
    Repository interface for QuotaMovement persistence

    Movements are immutable and append-only.
    Idempotency is enforced via unique idempotency_key.
    """

    @abstractmethod
    async def create(self, movement: QuotaMovement) -> QuotaMovement:
        """
        Create a new movement

        Raises:
            IntegrityError: If idempotency_key already exists
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[QuotaMovement]:
        pass

    @abstractmethod
    async def get_movement_sum_by_ledger(self, ledger_id: int) -> int:
        """Sum of all signed movement amounts for a ledger (0 if none)"""
        pass
