"""Quota Ledger Repository Interface

Defines the contract for quota ledger persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.quota_ledger import QuotaLedger


class QuotaLedgerRepository(ABC):
    """
    Repository interface for QuotaLedger persistence

    Balance changes are single atomic UPDATE statements so install
    consumption and top-up crediting can race for the same user safely.
    """

    @abstractmethod
    async def get_by_user_id(self, user_id: int, for_update: bool = False) -> Optional[QuotaLedger]:
        """
        Retrieve ledger by user ID

        Args:
            user_id: User identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            QuotaLedger if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_or_create(self, user_id: int) -> QuotaLedger:
        """Return the user's ledger, creating an empty one on first use"""
        pass

    @abstractmethod
    async def increment(self, user_id: int, amount: int) -> QuotaLedger:
        """
        Atomically add quota

        Returns:
            Ledger after the increment
        """
        pass

    @abstractmethod
    async def decrement(self, user_id: int, amount: int) -> Optional[QuotaLedger]:
        """
        Atomically remove quota if enough is available

        Returns:
            Ledger after the decrement, or None if the balance is too low
        """
        pass

    @abstractmethod
    async def get_all(self) -> list[QuotaLedger]:
        pass
