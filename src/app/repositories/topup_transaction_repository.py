"""Top-up Transaction Repository Interface

Defines the contract for top-up transaction persistence. The conditional
updates here are the concurrency boundary for payment resolution.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Union
from src.domain.topup_transaction import TopupTransaction, TopupStatus, AlreadyTerminal


class TopupTransactionRepository(ABC):
    """
    Repository interface for TopupTransaction persistence

    Records are never deleted. Status changes are compare-and-set updates
    so that only one concurrent caller can move a record to a terminal state.
    """

    @abstractmethod
    async def create(self, transaction: TopupTransaction) -> TopupTransaction:
        """
        Persist a new PENDING transaction

        Raises:
            IntegrityError: If merchant_ref already exists
        """
        pass

    @abstractmethod
    async def attach_gateway_info(
        self,
        merchant_ref: str,
        gateway_ref: str,
        checkout_url: Optional[str],
        qr_url: Optional[str],
        pay_code: Optional[str],
        expires_at: Optional[int],
    ) -> Union[TopupTransaction, AlreadyTerminal, None]:
        """
        Store gateway data and move PENDING -> UNPAID

        Returns:
            Updated record, AlreadyTerminal if the record had already been
            resolved, None if merchant_ref is unknown
        """
        pass

    @abstractmethod
    async def transition_to_terminal(
        self,
        merchant_ref: str,
        target_status: TopupStatus,
        paid_at: Optional[datetime] = None,
        failure_reason: Optional[str] = None,
    ) -> Union[TopupTransaction, AlreadyTerminal, None]:
        """
        Move an open (PENDING/UNPAID) record to a terminal status

        Only the caller whose update actually changed the row gets the
        record back; everyone else gets AlreadyTerminal.

        Returns:
            Updated record, AlreadyTerminal, or None if merchant_ref is unknown
        """
        pass

    @abstractmethod
    async def get_by_merchant_ref(self, merchant_ref: str) -> Optional[TopupTransaction]:
        pass

    @abstractmethod
    async def get_by_gateway_ref(self, gateway_ref: str) -> Optional[TopupTransaction]:
        pass

    @abstractmethod
    async def list_by_user_id(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> tuple[list[TopupTransaction], int]:
        """
        List a user's transactions, newest first

        Returns:
            (page of transactions, total count)
        """
        pass

    @abstractmethod
    async def mark_credited(self, merchant_ref: str, credited_at: datetime) -> None:
        pass

    @abstractmethod
    async def list_paid_uncredited(self, limit: int = 100) -> list[TopupTransaction]:
        """PAID transactions whose quota was never applied"""
        pass

    @abstractmethod
    async def list_unresolved_expired(self, now: int, limit: int = 100) -> list[TopupTransaction]:
        """Open transactions whose expires_at is at or before `now`"""
        pass
