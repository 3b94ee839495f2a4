"""Notification Service Interface

Defines the contract for telling users about credited top-ups.
"""

from abc import ABC, abstractmethod
from src.domain.topup_transaction import TopupTransaction


class NotificationService(ABC):
    """
    Abstract notification service

    Notifications are fire-and-forget: a failed notification never
    undoes a quota credit.
    """

    @abstractmethod
    async def send_topup_credited(self, transaction: TopupTransaction, balance_after: int) -> bool:
        """
        Announce that a paid top-up was added to the user's quota

        Args:
            transaction: The PAID top-up transaction
            balance_after: Quota balance after the credit

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
