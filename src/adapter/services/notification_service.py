"""Notification Service Implementations

Tell users (or an upstream messaging service) that a top-up was credited.
"""

import logging
from typing import Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.topup_transaction import TopupTransaction

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that only logs

    Default for development and the fallback when no webhook is configured.
    """

    async def send_topup_credited(self, transaction: TopupTransaction, balance_after: int) -> bool:
        logger.info(
            f"[TOPUP CREDITED] User: {transaction.user_id}, "
            f"Merchant ref: {transaction.merchant_ref}, "
            f"Quantity: {transaction.quantity}, "
            f"Amount: {transaction.final_amount}, "
            f"Balance: {balance_after}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that POSTs a JSON payload to a webhook

    The receiving side (mailer, Telegram bot, ...) decides how to reach the user.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def send_topup_credited(self, transaction: TopupTransaction, balance_after: int) -> bool:
        payload = {
            "type": "topup_credited",
            "user_id": transaction.user_id,
            "merchant_ref": transaction.merchant_ref,
            "gateway_ref": transaction.gateway_ref,
            "quantity": transaction.quantity,
            "final_amount": str(transaction.final_amount),
            "paid_at": transaction.paid_at.isoformat() if transaction.paid_at else None,
            "balance_after": balance_after,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification sent for top-up {transaction.merchant_ref} to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send webhook notification for top-up {transaction.merchant_ref}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """Delegates to several services; succeeds if any one of them does"""

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_topup_credited(self, transaction: TopupTransaction, balance_after: int) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_topup_credited(transaction, balance_after):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
