from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .payment_gateway import (
    PaymentGatewayClient,
    GatewayError,
    GatewayUnavailable,
    GatewayRejected,
)

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "PaymentGatewayClient",
    "GatewayError",
    "GatewayUnavailable",
    "GatewayRejected",
]
