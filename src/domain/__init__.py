from .base import BaseModel
from .quota_ledger import QuotaLedger
from .quota_movement import QuotaMovement, MovementType
from .topup_transaction import TopupTransaction, TopupStatus, AlreadyTerminal
from .payment_method import PaymentMethod

__all__ = [
    "BaseModel",
    "QuotaLedger",
    "QuotaMovement",
    "MovementType",
    "TopupTransaction",
    "TopupStatus",
    "AlreadyTerminal",
    "PaymentMethod",
]
