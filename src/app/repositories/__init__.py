from .quota_ledger_repository import QuotaLedgerRepository
from .quota_movement_repository import QuotaMovementRepository
from .topup_transaction_repository import TopupTransactionRepository
from .payment_method_repository import PaymentMethodRepository

__all__ = [
    "QuotaLedgerRepository",
    "QuotaMovementRepository",
    "TopupTransactionRepository",
    "PaymentMethodRepository",
]
