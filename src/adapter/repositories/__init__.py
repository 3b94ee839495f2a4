from .quota_ledger_repository import SqlAlchemyQuotaLedgerRepository
from .quota_movement_repository import SqlAlchemyQuotaMovementRepository
from .topup_transaction_repository import SqlAlchemyTopupTransactionRepository
from .payment_method_repository import SqlAlchemyPaymentMethodRepository

__all__ = [
    "SqlAlchemyQuotaLedgerRepository",
    "SqlAlchemyQuotaMovementRepository",
    "SqlAlchemyTopupTransactionRepository",
    "SqlAlchemyPaymentMethodRepository",
]
