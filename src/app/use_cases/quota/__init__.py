"""Quota ledger use cases"""
from .get_quota_balance import GetQuotaBalance
from .consume_quota import ConsumeQuota
from .credit_topup_quota import CreditTopupQuota, credit_idempotency_key
from .dtos import (
    ConsumeQuotaCommandDTO,
    QuotaMovementResponseDTO,
    QuotaBalanceResponseDTO,
    QuotaCreditDTO,
)

__all__ = [
    "GetQuotaBalance",
    "ConsumeQuota",
    "CreditTopupQuota",
    "credit_idempotency_key",
    "ConsumeQuotaCommandDTO",
    "QuotaMovementResponseDTO",
    "QuotaBalanceResponseDTO",
    "QuotaCreditDTO",
]
