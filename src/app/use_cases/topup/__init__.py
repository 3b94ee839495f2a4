"""Top-up use cases"""
from .quote_topup import QuoteTopup
from .initiate_topup import InitiateTopup, TopupSettings
from .resolve_topup import ResolveTopup, TERMINAL_FROM_GATEWAY
from .handle_payment_callback import HandlePaymentCallback
from .get_topup_status import GetTopupStatus
from .list_topups import ListTopups
from .reconcile_topups import ReconcileTopups
from .dtos import (
    PriceQuoteDTO,
    InitiateTopupCommandDTO,
    TopupTransactionDTO,
    ListTopupsResponseDTO,
    ResolveOutcomeDTO,
    CallbackPayloadDTO,
    CallbackAckDTO,
    LedgerCreditMismatchDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "QuoteTopup",
    "InitiateTopup",
    "TopupSettings",
    "ResolveTopup",
    "TERMINAL_FROM_GATEWAY",
    "HandlePaymentCallback",
    "GetTopupStatus",
    "ListTopups",
    "ReconcileTopups",
    "PriceQuoteDTO",
    "InitiateTopupCommandDTO",
    "TopupTransactionDTO",
    "ListTopupsResponseDTO",
    "ResolveOutcomeDTO",
    "CallbackPayloadDTO",
    "CallbackAckDTO",
    "LedgerCreditMismatchDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
]
