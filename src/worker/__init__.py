"""Background workers for the top-up service"""
from .topup_reconciler import TopupReconcilerWorker

__all__ = ["TopupReconcilerWorker"]
