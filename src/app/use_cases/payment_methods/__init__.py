"""Payment method use cases"""
from .sync_payment_methods import SyncPaymentMethods
from .list_payment_methods import ListPaymentMethods
from .set_payment_method_enabled import SetPaymentMethodEnabled
from .dtos import PaymentMethodDTO, ListPaymentMethodsResponseDTO, SyncPaymentMethodsResultDTO

__all__ = [
    "SyncPaymentMethods",
    "ListPaymentMethods",
    "SetPaymentMethodEnabled",
    "PaymentMethodDTO",
    "ListPaymentMethodsResponseDTO",
    "SyncPaymentMethodsResultDTO",
]
