"""ListPaymentMethods Use Case"""

from libs.result import Result, Return
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from .dtos import ListPaymentMethodsResponseDTO, PaymentMethodDTO


class ListPaymentMethods:
    def __init__(self, payment_method_repo: PaymentMethodRepository):
        self.payment_method_repo = payment_method_repo

    async def execute(self, enabled_only: bool = False) -> Result[ListPaymentMethodsResponseDTO]:
        methods = await self.payment_method_repo.list_all(enabled_only=enabled_only)
        return Return.ok(
            ListPaymentMethodsResponseDTO(
                items=[PaymentMethodDTO.from_model(m) for m in methods],
                total=len(methods),
            )
        )
