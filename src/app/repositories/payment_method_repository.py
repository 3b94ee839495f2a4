"""Payment Method Repository Interface"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from src.domain.payment_method import PaymentMethod


class PaymentMethodRepository(ABC):

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[PaymentMethod]:
        pass

    @abstractmethod
    async def list_all(self, enabled_only: bool = False) -> list[PaymentMethod]:
        """Payment methods ordered by name"""
        pass

    @abstractmethod
    async def update_gateway_fields(self, code: str, fields: dict[str, Any]) -> bool:
        """
        Overwrite gateway-owned columns of an existing row

        Returns:
            True if a row with this code existed
        """
        pass

    @abstractmethod
    async def upsert_gateway_fields(self, code: str, fields: dict[str, Any], is_enabled: bool = True) -> None:
        """
        Insert a new row, or update gateway-owned columns if another writer
        inserted the same code first. is_enabled only applies to the insert.
        """
        pass

    @abstractmethod
    async def set_enabled(self, code: str, is_enabled: bool) -> Optional[PaymentMethod]:
        """Update the local override; None if the code is unknown"""
        pass
