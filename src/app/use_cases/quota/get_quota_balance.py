"""Get Quota Balance Use Case"""

from libs.result import Result, Return
from src.app.repositories.quota_ledger_repository import QuotaLedgerRepository
from .dtos import QuotaBalanceResponseDTO


class GetQuotaBalance:
    """
    Read-only lookup of a user's install quota

    Users without a ledger simply have zero quota.
    """

    def __init__(self, ledger_repo: QuotaLedgerRepository):
        self.ledger_repo = ledger_repo

    async def execute(self, user_id: int) -> Result[QuotaBalanceResponseDTO]:
        ledger = await self.ledger_repo.get_by_user_id(user_id)

        if not ledger:
            return Return.ok(QuotaBalanceResponseDTO(user_id=user_id, balance=0))

        return Return.ok(
            QuotaBalanceResponseDTO(
                user_id=ledger.user_id,
                balance=ledger.balance,
                last_updated=ledger.updated_at,
            )
        )
