"""ListTopups Use Case"""

import time
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from .dtos import ListTopupsResponseDTO, TopupTransactionDTO

MAX_PAGE_SIZE = 100


class ListTopups:
    """A user's top-up history, newest first, with lazy expiry applied"""

    def __init__(self, topup_repo: TopupTransactionRepository):
        self.topup_repo = topup_repo

    async def execute(
        self, user_id: int, limit: int = 20, offset: int = 0, now: Optional[int] = None
    ) -> Result[ListTopupsResponseDTO]:
        if limit < 1 or limit > MAX_PAGE_SIZE or offset < 0:
            return Return.err(
                Error(
                    code="INVALID_PAGINATION",
                    message=f"limit must be 1-{MAX_PAGE_SIZE} and offset must be >= 0",
                )
            )

        if now is None:
            now = int(time.time())

        records, total = await self.topup_repo.list_by_user_id(user_id, limit=limit, offset=offset)
        return Return.ok(
            ListTopupsResponseDTO(
                items=[TopupTransactionDTO.from_record(r, now) for r in records],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
