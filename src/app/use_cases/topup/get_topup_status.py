"""GetTopupStatus Use Case (poll)"""

import logging
import time
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGatewayClient, GatewayError
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.domain.topup_transaction import TopupStatus
from .dtos import TopupTransactionDTO
from .resolve_topup import ResolveTopup, TERMINAL_FROM_GATEWAY

logger = logging.getLogger(__name__)


class GetTopupStatus:
    """
    Use Case: Report (and if possible settle) the state of a user's top-up

    Business Rules:
    1. Only the owner sees a record; anything else is RECORD_NOT_FOUND
    2. Terminal records are returned as stored
    3. Open records with a gateway reference are checked with the gateway;
       a terminal gateway status is applied through ResolveTopup
    4. A record past its deadline is reported EXPIRED. The EXPIRED status is
       only written when the gateway confirms it was not paid, or when the
       gateway never issued a reference
    5. Gateway errors never fail the poll; the current state is returned
    """

    def __init__(
        self,
        topup_repo: TopupTransactionRepository,
        gateway: PaymentGatewayClient,
        resolve_topup: ResolveTopup,
    ):
        self.topup_repo = topup_repo
        self.gateway = gateway
        self.resolve_topup = resolve_topup

    async def execute(
        self, user_id: int, merchant_ref: str, now: Optional[int] = None
    ) -> Result[TopupTransactionDTO]:
        record = await self.topup_repo.get_by_merchant_ref(merchant_ref)
        if record is None or record.user_id != user_id:
            return Return.err(
                Error(code="RECORD_NOT_FOUND", message=f"Top-up {merchant_ref} not found")
            )

        if record.status.is_terminal:
            return Return.ok(TopupTransactionDTO.from_record(record))

        if now is None:
            now = int(time.time())

        target: Optional[TopupStatus] = None
        if record.gateway_ref:
            try:
                remote = await self.gateway.get_transaction_detail(record.gateway_ref)
            except GatewayError as e:
                logger.warning(f"Could not check {merchant_ref} with the gateway: {e}")
                return Return.ok(TopupTransactionDTO.from_record(record, now))

            target = TERMINAL_FROM_GATEWAY.get(remote.status)
            if target is None and record.is_expired(now):
                target = TopupStatus.EXPIRED
        elif record.is_expired(now):
            target = TopupStatus.EXPIRED

        if target is None:
            return Return.ok(TopupTransactionDTO.from_record(record, now))

        resolved = await self.resolve_topup.execute(merchant_ref, target)
        if resolved.is_err():
            logger.warning(f"Poll could not resolve {merchant_ref}: {resolved.error.message}")

        # Resolving may roll the session back, which expires the loaded record
        record = await self.topup_repo.get_by_merchant_ref(merchant_ref)
        return Return.ok(TopupTransactionDTO.from_record(record, now))
