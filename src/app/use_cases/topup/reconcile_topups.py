"""ReconcileTopups Use Case

Safety net run by the background worker:
1. PAID top-ups whose quota never landed are reported and credited
2. Ledger balances are compared with their movement history (read-only)
3. Open top-ups past their deadline are settled with the gateway's answer
"""

import logging
import time
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGatewayClient, GatewayError
from src.app.repositories.quota_ledger_repository import QuotaLedgerRepository
from src.app.repositories.quota_movement_repository import QuotaMovementRepository
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.app.use_cases.quota.credit_topup_quota import CreditTopupQuota
from src.domain.topup_transaction import TopupStatus
from .dtos import LedgerCreditMismatchDTO, LedgerDiscrepancyDTO, ReconciliationResultDTO
from .resolve_topup import ResolveTopup, TERMINAL_FROM_GATEWAY

logger = logging.getLogger(__name__)


class ReconcileTopups:
    """
    Use Case: Reconcile top-ups with the quota ledger and the gateway

    Business Rules:
    1. Every PAID record without credited_at is a mismatch; it is logged at
       ERROR and repaired through CreditTopupQuota, which cannot double-credit
    2. Ledger/movement discrepancies are only reported, never corrected
    3. Expired open records are checked with the gateway first. A gateway
       PAID wins over the local deadline; otherwise the record is EXPIRED
       (or FAILED if the gateway says so). Records without a gateway
       reference are expired directly. Records the gateway cannot be asked
       about are skipped until the next run
    """

    def __init__(
        self,
        ledger_repo: QuotaLedgerRepository,
        movement_repo: QuotaMovementRepository,
        topup_repo: TopupTransactionRepository,
        credit_quota: CreditTopupQuota,
        resolve_topup: ResolveTopup,
        gateway: PaymentGatewayClient,
        batch_size: int = 100,
    ):
        self.ledger_repo = ledger_repo
        self.movement_repo = movement_repo
        self.topup_repo = topup_repo
        self.credit_quota = credit_quota
        self.resolve_topup = resolve_topup
        self.gateway = gateway
        self.batch_size = batch_size

    async def execute(self, now: Optional[int] = None) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = datetime.utcnow()
        if now is None:
            now = int(start_time)

        try:
            logger.info("Starting top-up reconciliation")

            mismatches = await self._repair_uncredited()
            ledgers_checked, discrepancies = await self._check_ledgers()
            expired_checked, expired_resolved, paid_resolved, skipped = await self._sweep_expired(now)

            execution_time_ms = int((time.time() - start_time) * 1000)
            response = ReconciliationResultDTO(
                credit_mismatches=mismatches,
                credits_repaired=sum(1 for m in mismatches if m.repaired),
                total_ledgers_checked=ledgers_checked,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                expired_checked=expired_checked,
                expired_resolved=expired_resolved,
                paid_resolved=paid_resolved,
                expiry_skipped=skipped,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if mismatches or discrepancies:
                logger.warning(
                    f"Reconciliation complete. {len(mismatches)} uncredited top-ups, "
                    f"{len(discrepancies)} ledger discrepancies in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. {ledgers_checked} ledgers balanced, "
                    f"{expired_resolved + paid_resolved} expired top-ups settled in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Top-up reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile top-ups",
                    reason=str(e),
                )
            )

    async def _repair_uncredited(self) -> list[LedgerCreditMismatchDTO]:
        # A failed credit rolls the session back and expires every loaded
        # record, so each one is read again right before it is handled
        refs = [r.merchant_ref for r in await self.topup_repo.list_paid_uncredited(limit=self.batch_size)]
        mismatches = []
        for merchant_ref in refs:
            record = await self.topup_repo.get_by_merchant_ref(merchant_ref)
            if record is None or record.credited_at is not None:
                continue

            mismatch = LedgerCreditMismatchDTO(
                merchant_ref=record.merchant_ref,
                user_id=record.user_id,
                quantity=record.quantity,
                final_amount=record.final_amount,
                paid_at=record.paid_at,
            )
            logger.error(
                f"PAID top-up without quota credit: merchant_ref={mismatch.merchant_ref} "
                f"user_id={mismatch.user_id} quantity={mismatch.quantity} amount={mismatch.final_amount}"
            )
            credit = await self.credit_quota.execute(record)
            if credit.is_err():
                logger.error(f"Repair failed for {merchant_ref}: {credit.error.reason}")

            mismatch.repaired = credit.is_ok()
            mismatches.append(mismatch)
        return mismatches

    async def _check_ledgers(self) -> tuple[int, list[LedgerDiscrepancyDTO]]:
        ledgers = await self.ledger_repo.get_all()
        discrepancies = []

        for ledger in ledgers:
            movement_sum = await self.movement_repo.get_movement_sum_by_ledger(ledger.id)
            if ledger.balance != movement_sum:
                discrepancy = LedgerDiscrepancyDTO(
                    user_id=ledger.user_id,
                    ledger_id=ledger.id,
                    ledger_balance=ledger.balance,
                    calculated_balance=movement_sum,
                    discrepancy=ledger.balance - movement_sum,
                )
                discrepancies.append(discrepancy)
                logger.warning(
                    f"Discrepancy found for user {ledger.user_id} (ledger_id={ledger.id}): "
                    f"ledger_balance={ledger.balance}, movement_sum={movement_sum}, "
                    f"discrepancy={discrepancy.discrepancy}"
                )

        return len(ledgers), discrepancies

    async def _sweep_expired(self, now: int) -> tuple[int, int, int, int]:
        records = await self.topup_repo.list_unresolved_expired(now, limit=self.batch_size)
        # Plain values: a resolve that loses its race rolls the session back
        candidates = [(r.merchant_ref, r.gateway_ref) for r in records]
        expired = paid = skipped = 0

        for merchant_ref, gateway_ref in candidates:
            target = TopupStatus.EXPIRED
            if gateway_ref:
                try:
                    remote = await self.gateway.get_transaction_detail(gateway_ref)
                except GatewayError as e:
                    logger.warning(f"Skipping expiry of {merchant_ref}, gateway check failed: {e}")
                    skipped += 1
                    continue
                target = TERMINAL_FROM_GATEWAY.get(remote.status, TopupStatus.EXPIRED)

            resolved = await self.resolve_topup.execute(merchant_ref, target)
            if resolved.is_err():
                logger.warning(f"Could not settle {merchant_ref}: {resolved.error.message}")
                skipped += 1
            elif resolved.value.changed and resolved.value.status == TopupStatus.PAID:
                paid += 1
            elif resolved.value.changed:
                expired += 1

        return len(candidates), expired, paid, skipped
