"""Top-up Reconciliation Background Worker

Periodically repairs PAID top-ups whose quota credit never landed, checks
ledger balances against their movements and settles expired top-ups.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyQuotaLedgerRepository,
    SqlAlchemyQuotaMovementRepository,
    SqlAlchemyTopupTransactionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.payment_gateway import GatewayConfig, HttpPaymentGatewayClient
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.use_cases.quota import CreditTopupQuota
from src.app.use_cases.topup import ReconcileTopups, ResolveTopup, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class TopupReconcilerWorker:
    """
    Background worker for top-up reconciliation

    Features:
    - Credits PAID top-ups that were never applied to the ledger
    - Logs ledger/movement discrepancies for investigation
    - Settles open top-ups past their deadline after asking the gateway
    - Can run once or continuously

    Usage:
        # Run once
        worker = TopupReconcilerWorker()
        result = await worker.run_once()

        # Run continuously
        worker = TopupReconcilerWorker()
        await worker.run_forever(interval_seconds=300)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        gateway: Optional[PaymentGatewayClient] = None,
        batch_size: Optional[int] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            gateway: Gateway client (defaults to one built from ApplicationConfig)
            batch_size: Records handled per step (defaults to RECONCILIATION_BATCH_SIZE)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.gateway = gateway or HttpPaymentGatewayClient(GatewayConfig.from_app_config(ApplicationConfig))
        self.batch_size = batch_size or int(ApplicationConfig.RECONCILIATION_BATCH_SIZE)
        self.notification_service = create_notification_service(ApplicationConfig.NOTIFICATION_WEBHOOK)

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("TopupReconcilerWorker initialized")

    async def run_once(self) -> ReconciliationResultDTO:
        """
        Run reconciliation once

        Raises:
            RuntimeError: If the reconciliation use case fails
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Top-up reconciliation is disabled, skipping")
            return ReconciliationResultDTO(reconciliation_time=datetime.utcnow())

        async with self.async_session_factory() as session:
            uow = SqlAlchemyUnitOfWork(session)
            ledger_repo = SqlAlchemyQuotaLedgerRepository(session)
            movement_repo = SqlAlchemyQuotaMovementRepository(session)
            topup_repo = SqlAlchemyTopupTransactionRepository(session)

            credit_quota = CreditTopupQuota(
                uow=uow,
                ledger_repo=ledger_repo,
                movement_repo=movement_repo,
                topup_repo=topup_repo,
            )
            use_case = ReconcileTopups(
                ledger_repo=ledger_repo,
                movement_repo=movement_repo,
                topup_repo=topup_repo,
                credit_quota=credit_quota,
                resolve_topup=ResolveTopup(
                    uow=uow,
                    topup_repo=topup_repo,
                    credit_quota=credit_quota,
                    notification_service=self.notification_service,
                ),
                gateway=self.gateway,
                batch_size=self.batch_size,
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Reconciliation failed: {result.error.message}")
                raise RuntimeError(f"Reconciliation failed: {result.error.reason or result.error.message}")

            response = result.value

            for m in response.credit_mismatches:
                logger.error(
                    f"  - Uncredited top-up {m.merchant_ref}: user_id={m.user_id} "
                    f"quantity={m.quantity} amount={m.final_amount} repaired={m.repaired}"
                )
            if response.discrepancies_found > 0:
                logger.error(f"ALERT: {response.discrepancies_found} quota ledger discrepancies found!")
                for d in response.discrepancies:
                    logger.error(
                        f"  - User {d.user_id} (ledger_id={d.ledger_id}): "
                        f"expected={d.calculated_balance}, actual={d.ledger_balance}, "
                        f"diff={d.discrepancy}"
                    )

            return response

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Run reconciliation continuously at the given interval

        Args:
            interval_seconds: Seconds between runs (defaults to RECONCILIATION_INTERVAL_SECONDS)
        """
        if interval_seconds is None:
            interval_seconds = int(ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS)

        logger.info(f"Starting continuous top-up reconciliation with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Repaired {result.credits_repaired} credits, "
                    f"checked {result.total_ledgers_checked} ledgers, "
                    f"settled {result.expired_resolved + result.paid_resolved} expired top-ups "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("TopupReconcilerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.topup_reconciler --once

        # Run continuously (default: RECONCILIATION_INTERVAL_SECONDS)
        python -m src.worker.topup_reconciler

        # Run continuously with custom interval (in seconds)
        python -m src.worker.topup_reconciler --interval 60
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Top-up Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=None,
        help="Interval between runs in seconds (default: RECONCILIATION_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = TopupReconcilerWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Reconciliation complete:")
            print(f"  Uncredited top-ups: {len(result.credit_mismatches)} (repaired {result.credits_repaired})")
            print(f"  Ledgers checked: {result.total_ledgers_checked}")
            print(f"  Discrepancies found: {result.discrepancies_found}")
            print(f"  Expired top-ups settled: {result.expired_resolved} expired, {result.paid_resolved} paid")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
