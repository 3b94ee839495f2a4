from typing import Optional
from fastapi import Header, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError
from src.adapter.repositories import SqlAlchemyTopupTransactionRepository
from src.adapter.repositories import SqlAlchemyQuotaLedgerRepository
from src.adapter.repositories import SqlAlchemyQuotaMovementRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.payment_gateway import GatewayConfig, HttpPaymentGatewayClient
from src.app.services.notification_service import NotificationService
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.use_cases.quota import CreditTopupQuota
from src.app.use_cases.topup import ResolveTopup, TopupSettings

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

gateway_client = HttpPaymentGatewayClient(GatewayConfig.from_app_config(ApplicationConfig))
notification_service = create_notification_service(ApplicationConfig.NOTIFICATION_WEBHOOK)
topup_settings = TopupSettings.from_app_config(ApplicationConfig)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_gateway_client() -> PaymentGatewayClient:
    return gateway_client


def get_notification_service() -> NotificationService:
    return notification_service


def get_topup_settings() -> TopupSettings:
    return topup_settings


def build_resolve_topup(
    session: AsyncSession, notification_service: Optional[NotificationService] = None
) -> ResolveTopup:
    """ResolveTopup wired to one session (shared by its credit step)"""
    uow = SqlAlchemyUnitOfWork(session)
    topup_repo = SqlAlchemyTopupTransactionRepository(session)
    credit_quota = CreditTopupQuota(
        uow=uow,
        ledger_repo=SqlAlchemyQuotaLedgerRepository(session),
        movement_repo=SqlAlchemyQuotaMovementRepository(session),
        topup_repo=topup_repo,
    )
    return ResolveTopup(
        uow=uow,
        topup_repo=topup_repo,
        credit_quota=credit_quota,
        notification_service=notification_service,
    )


class CurrentUser(BaseModel):
    """Caller identity forwarded by the upstream auth layer"""

    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or f"User {self.id}"


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_phone: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> CurrentUser:
    if not x_user_id or not x_user_id.isdigit():
        raise ClientError(
            Error(code="UNAUTHORIZED", message="Authentication required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return CurrentUser(
        id=int(x_user_id),
        name=x_user_name,
        email=x_user_email,
        phone=x_user_phone,
        role=x_user_role,
    )


async def require_admin(request: Request, x_user_role: Optional[str] = Header(default=None)) -> None:
    config = getattr(request.app.state, "config", ApplicationConfig)
    if config.AUTH_DISABLED:
        return
    if (x_user_role or "").lower() != "admin":
        raise ClientError(
            Error(code="FORBIDDEN", message="Admin access required"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
