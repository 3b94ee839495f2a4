import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
import src.domain  # noqa: F401
from src.adapter.services.notification_service import LoggingNotificationService
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.topup import TopupSettings
from src.depends import (
    get_session,
    get_gateway_client,
    get_notification_service,
    get_topup_settings,
)
from tests.fixtures.gateway import FakeGateway


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database so separate sessions really race"""
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'topup_test.db'}"
    engine = create_async_engine(db_url, echo=False, future=True, connect_args={"timeout": 30})

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def uow(db_session):
    return SqlAlchemyUnitOfWork(db_session)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def topup_settings():
    return TopupSettings(unit_price=5000, expiry_seconds=3600)


@pytest_asyncio.fixture
async def client(session_factory, fake_gateway, topup_settings):
    """Test client on the SQLite database and the in-memory gateway"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    gateway_client = fake_gateway.client()
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_gateway_client] = lambda: gateway_client
    app.dependency_overrides[get_notification_service] = lambda: LoggingNotificationService()
    app.dependency_overrides[get_topup_settings] = lambda: topup_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def insert_topup(session_factory):
    """Commit a TopupTransaction (qty 5 @ 5000) and return it"""
    from decimal import Decimal
    from src.domain.topup_transaction import TopupTransaction, TopupStatus

    async def _insert(**overrides):
        values = dict(
            user_id=42,
            merchant_ref="INV1717000000000123456_U42_Q5",
            gateway_ref=None,
            unit_price=Decimal("5000.00"),
            quantity=5,
            subtotal=Decimal("25000.00"),
            discount_percent=Decimal("12"),
            discount_amount=Decimal("3000.00"),
            final_amount=Decimal("22000.00"),
            payment_method_code="QRIS",
            status=TopupStatus.UNPAID,
            expires_at=2_000_000_000,
        )
        values.update(overrides)
        async with session_factory() as session:
            record = TopupTransaction(**values)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return record

    return _insert
