from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
import pytest
from src.domain.topup_transaction import TopupTransaction, TopupStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def make_topup():
    """Build a TopupTransaction for qty 5 @ 5000 (22000 after discount)"""

    def _make(**overrides) -> TopupTransaction:
        values = dict(
            id=1,
            user_id=42,
            merchant_ref="INV1717000000000123456_U42_Q5",
            gateway_ref="T0001",
            unit_price=Decimal("5000.00"),
            quantity=5,
            subtotal=Decimal("25000.00"),
            discount_percent=Decimal("12"),
            discount_amount=Decimal("3000.00"),
            final_amount=Decimal("22000.00"),
            payment_method_code="QRIS",
            status=TopupStatus.UNPAID,
            expires_at=2_000_000_000,
            created_at=datetime(2024, 5, 29, 12, 0, 0),
            updated_at=datetime(2024, 5, 29, 12, 0, 0),
        )
        values.update(overrides)
        return TopupTransaction(**values)

    return _make
