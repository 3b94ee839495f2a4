"""Unit tests for GetTopupStatus use case (poll)

Tests cover:
- Ownership scoping
- Gateway-reported final statuses resolved through ResolveTopup
- Lazy expiry: reported always, written only when the gateway agrees
- Gateway errors do not fail the poll
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return
from src.app.services.payment_gateway import GatewayTransaction, GatewayUnavailable
from src.app.use_cases.topup.get_topup_status import GetTopupStatus
from src.app.use_cases.topup.dtos import ResolveOutcomeDTO
from src.domain.topup_transaction import TopupStatus

NOW = 1_800_000_000


@pytest.fixture
def mock_topup_repo(make_topup):
    repo = MagicMock()
    repo.get_by_merchant_ref = AsyncMock(return_value=make_topup(expires_at=NOW + 600))
    return repo


@pytest.fixture
def mock_gateway():
    gateway = MagicMock()
    gateway.get_transaction_detail = AsyncMock(
        return_value=GatewayTransaction(gateway_ref="T0001", status="UNPAID")
    )
    return gateway


@pytest.fixture
def mock_resolve():
    resolve = MagicMock()
    resolve.execute = AsyncMock(
        return_value=Return.ok(
            ResolveOutcomeDTO(merchant_ref="INV1717000000000123456_U42_Q5", status=TopupStatus.PAID, changed=True)
        )
    )
    return resolve


@pytest.fixture
def poll_use_case(mock_topup_repo, mock_gateway, mock_resolve):
    return GetTopupStatus(topup_repo=mock_topup_repo, gateway=mock_gateway, resolve_topup=mock_resolve)


MERCHANT_REF = "INV1717000000000123456_U42_Q5"


@pytest.mark.asyncio
class TestPollScoping:

    async def test_other_users_record_is_not_found(self, poll_use_case, mock_gateway):
        result = await poll_use_case.execute(7, MERCHANT_REF, now=NOW)

        assert result.error.code == "RECORD_NOT_FOUND"
        mock_gateway.get_transaction_detail.assert_not_called()

    async def test_unknown_record_is_not_found(self, poll_use_case, mock_topup_repo):
        mock_topup_repo.get_by_merchant_ref = AsyncMock(return_value=None)

        result = await poll_use_case.execute(42, "missing", now=NOW)

        assert result.error.code == "RECORD_NOT_FOUND"

    async def test_terminal_record_returned_without_gateway_call(
        self, poll_use_case, mock_topup_repo, mock_gateway, make_topup
    ):
        mock_topup_repo.get_by_merchant_ref = AsyncMock(return_value=make_topup(status=TopupStatus.FAILED))

        result = await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        assert result.value.status == TopupStatus.FAILED
        mock_gateway.get_transaction_detail.assert_not_called()


@pytest.mark.asyncio
class TestPollResolution:

    async def test_still_unpaid(self, poll_use_case, mock_resolve):
        result = await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        assert result.value.status == TopupStatus.UNPAID
        mock_resolve.execute.assert_not_called()

    async def test_gateway_paid_is_resolved(self, poll_use_case, mock_topup_repo, mock_gateway, mock_resolve, make_topup):
        mock_gateway.get_transaction_detail = AsyncMock(
            return_value=GatewayTransaction(gateway_ref="T0001", status="PAID")
        )
        mock_topup_repo.get_by_merchant_ref = AsyncMock(
            side_effect=[make_topup(expires_at=NOW + 600), make_topup(status=TopupStatus.PAID)]
        )

        result = await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        mock_resolve.execute.assert_called_once_with(MERCHANT_REF, TopupStatus.PAID)
        assert result.value.status == TopupStatus.PAID

    async def test_gateway_paid_wins_over_local_deadline(
        self, poll_use_case, mock_topup_repo, mock_gateway, mock_resolve, make_topup
    ):
        mock_topup_repo.get_by_merchant_ref = AsyncMock(return_value=make_topup(expires_at=NOW - 10))
        mock_gateway.get_transaction_detail = AsyncMock(
            return_value=GatewayTransaction(gateway_ref="T0001", status="PAID")
        )

        await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        mock_resolve.execute.assert_called_once_with(MERCHANT_REF, TopupStatus.PAID)

    async def test_expired_and_unpaid_is_written_expired(
        self, poll_use_case, mock_topup_repo, mock_resolve, make_topup
    ):
        mock_topup_repo.get_by_merchant_ref = AsyncMock(return_value=make_topup(expires_at=NOW - 10))

        result = await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        mock_resolve.execute.assert_called_once_with(MERCHANT_REF, TopupStatus.EXPIRED)
        assert result.value.status == TopupStatus.EXPIRED

    async def test_expired_pending_without_gateway_ref_is_written_expired(
        self, poll_use_case, mock_topup_repo, mock_gateway, mock_resolve, make_topup
    ):
        mock_topup_repo.get_by_merchant_ref = AsyncMock(
            return_value=make_topup(status=TopupStatus.PENDING, gateway_ref=None, expires_at=NOW - 10)
        )

        await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        mock_gateway.get_transaction_detail.assert_not_called()
        mock_resolve.execute.assert_called_once_with(MERCHANT_REF, TopupStatus.EXPIRED)

    async def test_gateway_error_reports_expired_without_writing(
        self, poll_use_case, mock_topup_repo, mock_gateway, mock_resolve, make_topup
    ):
        """
        Given: An UNPAID record past its deadline and an unreachable gateway
        When: The owner polls
        Then: EXPIRED is reported, nothing is written
        """
        mock_topup_repo.get_by_merchant_ref = AsyncMock(return_value=make_topup(expires_at=NOW - 10))
        mock_gateway.get_transaction_detail = AsyncMock(side_effect=GatewayUnavailable("down"))

        result = await poll_use_case.execute(42, MERCHANT_REF, now=NOW)

        assert result.is_ok()
        assert result.value.status == TopupStatus.EXPIRED
        mock_resolve.execute.assert_not_called()
