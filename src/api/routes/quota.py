"""Quota API Routes"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import raise_client_error
from src.api.schemas.quota_request import ConsumeQuotaRequestSchema
from src.app.use_cases.quota import (
    GetQuotaBalance,
    ConsumeQuota,
    ConsumeQuotaCommandDTO,
    QuotaBalanceResponseDTO,
    QuotaMovementResponseDTO,
)
from src.adapter.repositories import (
    SqlAlchemyQuotaLedgerRepository,
    SqlAlchemyQuotaMovementRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import CurrentUser, get_current_user, get_session

router = APIRouter(prefix="/quota", tags=["Quota"])


@router.get("", response_model=QuotaBalanceResponseDTO)
async def get_quota_balance(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Remaining install quota of the caller"""
    result = await GetQuotaBalance(SqlAlchemyQuotaLedgerRepository(session)).execute(user.id)
    return result.value


@router.post(
    "/consume",
    response_model=QuotaMovementResponseDTO,
    responses={
        402: {
            "description": "Insufficient quota",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INSUFFICIENT_QUOTA",
                            "message": "Your quota is insufficient for Windows installation. Please top up your quota to proceed."
                        }
                    }
                }
            }
        }
    },
)
async def consume_quota(
    request: ConsumeQuotaRequestSchema,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Spend quota for an install request.

    Repeating a request with the same idempotency_key returns the original
    movement without spending again.
    """
    use_case = ConsumeQuota(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyQuotaLedgerRepository(session),
        SqlAlchemyQuotaMovementRepository(session),
    )
    result = await use_case.execute(
        ConsumeQuotaCommandDTO(
            user_id=user.id,
            amount=request.amount,
            idempotency_key=request.idempotency_key,
            reference_id=request.reference_id,
        )
    )
    if result.is_err():
        raise_client_error(result.error)
    return result.value
