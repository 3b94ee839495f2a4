"""Admin API Routes

Payment method cache management. Requires X-User-Role: admin unless
AUTH_DISABLED is set.
"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import raise_client_error
from src.api.schemas.admin_request import SetPaymentMethodEnabledSchema
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.use_cases.payment_methods import (
    ListPaymentMethods,
    SetPaymentMethodEnabled,
    SyncPaymentMethods,
    ListPaymentMethodsResponseDTO,
    PaymentMethodDTO,
    SyncPaymentMethodsResultDTO,
)
from src.adapter.repositories import SqlAlchemyPaymentMethodRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_gateway_client, get_session, require_admin

router = APIRouter(
    prefix="/admin/payment-methods",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=ListPaymentMethodsResponseDTO)
async def list_payment_methods(session: AsyncSession = Depends(get_session)):
    """All cached payment methods, enabled or not"""
    result = await ListPaymentMethods(SqlAlchemyPaymentMethodRepository(session)).execute()
    return result.value


@router.patch(
    "/{code}",
    response_model=PaymentMethodDTO,
    responses={404: {"description": "Unknown payment method"}},
)
async def set_payment_method_enabled(
    code: str,
    request: SetPaymentMethodEnabledSchema,
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGatewayClient = Depends(get_gateway_client),
):
    """Enable or disable a payment method for users"""
    use_case = SetPaymentMethodEnabled(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentMethodRepository(session),
        gateway,
    )
    result = await use_case.execute(code, request.is_enabled)
    if result.is_err():
        raise_client_error(result.error)
    return result.value


@router.post("/sync", response_model=SyncPaymentMethodsResultDTO)
async def sync_payment_methods(
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGatewayClient = Depends(get_gateway_client),
):
    """
    Refresh the cache from the gateway's live channel list.

    Gateway-owned fields are overwritten; the enabled flag is kept.
    """
    use_case = SyncPaymentMethods(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentMethodRepository(session),
        gateway,
    )
    result = await use_case.execute()
    if result.is_err():
        raise_client_error(result.error)
    return result.value
