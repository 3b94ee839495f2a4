"""Top-up API Routes

Quote, start, poll and list quota purchases for the authenticated user.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import raise_client_error
from src.api.schemas.topup_request import QuoteRequestSchema, TopupRequestSchema
from src.app.services.notification_service import NotificationService
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.use_cases.topup import (
    QuoteTopup,
    InitiateTopup,
    GetTopupStatus,
    ListTopups,
    TopupSettings,
    InitiateTopupCommandDTO,
    PriceQuoteDTO,
    TopupTransactionDTO,
    ListTopupsResponseDTO,
)
from src.adapter.repositories import (
    SqlAlchemyTopupTransactionRepository,
    SqlAlchemyPaymentMethodRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import (
    CurrentUser,
    build_resolve_topup,
    get_current_user,
    get_gateway_client,
    get_notification_service,
    get_session,
    get_topup_settings,
)

router = APIRouter(prefix="/topup", tags=["Top-up"])

_ERROR_EXAMPLE = {
    "application/json": {
        "example": {"error": {"code": "INVALID_QUANTITY", "message": "Quantity must be a positive integer, got 0"}}
    }
}


@router.post(
    "/quote",
    response_model=PriceQuoteDTO,
    responses={400: {"description": "Invalid quantity", "content": _ERROR_EXAMPLE}},
)
async def quote_topup(
    request: QuoteRequestSchema,
    settings: TopupSettings = Depends(get_topup_settings),
):
    """
    Price a quantity with the bulk discount applied.

    Tiers: below 5 no discount, exactly 5 is 12%, 6-10 is 20%,
    11-19 is 25%, 20 and above is 30%.
    """
    result = await QuoteTopup(settings.unit_price).execute(request.quantity)
    if result.is_err():
        raise_client_error(result.error)
    return result.value


@router.post(
    "",
    response_model=TopupTransactionDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid quantity", "content": _ERROR_EXAMPLE},
        409: {"description": "Payment method disabled"},
        502: {"description": "Gateway rejected the transaction"},
        503: {"description": "Gateway unavailable"},
    },
)
async def create_topup(
    request: TopupRequestSchema,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGatewayClient = Depends(get_gateway_client),
    settings: TopupSettings = Depends(get_topup_settings),
):
    """
    Start a top-up and return the checkout payload (checkout URL, QR URL or
    pay code) for the chosen payment method.
    """
    use_case = InitiateTopup(
        uow=SqlAlchemyUnitOfWork(session),
        topup_repo=SqlAlchemyTopupTransactionRepository(session),
        payment_method_repo=SqlAlchemyPaymentMethodRepository(session),
        gateway=gateway,
        settings=settings,
    )
    result = await use_case.execute(
        InitiateTopupCommandDTO(
            user_id=user.id,
            quantity=request.quantity,
            payment_method=request.payment_method,
            customer_name=user.display_name,
            customer_email=user.email or "",
            customer_phone=user.phone or "",
        )
    )
    if result.is_err():
        raise_client_error(result.error)
    return result.value


@router.get("/history", response_model=ListTopupsResponseDTO)
async def list_topups(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Top-up history of the caller, newest first"""
    result = await ListTopups(SqlAlchemyTopupTransactionRepository(session)).execute(
        user.id, limit=limit, offset=offset
    )
    if result.is_err():
        raise_client_error(result.error)
    return result.value


@router.get(
    "/{merchant_ref}",
    response_model=TopupTransactionDTO,
    responses={404: {"description": "Unknown top-up"}},
)
async def get_topup_status(
    merchant_ref: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGatewayClient = Depends(get_gateway_client),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Poll a top-up. Open top-ups are checked with the gateway and settled
    when the gateway reports a final status.
    """
    use_case = GetTopupStatus(
        topup_repo=SqlAlchemyTopupTransactionRepository(session),
        gateway=gateway,
        resolve_topup=build_resolve_topup(session, notification_service),
    )
    result = await use_case.execute(user.id, merchant_ref)
    if result.is_err():
        raise_client_error(result.error)
    return result.value
