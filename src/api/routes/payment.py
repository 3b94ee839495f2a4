"""Payment API Routes

Gateway callback and the user-facing list of payment methods.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import raise_client_error
from src.app.services.notification_service import NotificationService
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.use_cases.topup import HandlePaymentCallback, CallbackAckDTO
from src.app.use_cases.payment_methods import ListPaymentMethods, ListPaymentMethodsResponseDTO
from src.adapter.repositories import (
    SqlAlchemyTopupTransactionRepository,
    SqlAlchemyPaymentMethodRepository,
)
from src.depends import (
    build_resolve_topup,
    get_gateway_client,
    get_notification_service,
    get_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payment"])


@router.post(
    "/payment/callback",
    response_model=CallbackAckDTO,
    responses={
        400: {"description": "Invalid signature, event or payload"},
        404: {"description": "Unknown transaction"},
    },
)
async def payment_callback(
    request: Request,
    x_callback_signature: Optional[str] = Header(default=None),
    x_callback_event: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGatewayClient = Depends(get_gateway_client),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Payment status callback from the gateway.

    The signature covers the raw request body, so the body is read as bytes
    and never re-serialized before verification. Replays of an already
    settled transaction are acknowledged with success.
    """
    raw_body = await request.body()

    use_case = HandlePaymentCallback(
        topup_repo=SqlAlchemyTopupTransactionRepository(session),
        gateway=gateway,
        resolve_topup=build_resolve_topup(session, notification_service),
    )
    result = await use_case.execute(raw_body, x_callback_signature, x_callback_event)

    if result.is_err():
        logger.warning(f"Payment callback refused: {result.error.code} {result.error.message}")
        raise_client_error(result.error)
    return result.value


@router.get("/payment-methods", response_model=ListPaymentMethodsResponseDTO)
async def list_enabled_payment_methods(session: AsyncSession = Depends(get_session)):
    """Payment methods users can pick from"""
    result = await ListPaymentMethods(SqlAlchemyPaymentMethodRepository(session)).execute(enabled_only=True)
    return result.value
