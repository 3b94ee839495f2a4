"""HandlePaymentCallback Use Case

Authenticates and applies a payment_status callback from the gateway.
"""

import json
import logging
from typing import Optional
from pydantic import ValidationError
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGatewayClient
from src.app.repositories.topup_transaction_repository import TopupTransactionRepository
from src.domain.topup_transaction import TopupStatus
from .dtos import CallbackPayloadDTO, CallbackAckDTO
from .resolve_topup import ResolveTopup, TERMINAL_FROM_GATEWAY

logger = logging.getLogger(__name__)

PAYMENT_STATUS_EVENT = "payment_status"


class HandlePaymentCallback:
    """
    Use Case: Apply a gateway callback

    Business Rules:
    1. Only the payment_status event is accepted
    2. The signature is checked over the exact raw body before anything is
       parsed; a bad signature changes nothing (INVALID_SIGNATURE)
    3. Only closed payments are applied (is_closed_payment == 1)
    4. The record is found by merchant_ref, then by gateway reference
    5. Already-terminal records are acknowledged without change, so gateway
       retries are harmless. A PAID report for a record that already closed
       as EXPIRED or FAILED is logged at ERROR for a manual refund
    6. UNPAID is acknowledged without change; other unknown statuses are
       refused (UNRECOGNIZED_STATUS)
    """

    def __init__(
        self,
        topup_repo: TopupTransactionRepository,
        gateway: PaymentGatewayClient,
        resolve_topup: ResolveTopup,
    ):
        self.topup_repo = topup_repo
        self.gateway = gateway
        self.resolve_topup = resolve_topup

    async def execute(
        self,
        raw_body: bytes,
        signature: Optional[str],
        event: Optional[str],
    ) -> Result[CallbackAckDTO]:
        if event != PAYMENT_STATUS_EVENT:
            return Return.err(
                Error(code="UNRECOGNIZED_EVENT", message=f"Unrecognized callback event: {event}")
            )

        if not self.gateway.verify_callback_signature(raw_body, signature):
            logger.warning("Rejected payment callback with invalid signature")
            return Return.err(Error(code="INVALID_SIGNATURE", message="Invalid signature"))

        try:
            payload = CallbackPayloadDTO.model_validate(json.loads(raw_body))
        except (ValueError, ValidationError) as e:
            return Return.err(
                Error(code="INVALID_PAYLOAD", message="Callback body is not a valid payload", reason=str(e))
            )

        if payload.is_closed_payment != 1:
            return Return.err(
                Error(code="PAYMENT_NOT_CLOSED", message="Only closed payments are supported")
            )

        record = None
        if payload.merchant_ref:
            record = await self.topup_repo.get_by_merchant_ref(payload.merchant_ref)
        if record is None and payload.reference:
            record = await self.topup_repo.get_by_gateway_ref(payload.reference)
        if record is None:
            logger.warning(
                f"Callback for unknown transaction merchant_ref={payload.merchant_ref} "
                f"reference={payload.reference}"
            )
            return Return.err(
                Error(
                    code="RECORD_NOT_FOUND",
                    message=f"Transaction not found: {payload.merchant_ref or payload.reference}",
                )
            )

        if (
            payload.reference and record.gateway_ref and payload.reference != record.gateway_ref
        ) or (payload.merchant_ref and payload.merchant_ref != record.merchant_ref):
            logger.warning(
                f"Callback references disagree: merchant_ref={payload.merchant_ref} "
                f"reference={payload.reference} stored={record.merchant_ref}/{record.gateway_ref}"
            )
            return Return.err(
                Error(code="REFERENCE_MISMATCH", message="Callback references do not match the transaction")
            )

        # Plain values: a resolve that loses its race rolls the session back
        merchant_ref = record.merchant_ref
        user_id = record.user_id
        amount = payload.total_amount if payload.total_amount is not None else record.final_amount
        remote_status = payload.status.upper()

        if record.status.is_terminal:
            if remote_status == TopupStatus.PAID.value and record.status != TopupStatus.PAID:
                _log_paid_after_close(merchant_ref, user_id, amount, record.status)
            return Return.ok(
                CallbackAckDTO(merchant_ref=merchant_ref, status=record.status, changed=False)
            )

        if remote_status == TopupStatus.UNPAID.value:
            return Return.ok(
                CallbackAckDTO(merchant_ref=merchant_ref, status=record.status, changed=False)
            )

        target = TERMINAL_FROM_GATEWAY.get(remote_status)
        if target is None:
            return Return.err(
                Error(code="UNRECOGNIZED_STATUS", message=f"Unrecognized payment status: {payload.status}")
            )

        failure_reason = payload.note if target == TopupStatus.FAILED else None
        resolved = await self.resolve_topup.execute(merchant_ref, target, failure_reason=failure_reason)
        if resolved.is_err():
            return Return.err(resolved.error)

        if target == TopupStatus.PAID and resolved.value.status != TopupStatus.PAID:
            _log_paid_after_close(merchant_ref, user_id, amount, resolved.value.status)

        return Return.ok(
            CallbackAckDTO(
                merchant_ref=merchant_ref,
                status=resolved.value.status,
                changed=resolved.value.changed,
            )
        )


def _log_paid_after_close(merchant_ref: str, user_id: int, amount, status: TopupStatus) -> None:
    logger.error(
        f"Payment received for {status.value} top-up, quota not credited, refund needed: "
        f"merchant_ref={merchant_ref} user_id={user_id} amount={amount}"
    )
