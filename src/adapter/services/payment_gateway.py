"""HTTP Payment Gateway Client

Talks to the payment gateway's merchant API over httpx. Configuration is
passed in explicitly at construction time.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
import httpx
from src.app.services.payment_gateway import (
    PaymentGatewayClient,
    GatewayTransactionRequest,
    GatewayTransaction,
    PaymentChannel,
    GatewayUnavailable,
    GatewayRejected,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayConfig:
    base_url: str
    api_key: str
    private_key: str
    merchant_code: str
    timeout_seconds: float = 30.0

    @classmethod
    def from_app_config(cls, config) -> "GatewayConfig":
        return cls(
            base_url=config.GATEWAY_BASE_URL.rstrip("/"),
            api_key=config.GATEWAY_API_KEY,
            private_key=config.GATEWAY_PRIVATE_KEY,
            merchant_code=config.GATEWAY_MERCHANT_CODE,
            timeout_seconds=float(config.GATEWAY_TIMEOUT_SECONDS),
        )


class HttpPaymentGatewayClient(PaymentGatewayClient):
    """
    Payment gateway client over HTTP

    Features:
    - HMAC-SHA256 request signing (merchant_code + merchant_ref + amount)
    - Callback verification over the raw body bytes, constant-time compare
    - Bounded timeouts; transport failures surface as GatewayUnavailable
    - Optional httpx transport injection for tests
    """

    def __init__(self, config: GatewayConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.transport = transport

    def sign_request(self, merchant_code: str, merchant_ref: str, amount: int) -> str:
        message = f"{merchant_code}{merchant_ref}{int(amount)}".encode("utf-8")
        return hmac.new(self.config.private_key.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify_callback_signature(self, raw_body: bytes, header_signature: Optional[str]) -> bool:
        if not header_signature:
            return False
        expected = hmac.new(self.config.private_key.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
        # Bytes: compare_digest refuses non-ASCII str, and headers arrive latin-1 decoded
        received = header_signature.strip().lower().encode("utf-8", "replace")
        return hmac.compare_digest(expected.encode("ascii"), received)

    async def create_transaction(self, request: GatewayTransactionRequest) -> GatewayTransaction:
        payload = request.model_dump(exclude_none=True)
        payload["signature"] = self.sign_request(
            self.config.merchant_code, request.merchant_ref, request.amount
        )

        logger.info(
            f"Creating gateway transaction merchant_ref={request.merchant_ref} "
            f"amount={request.amount} method={request.method}"
        )

        body = await self._request("POST", "/transaction/create", json=payload)
        transaction = _to_transaction(body.get("data") or {})

        logger.info(
            f"Gateway transaction created merchant_ref={request.merchant_ref} "
            f"reference={transaction.gateway_ref}"
        )
        return transaction

    async def get_transaction_detail(self, gateway_ref: str) -> GatewayTransaction:
        body = await self._request("GET", "/transaction/detail", params={"reference": gateway_ref})
        return _to_transaction(body.get("data") or {})

    async def list_payment_channels(self) -> list[PaymentChannel]:
        try:
            body = await self._request("GET", "/merchant/payment-channel")
        except (GatewayUnavailable, GatewayRejected) as e:
            logger.warning(f"Failed to fetch payment channels: {e}")
            return []

        data = body.get("data") or []
        if not isinstance(data, list):
            logger.warning(f"Unexpected payment channel payload: {type(data).__name__}")
            return []

        channels = []
        for item in data:
            try:
                channels.append(_to_channel(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed payment channel {item!r}: {e}")

        logger.info(f"Fetched {len(channels)} payment channels from gateway")
        return channels

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        url = f"{self.config.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self.transport) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise GatewayUnavailable(f"Gateway timed out: {e}") from e
        except httpx.HTTPError as e:
            raise GatewayUnavailable(f"Gateway request failed: {e}") from e

        if response.status_code >= 500:
            raise GatewayUnavailable(f"Gateway returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayUnavailable(f"Gateway returned a non-JSON response (HTTP {response.status_code})") from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise GatewayRejected(message or f"Gateway rejected the request (HTTP {response.status_code})")

        return body


def _to_transaction(data: dict[str, Any]) -> GatewayTransaction:
    if not data.get("reference"):
        raise GatewayRejected("Gateway response did not include a transaction reference")
    return GatewayTransaction(
        gateway_ref=data["reference"],
        merchant_ref=data.get("merchant_ref"),
        checkout_url=data.get("checkout_url"),
        qr_url=data.get("qr_url"),
        pay_code=data.get("pay_code"),
        payment_name=data.get("payment_name"),
        status=str(data.get("status") or "").upper(),
        expires_at=data.get("expired_time"),
    )


def _to_channel(item: dict[str, Any]) -> PaymentChannel:
    fee_customer = item.get("fee_customer") or {}
    return PaymentChannel(
        code=item["code"],
        name=item["name"],
        type=item.get("type") or "",
        icon_url=item.get("icon_url"),
        fee_flat=int(fee_customer.get("flat") or 0),
        fee_percent=Decimal(str(fee_customer.get("percent") or 0)),
        minimum_fee=int(item.get("minimum_fee") or 0),
        maximum_fee=int(item.get("maximum_fee") or 0),
        active=bool(item.get("active", True)),
    )
