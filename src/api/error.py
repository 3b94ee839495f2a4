from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error


class ClientError(Exception):
    """Raised by routes to turn a use case error into an HTTP response"""

    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error.code, exc.error.message),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", details or "Invalid request parameters"),
    )


STATUS_BY_CODE = {
    "INSUFFICIENT_QUOTA": status.HTTP_402_PAYMENT_REQUIRED,
    "RECORD_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYMENT_METHOD_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYMENT_METHOD_DISABLED": status.HTTP_409_CONFLICT,
    "IDEMPOTENCY_KEY_CONFLICT": status.HTTP_409_CONFLICT,
    "GATEWAY_REJECTED": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "TOPUP_CREATE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "TOPUP_UPDATE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "RESOLVE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "CONSUME_QUOTA_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "SYNC_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "PAYMENT_METHOD_UPDATE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_client_error(error: Error):
    """Raise ClientError with the status code for error.code (400 otherwise)"""
    raise ClientError(error, status_code=STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST))
