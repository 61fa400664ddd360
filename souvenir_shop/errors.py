# souvenir_shop/errors.py
import enum
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("souvenir_shop.errors")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION"
    UPSTREAM_FAILED = "UPSTREAM_FAILED"


class ShopError(Exception):
    """Base for every error a handler raises on purpose.

    Callers branch on ``kind``; ``detail`` is human-readable copy only.
    """

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ShopError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

class InvalidCredential(ShopError):
    kind = ErrorKind.INVALID_CREDENTIAL
    status_code = 401

class AuthorizationFailed(ShopError):
    kind = ErrorKind.AUTHORIZATION_FAILED
    status_code = 403

class Conflict(ShopError):
    kind = ErrorKind.CONFLICT
    status_code = 409

class ValidationFailed(ShopError):
    kind = ErrorKind.VALIDATION
    status_code = 400

class UpstreamFailed(ShopError):
    kind = ErrorKind.UPSTREAM_FAILED
    status_code = 502


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("[ERROR] %s %s -> %s: %s", request.method, request.url.path, exc.kind.value, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind.value, "detail": exc.detail},
        headers=headers,
    )
