"""Maps domain exceptions to HTTP responses.

Protean's own handlers are installed first; the storefront kinds are then
registered on top. Starlette resolves handlers by exception class, so the
more specific storefront classes win over their Protean bases.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from storefront.domain import logger
from storefront.shared.errors import (
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    ObjectNotFoundError,
    PaymentError,
    UnauthorizedError,
    ValidationError,
)

_STATUS_CODES = {
    ValidationError: 400,
    UnauthorizedError: 401,
    PaymentError: 402,
    ForbiddenError: 403,
    ObjectNotFoundError: 404,
    InvalidStateError: 409,
    InsufficientStockError: 409,
    InvalidOperationError: 409,
}


def _messages(exc):
    messages = getattr(exc, "messages", None)
    if not messages and exc.args and isinstance(exc.args[0], dict):
        messages = exc.args[0]
    return messages or {"detail": [str(exc)]}


def _handler_for(status_code):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        logger.info(
            "Request failed",
            path=request.url.path,
            status_code=status_code,
            error=type(exc).__name__,
        )
        body = {"error": _messages(exc)}
        if isinstance(exc, PaymentError):
            body["retryable"] = exc.retryable
        return JSONResponse(status_code=status_code, content=body)

    return handle


async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": {"detail": ["Internal server error"]}})


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_handlers(app)
    for exc_class, status_code in _STATUS_CODES.items():
        app.add_exception_handler(exc_class, _handler_for(status_code))
    app.add_exception_handler(Exception, _internal_error)
