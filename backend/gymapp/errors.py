"""Application error taxonomy and the handlers that render it as JSON.

Services raise these exceptions; the handlers registered on the app turn every
error into ``{"message": ...}`` with the status code of the error class, so no
failure reaches the client without one.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class InvalidState(AppError):
    """The target exists but is not in a state that allows the operation."""

    status_code = 400
    default_message = "Operation not allowed in the current state"


class WebhookSignatureError(AppError):
    """Rejected webhook delivery. A 4xx makes the provider retry."""

    status_code = 400
    default_message = "Webhook signature verification failed"


class Unavailable(AppError):
    status_code = 500
    default_message = "Service not configured"


class Internal(AppError):
    status_code = 500
    default_message = "Internal server error"


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationFailed.default_message
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = str(first.get("msg", "invalid value"))
    # pydantic prefixes errors raised from validators
    message = message.removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


def register_error_handlers(app: FastAPI) -> None:
    """Install JSON ``{"message"}`` handlers for every error the API can produce."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse({"message": exc.message}, status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse({"message": message}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            {"message": _format_validation_error(exc)},
            status_code=ValidationFailed.status_code,
        )
