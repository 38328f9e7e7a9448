"""
Error envelope and exception handlers.

Every error leaving the API has the shape
{"status": "error", "code": ..., "message": ...}.

Domain errors are answered where they are detected; anything unexpected
falls through to the top-level handler, which logs the full context and
hides the message in production.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.exceptions import (
    ApprovalFailed,
    AuthError,
    EmailSendFailed,
    InvalidCredentials,
    StorageError,
)

logger = logging.getLogger(__name__)

# Domain errors not listed here are client errors (400)
_STATUS_BY_ERROR: dict[type[AuthError], int] = {
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    EmailSendFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ApprovalFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ApiError(Exception):
    """An error response decided by the API layer itself."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(message)


def error_response(
    status_code: int, code: str, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "code": code, "message": message},
        headers=headers,
    )


def status_for(error: AuthError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return error_response(status_for(exc), exc.code, exc.message)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return error_response(
            status.HTTP_400_BAD_REQUEST, "INVALID_JSON", "Invalid JSON in request body"
        )
    return error_response(
        status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", "Request body has invalid fields"
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(exc.status_code, "NOT_FOUND", "Requested resource not found")
    return error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error at %s: %s %s from %s: %s",
        datetime.now(UTC).isoformat(),
        request.method,
        request.url.path,
        request.client.host if request.client else None,
        exc,
        exc_info=exc,
    )
    settings = request.app.state.settings
    message = "Internal server error" if settings.is_production else str(exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_SERVER_ERROR", message
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
