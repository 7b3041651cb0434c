"""Application error taxonomy and the FastAPI handlers that render it as JSON.

Every failure that reaches the HTTP boundary is answered with
``{"success": false, "error": <message>, "errors": [...]}``; ``errors`` is only
present when there are field-level messages. Unexpected exceptions are logged
server-side and surfaced as a generic 500.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map to an HTTP status and a JSON error body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        errors: list[str] | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors or None
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input; carries field-level messages."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class InvalidInputError(ValidationError):
    """A single argument is unusable (e.g. an empty password to hash)."""

    default_message = "Invalid input"


class InvalidCredentials(AppError):
    """Login failed. The message never says which part of the credentials was wrong."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email is already registered"


class InvalidOrExpiredToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"


class UserInactiveOrMissing(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not found or inactive"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(AppError):
    pass


def error_body(message: str, errors: list[str] | None = None) -> dict:
    body: dict = {"success": False, "error": message}
    if errors:
        body["errors"] = errors
    return body


def _format_validation_errors(exc: RequestValidationError) -> list[str]:
    """Flatten FastAPI validation errors into 'field: message' strings."""
    messages: list[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = err.get("msg", "Invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return messages


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.errors),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", _format_validation_errors(exc)),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "Database error while handling request",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(InternalError.default_message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error while handling request",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(InternalError.default_message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers; the generic Exception handler goes last."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
