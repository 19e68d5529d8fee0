"""Error taxonomy and the application-wide exception handlers."""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.config import EXPOSE_ERROR_DETAILS

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for business-rule failures."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(StorefrontError):
    """Missing or malformed input."""

    status_code = 400


class ConflictError(StorefrontError):
    """Duplicate unique field or a concurrent modification."""

    status_code = 409


class NotFoundError(StorefrontError):
    """Referenced entity does not exist."""

    status_code = 404


class AuthError(StorefrontError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class ForbiddenError(StorefrontError):
    """Valid credentials with insufficient role or ownership."""

    status_code = 403


class ServerError(StorefrontError):
    """Unexpected failure, e.g. database unavailable."""

    status_code = 500


def _error_body(message: str, details: Optional[Any] = None) -> dict:
    body = {"msg": message}
    if details is not None:
        body["details"] = details
    return body


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Render a business-rule failure as a JSON error body."""
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, "Request failed", extra={
        "path": request.url.path,
        "method": request.method,
        "status_code": exc.status_code,
        "error": exc.message,
    })
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body/query validation failures as 400 errors."""
    fields = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "error": error.get("msg"),
        }
        for error in exc.errors()
    ]
    logger.info("Request validation failed", extra={
        "path": request.url.path,
        "fields": [f["field"] for f in fields],
    })
    return JSONResponse(status_code=400, content=_error_body("Invalid request", fields))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework errors (unknown routes, wrong methods) in the same shape."""
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = f"Not Found: {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database failures surface as ServerError without leaking driver details."""
    logger.error("Database error", extra={
        "path": request.url.path,
        "error_type": type(exc).__name__,
    })
    details = str(exc) if EXPOSE_ERROR_DETAILS else None
    return JSONResponse(
        status_code=ServerError.status_code,
        content=_error_body("Database unavailable", details),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the failure and hide internals unless configured otherwise."""
    logger.exception("Unhandled error", extra={
        "path": request.url.path,
        "method": request.method,
    })
    details = repr(exc) if EXPOSE_ERROR_DETAILS else None
    return JSONResponse(status_code=500, content=_error_body("Internal server error", details))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all error handlers to the application."""
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
