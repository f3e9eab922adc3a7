# marketplace/core/errors.py
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.core.config import Settings

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base error carrying the HTTP status and the envelope message."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailed(APIError):
    status_code = 400
    default_message = "Validation failed"


class Unauthenticated(APIError):
    status_code = 401
    default_message = "Not authorized to access this route. Please login."


class Forbidden(APIError):
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFound(APIError):
    status_code = 404
    default_message = "Resource not found"


class AccountLocked(APIError):
    status_code = 423
    default_message = "Account is temporarily locked. Please try again later."


def error_body(message: str, errors: Optional[list[dict[str, Any]]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body


_LOCATION_SOURCES = ("body", "query", "path", "header", "cookie")


def _field_path(loc: tuple) -> Optional[str]:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_SOURCES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts) or None


def format_validation_errors(raw_errors) -> list[dict[str, Any]]:
    formatted = []
    for err in raw_errors:
        formatted.append({
            "field": _field_path(tuple(err.get("loc", ()))),
            "message": err.get("msg", "Invalid value"),
        })
    return formatted


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Translate every failure into the `{success: false, ...}` envelope."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", format_validation_errors(exc.errors())),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            message = "Route not found"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if settings.is_development else "Internal server error"
        return JSONResponse(status_code=500, content=error_body(message))
