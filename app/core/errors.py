"""
app/core/errors.py

Purpose: HTTP error mapping

- Every error leaves the API as an ErrorResponse body
- Chat4Bread errors keep their own code and status
- Internal details are hidden in production
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import Chat4BreadError
from app.core.logging import get_logger
from app.schemas.response import ErrorResponse

logger = get_logger(__name__)


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_chat4bread_error(request: Request, exc: Chat4BreadError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}", extra={"details": exc.details})
    else:
        logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message, exc.code, exc.details)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """404, 405 and friends raised by routing."""
    return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed Telegram updates and other bodies that fail schema validation."""
    details = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning(f"Rejected request body on {request.url.path}: {len(details)} error(s)")
    return error_response(422, "Input validation failed", "VALIDATION_ERROR", details)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {exc}",
        extra={
            "method": request.method,
            "url": str(request.url),
            "client": request.client.host if request.client else "unknown"
        },
        exc_info=True
    )

    message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)
    return error_response(500, message, "INTERNAL_ERROR")


def add_exception_handlers(app: FastAPI) -> None:
    """
    Registers exception handlers with the FastAPI app.
    """
    app.add_exception_handler(Chat4BreadError, handle_chat4bread_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
