"""
Exception handlers: engine errors to HTTP responses.

Every error body has the shape {"error": {"type": ..., "message": ...}}.
Status codes come from ERROR_STATUS, resolved along the exception's MRO so
a new MatrixError subclass inherits 503 unless it is listed itself.
"""

from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import structlog

from taxonkey.core.exceptions import (
    ConfigurationError,
    MatrixError,
    TaxonKeyError,
    TaxonNotFoundError,
    ValidationError,
)

log = structlog.get_logger(__name__)

ERROR_STATUS: Dict[Type[TaxonKeyError], int] = {
    TaxonNotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    MatrixError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: TaxonKeyError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"type": error_type, "message": message}},
    )


def setup_exception_handlers(app: FastAPI):
    """Register the engine's exception handlers on the application."""

    @app.exception_handler(TaxonKeyError)
    async def taxonkey_error_handler(request: Request, exc: TaxonKeyError) -> JSONResponse:
        status_code = status_for(exc)
        event = log.error if status_code >= 500 else log.warning
        event(
            "request_error",
            path=request.url.path,
            taxon_id=request.path_params.get("taxon_id"),
            error_type=type(exc).__name__,
            message=exc.message,
            status_code=status_code,
        )

        # Configuration details stay in the log
        message = "Server configuration error" if isinstance(exc, ConfigurationError) else exc.message
        return error_response(status_code, type(exc).__name__, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "InternalServerError",
            "An unexpected error occurred",
        )
