"""Custom exception handlers for the FastAPI application.

Converts domain exceptions and request validation errors into JSON responses
with proper status codes.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from localshelf.domain.exceptions import (
    ConfigurationError,
    DomainException,
    InvalidStateException,
    PathError,
    ReconciliationError,
    ScanCancelledError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# Hey future me - pydantic's exc.errors() can carry the raw request body as bytes in 'input',
# which JSONResponse can't serialize. Walk the structure and decode bytes first.
def _sanitize_validation_errors(
    errors: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Convert bytes inside validation error dicts to strings."""

    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError:
                return value.decode("latin-1")
        elif isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        elif isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        return value

    return [_sanitize_value(error) for error in errors]


def _error_response(
    request: Request, status_code: int, exc: DomainException, level: int
) -> JSONResponse:
    logger.log(
        level,
        "%s at %s: %s",
        type(exc).__name__,
        request.url.path,
        exc.message,
        extra={"path": request.url.path, "error": exc.message},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "type": type(exc).__name__},
    )


# Hey future me, these are GLOBAL handlers - register them during app setup, before the first
# request. Starlette picks the handler of the closest class in the exception's MRO, so the
# DomainException catch-all only fires for exceptions without a more specific handler.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain and request validation exceptions.

    Mapping:
    - ValidationError -> 422
    - PathError, InvalidStateException -> 400
    - ScanCancelledError -> 409
    - ReconciliationError, ConfigurationError -> 503
    - any other DomainException -> 500

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle domain validation errors with 422 Unprocessable Entity."""
        return _error_response(
            request, status.HTTP_422_UNPROCESSABLE_ENTITY, exc, logging.WARNING
        )

    @app.exception_handler(PathError)
    async def path_error_handler(request: Request, exc: PathError) -> JSONResponse:
        """Handle unreachable folders with 400 Bad Request."""
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc, logging.WARNING)

    @app.exception_handler(InvalidStateException)
    async def invalid_state_exception_handler(
        request: Request, exc: InvalidStateException
    ) -> JSONResponse:
        """Handle invalid state exceptions with 400 Bad Request."""
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc, logging.WARNING)

    @app.exception_handler(ScanCancelledError)
    async def scan_cancelled_handler(
        request: Request, exc: ScanCancelledError
    ) -> JSONResponse:
        """Handle a superseded scan with 409 Conflict."""
        return _error_response(request, status.HTTP_409_CONFLICT, exc, logging.INFO)

    @app.exception_handler(ReconciliationError)
    async def reconciliation_error_handler(
        request: Request, exc: ReconciliationError
    ) -> JSONResponse:
        """Handle store failures with 503 Service Unavailable."""
        return _error_response(
            request, status.HTTP_503_SERVICE_UNAVAILABLE, exc, logging.ERROR
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        return _error_response(
            request, status.HTTP_503_SERVICE_UNAVAILABLE, exc, logging.ERROR
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        """Handle every other domain exception with 500 Internal Server Error."""
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc, logging.ERROR
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle pydantic request validation errors with 422 Unprocessable Entity."""
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            sanitized_errors,
            extra={"path": request.url.path, "errors": sanitized_errors},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": sanitized_errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions with proper logging."""
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "HTTP error %d at %s: %s",
            exc.status_code,
            request.url.path,
            exc.detail,
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "detail": exc.detail,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )
