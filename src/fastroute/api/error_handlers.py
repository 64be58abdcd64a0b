"""
FastAPI error handlers for consistent error responses.
"""

import logging
import traceback
from typing import Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from fastroute.core.config import settings
from fastroute.core.errors import FastRouteException, MalformedGraphError
from fastroute.models.errors import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


async def fastroute_exception_handler(
    request: Request, exc: FastRouteException
) -> JSONResponse:
    """
    Handle FastRouteException and its subclasses.

    Client errors are logged at WARNING; broken graph invariants at ERROR
    with the traceback.
    """
    log_extra = {
        "error_code": exc.error_code,
        "status_code": exc.status_code,
        "path": request.url.path,
        "method": request.method,
        "details": exc.details,
    }
    if isinstance(exc, MalformedGraphError) or exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.error_code} - {exc.message}",
            exc_info=exc,
            extra=log_extra,
        )
    else:
        logger.warning(f"{exc.error_code} - {exc.message}", extra=log_extra)

    error_response = ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details if exc.details else None,
        suggestions=exc.suggestions if exc.suggestions else None,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def validation_error_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Handle Pydantic validation errors from request parsing."""
    errors = []
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append(
            ErrorDetail(
                field=field_path,
                message=error.get("msg", "Validation error"),
                code=error.get("type", "validation_error"),
            )
        )

    logger.warning(
        f"Validation error: {len(errors)} field(s) failed validation",
        extra={
            "error_count": len(errors),
            "path": request.url.path,
            "method": request.method,
        },
    )

    error_response = ErrorResponse(
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        details={"validation_errors": [e.model_dump() for e in errors]},
        suggestions=["Node ids use the 'x-y' form, e.g. '0-0'"],
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {str(exc)}",
        exc_info=exc,
        extra={"exception_type": type(exc).__name__, "path": request.url.path},
    )

    # Internal details are only exposed in development
    details = None
    if settings.environment == "development":
        details = {
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": "".join(traceback.format_exception(exc)),
        }

    error_response = ErrorResponse(
        error_code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        details=details,
        suggestions=["Try again later"],
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all error handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(FastRouteException, fastroute_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PydanticValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Error handlers registered")
