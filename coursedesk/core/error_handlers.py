"""
Centralised FastAPI exception handlers.

Every error leaves the API as {error, message, details, path}.
"""

import json
import logging
import re
import traceback
from typing import Any, Dict, List, Union
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, ValidationException
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    TimeoutError,
    DisconnectionError,
)
from asyncpg.exceptions import (
    PostgresError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
    TooManyConnectionsError,
)

from coursedesk.core.config import DEBUG
from coursedesk.core.exceptions import (
    BaseAppException,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    DatabaseIntegrityError,
)

logger = logging.getLogger(__name__)

CONSTRAINT_PATTERN = re.compile(r'constraint "([^"]+)"')


def error_body(request: Request, error: str, message: str, details: dict = None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details or {},
        "path": request.url.path,
    }


def _request_extra(request: Request, **extra) -> Dict[str, Any]:
    return {"path": request.url.path, "method": request.method, **extra}


async def app_exception_handler(
    request: Request, exc: BaseAppException
) -> JSONResponse:
    log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"{exc.error_code}: {exc.message}",
        extra=_request_extra(
            request, error_code=exc.error_code, status_code=exc.status_code, details=exc.details
        ),
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.error_code, exc.message, exc.details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra=_request_extra(request, status_code=exc.status_code),
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, "HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _json_safe(value: Any) -> Any:
    if value is None:
        return None
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def format_validation_errors(errors: List[dict]) -> List[dict]:
    """Pydantic error entries as {field, message, type, input}"""
    return [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "value_error"),
            "input": _json_safe(error.get("input")),
        }
        for error in errors
    ]


async def validation_exception_handler(
    request: Request, exc: Union[ValidationException, PydanticValidationError]
) -> JSONResponse:
    """Schema violations detected by FastAPI/pydantic (422)"""
    fields = format_validation_errors(exc.errors())

    logger.warning(
        f"Request validation failed on {len(fields)} field(s)",
        extra=_request_extra(request, errors=fields),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            "VALIDATION_ERROR",
            f"Validation failed for {len(fields)} field(s)",
            {"fields": fields},
        ),
    )


def _integrity_constraint(exc: IntegrityError) -> str:
    constraint = getattr(exc.orig, "constraint_name", None)
    if constraint:
        return constraint

    match = CONSTRAINT_PATTERN.search(str(exc.orig))
    return match.group(1) if match else "unknown"


def database_error_to_app_exception(exc: SQLAlchemyError) -> BaseAppException:
    if isinstance(exc, IntegrityError):
        return DatabaseIntegrityError(
            _integrity_constraint(exc), {"original_error": str(exc.orig)}
        )
    if isinstance(exc, (OperationalError, DisconnectionError)):
        return DatabaseConnectionError("Database connection lost")
    if isinstance(exc, TimeoutError):
        return DatabaseTimeoutError("database_operation", 30)
    return DatabaseError(f"Database operation failed: {str(exc)}")


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    logger.error(
        f"Database exception: {type(exc).__name__} - {str(exc)}",
        extra=_request_extra(
            request, exception_type=type(exc).__name__, traceback=traceback.format_exc()
        ),
    )
    return await app_exception_handler(request, database_error_to_app_exception(exc))


async def postgres_exception_handler(
    request: Request, exc: PostgresError
) -> JSONResponse:
    """asyncpg errors that escape SQLAlchemy"""
    if isinstance(exc, (ConnectionFailureError, ConnectionDoesNotExistError)):
        app_exc = DatabaseConnectionError("PostgreSQL connection failed")
    elif isinstance(exc, TooManyConnectionsError):
        app_exc = DatabaseConnectionError("Too many database connections")
    else:
        app_exc = DatabaseError(
            f"PostgreSQL error: {str(exc)}",
            details={"postgres_code": getattr(exc, "sqlstate", "unknown")},
        )

    logger.error(
        f"PostgreSQL exception: {type(exc).__name__} - {str(exc)}",
        extra=_request_extra(request, exception_type=type(exc).__name__),
    )
    return await app_exception_handler(request, app_exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    trace = traceback.format_exc()
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {str(exc)}",
        extra=_request_extra(request, exception_type=type(exc).__name__, traceback=trace),
    )

    # Tracebacks only leave the process in development
    details = {"exception_type": type(exc).__name__, "traceback": trace} if DEBUG else {}

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request, "INTERNAL_SERVER_ERROR", "An unexpected error occurred", details
        ),
    )


def setup_exception_handlers(app):
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    # Replaces FastAPI's default 422 handler
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)

    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(PostgresError, postgres_exception_handler)

    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
