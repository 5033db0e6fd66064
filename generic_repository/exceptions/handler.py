import asyncio
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from generic_repository.logging.logger import get_logger
from generic_repository.response import ResponseModel
from typing import Any
from generic_repository.config import settings

logger = get_logger("exception_handler")

# Cancellation is plain asyncio task cancellation
CancelledError = asyncio.CancelledError


class RepositoryException(Exception):
    """Base class for data access exceptions."""
    code: int = 500
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(RepositoryException):
    """A required argument (entity, collection, filter, mutation) is missing or empty."""
    code = 400
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(RepositoryException):
    """A required-match read, update or delete found no rows."""
    code = 404
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RepositoryException):
    """Update targets an entity not tracked by the owning context."""
    code = 409
    status_code = status.HTTP_409_CONFLICT


class StateError(RepositoryException):
    """Transaction operation invoked in the wrong state."""
    code = 409
    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(RepositoryException):
    """Repository wiring failed at startup."""


def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    trace_id = getattr(request.state, "trace_id", "unknown")

    if isinstance(exc, RepositoryException):
        logger.warning(f"Trace[{trace_id}] - {type(exc).__name__}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseModel.fail(code=exc.code, message=exc.message, data=exc.detail)
        )

    if isinstance(exc, RequestValidationError):
        logger.error(f"Trace[{trace_id}] - RequestValidationError: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ResponseModel.fail(code=422, message="Invalid request parameters", data=exc.errors())
        )

    if isinstance(exc, SQLAlchemyError):
        logger.critical(f"Trace[{trace_id}] - DatabaseError: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ResponseModel.fail(code=500, message="Service temporarily unavailable")
        )

    logger.opt(exception=True).error(f"Trace[{trace_id}] - UncaughtException: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseModel.fail(
            code=500,
            message="System busy, please try again later",
            data={"trace_id": trace_id} if settings.DEBUG else None
        )
    )
