"""
Centralized Error Handling for the Fleet Efficiency API

Features:
- Standardized error response format
- Automatic error logging with context
- Exception mapping to HTTP status codes
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Error Categories
# =============================================================================


class ErrorCategory(str, Enum):
    """Categories for error classification"""

    DATABASE = "database"
    INTERNAL = "internal"
    NOT_FOUND = "not_found"


# =============================================================================
# Custom Exceptions
# =============================================================================


class FleetEfficiencyError(Exception):
    """Base exception for the fleet efficiency backend"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = utc_now().isoformat()


class DatabaseError(FleetEfficiencyError):
    """Database-related errors"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.DATABASE,
            status_code=503,
            details=details,
        )


class BaselineStorageError(DatabaseError):
    """
    A trip read or baseline read/write failed.

    Carries the vehicle (or trip) id and the operation so callers can decide
    between retrying and skipping. Only the baseline upsert retries, and only
    when it loses an insert race.
    """

    def __init__(
        self,
        operation: str,
        vehicle_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        details = {"operation": operation}
        if vehicle_id is not None:
            details["vehicle_id"] = vehicle_id
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        target = f" for {vehicle_id}" if vehicle_id is not None else ""
        super().__init__(message=f"Storage {operation} failed{target}", details=details)
        self.operation = operation
        self.vehicle_id = vehicle_id
        self.cause = cause


class NotFoundError(FleetEfficiencyError):
    """Resource not found errors"""

    def __init__(self, resource: str, resource_id: str = None):
        details = {"resource": resource}
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(
            message=f"{resource} not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details=details,
        )


# =============================================================================
# Error Response Builder
# =============================================================================


def build_error_response(
    error: Exception,
    request_id: Optional[str] = None,
    include_trace: bool = False,
) -> Dict[str, Any]:
    """
    Build a standardized error response.

    Args:
        error: The exception to format
        request_id: Optional request ID for tracking
        include_trace: Whether to include stack trace (dev only)

    Returns:
        Dict with error details
    """
    if isinstance(error, FleetEfficiencyError):
        response = {
            "error": True,
            "category": error.category.value,
            "message": error.message,
            "status_code": error.status_code,
            "timestamp": error.timestamp,
            "details": error.details,
        }
    elif isinstance(error, HTTPException):
        response = {
            "error": True,
            "category": "http",
            "message": error.detail,
            "status_code": error.status_code,
            "timestamp": utc_now().isoformat(),
            "details": {},
        }
    else:
        response = {
            "error": True,
            "category": ErrorCategory.INTERNAL.value,
            "message": str(error) or "An unexpected error occurred",
            "status_code": 500,
            "timestamp": utc_now().isoformat(),
            "details": {},
        }

    if request_id:
        response["request_id"] = request_id

    if include_trace:
        response["trace"] = traceback.format_exc()

    return response


# =============================================================================
# Exception Handlers for FastAPI
# =============================================================================


async def fleet_efficiency_exception_handler(
    request: Request, exc: FleetEfficiencyError
) -> JSONResponse:
    """Handle FleetEfficiencyError exceptions"""
    logger.error(
        f"[{exc.category.value}] {exc.message}",
        extra={
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_response(exc),
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with a FastAPI app.

    Usage:
        from errors import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(FleetEfficiencyError, fleet_efficiency_exception_handler)
    logger.info("Exception handlers registered")


__all__ = [
    "ErrorCategory",
    "FleetEfficiencyError",
    "DatabaseError",
    "BaselineStorageError",
    "NotFoundError",
    "build_error_response",
    "register_exception_handlers",
]
