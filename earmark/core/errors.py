"""
Standardized error response system.

Provides consistent error responses across all API endpoints.
"""
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode:
    """Standard error codes."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Authentication/Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SYSTEM_LOCKED = "SYSTEM_LOCKED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standard error response format."""

    @staticmethod
    def create(
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> JSONResponse:
        """
        Create a standardized error response.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details (optional)
            request_id: Request correlation ID (optional)
            headers: Extra response headers (optional)

        Returns:
            JSONResponse with standard error format
        """
        error_data: Dict[str, Any] = {
            "error": {
                "code": code,
                "message": message,
            }
        }

        if details:
            error_data["error"]["details"] = details

        if request_id:
            error_data["error"]["request_id"] = request_id

        return JSONResponse(status_code=status_code, content=error_data, headers=headers)


class HTTPError(HTTPException):
    """
    Enhanced HTTPException with standard error response format.

    Usage:
        raise HTTPError(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            message="File not found",
            details={"file_id": 123}
        )
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message, headers=headers)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", str(uuid.uuid4()))


async def http_error_handler(request: Request, exc: HTTPError) -> JSONResponse:
    """
    Handle HTTPError exceptions and return standardized error response.

    This should be added to FastAPI exception handlers.
    """
    return ErrorResponse.create(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=_request_id(request),
        headers=exc.headers,
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies and parameters as 400 validation errors."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.debug("Request validation failed: %s %s %s", request.method, request.url.path, errors)

    return ErrorResponse.create(
        code=ErrorCode.VALIDATION_ERROR,
        message=errors[0]["message"] if errors else "Invalid request",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"errors": errors},
        request_id=_request_id(request),
    )


# Convenience functions for common errors

def not_found(resource: str, details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 404 NOT_FOUND error."""
    return HTTPError(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.NOT_FOUND,
        message=f"{resource} not found",
        details=details,
    )


def unauthorized(message: str = "Authentication required", details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 401 UNAUTHORIZED error."""
    return HTTPError(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.UNAUTHORIZED,
        message=message,
        details=details,
    )


def invalid_credentials(failed_attempts: int, locked: bool) -> HTTPError:
    """Create a 401 INVALID_CREDENTIALS error carrying the lockout progress."""
    return HTTPError(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.INVALID_CREDENTIALS,
        message="Invalid password",
        details={"failedAttempts": failed_attempts, "locked": locked},
    )


def system_locked() -> HTTPError:
    """Create a 403 SYSTEM_LOCKED error."""
    return HTTPError(
        status_code=status.HTTP_403_FORBIDDEN,
        code=ErrorCode.SYSTEM_LOCKED,
        message="System locked due to too many failed attempts",
        details={"locked": True},
    )


def validation_error(message: str, details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 400 VALIDATION_ERROR error."""
    return HTTPError(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        details=details,
    )


def too_many_requests(message: str, retry_after: int) -> HTTPError:
    """Create a 429 RATE_LIMIT_EXCEEDED error."""
    return HTTPError(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        code=ErrorCode.RATE_LIMIT_EXCEEDED,
        message=message,
        headers={"Retry-After": str(retry_after)},
    )
