"""Custom middleware for request tracing, error handling and response headers."""

import logging
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response, status
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from earmark.core.config import settings
from earmark.core.errors import ErrorCode, ErrorResponse

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request, log line and response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["X-Request-ID"] = request_id
        return response


class ErrorResponseMiddleware(BaseHTTPMiddleware):
    """Turn unexpected storage and filesystem failures into a generic 500.

    HTTP errors raised by endpoints are rendered by the exception handlers
    before they reach this layer; anything arriving here is unexpected.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except SQLAlchemyError:
            logger.exception(f"Database error: {request.method} {request.url.path}")
        except OSError:
            logger.exception(f"Filesystem error: {request.method} {request.url.path}")
        except Exception:
            logger.exception(f"Request error: {request.method} {request.url.path}")

        request_id = getattr(request.state, "request_id", None)
        return ErrorResponse.create(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add baseline security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Referrer policy for privacy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if not settings.is_development:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
