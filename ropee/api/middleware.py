"""FastAPI middleware for the ropee gateway.

This module provides middleware for:
- Request ID tracking
- Request/response logging
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ropee.logging_config import get_logger

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request.

    The request ID is:
    - Taken from an inbound X-Request-ID header, or generated
    - Stored in request.state.request_id
    - Bound into the structlog context for every log line of the request
    - Added to response headers as X-Request-ID

    Example:
        app.add_middleware(RequestIDMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with timing and status at debug level.

    Example:
        app.add_middleware(LoggingMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with logging.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            HTTP response
        """
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"

        logger.debug(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=client_host,
            content_length=request.headers.get("content-length"),
        )

        response = await call_next(request)

        logger.debug(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_seconds=round(time.time() - start_time, 3),
        )

        return response
