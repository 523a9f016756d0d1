"""Request logging middleware."""

import time
from typing import Callable, Iterable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from vidtube.services.logging_service import app_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status and duration of every request.

    Request bodies are never logged.
    """

    def __init__(self, app, skip_paths: Iterable[str] = ("/api/v1/healthcheck",)):
        """Initialize request logging middleware."""
        super().__init__(app)
        self.skip_paths = set(skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Time the request and log the outcome.

        Args:
            request: HTTP request
            call_next: Next middleware/handler

        Returns:
            HTTP response
        """
        start = time.perf_counter()
        context = {
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else "unknown"
        }

        try:
            response = await call_next(request)
        except Exception:
            app_logger.exception(
                "Request failed",
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                **context
            )
            raise

        if request.url.path not in self.skip_paths:
            app_logger.info(
                "Request handled",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                **context
            )
        return response
