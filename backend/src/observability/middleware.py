"""FastAPI middleware for observability.

Binds a correlation ID to every HTTP request and logs request outcomes.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .correlation import bind_correlation_id
from .logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to propagate request IDs as correlation IDs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with a bound correlation ID.

        Returns:
            Response: HTTP response with X-Request-ID header
        """
        with bind_correlation_id(request.headers.get(REQUEST_ID_HEADER)) as request_id:
            start_time = time.time()
            try:
                response = await call_next(request)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                logger.error(
                    f"Request failed: {str(e)}",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "error_type": type(e).__name__,
                        "duration_ms": round(duration_ms, 2),
                    },
                    exc_info=True
                )
                raise

            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                }
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
