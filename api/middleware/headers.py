"""
Response header and request logging middleware.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 3000

# Popups (Sign in with Apple / Google) must be able to talk back to the opener
CROSS_ORIGIN_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin-allow-popups",
    "Cross-Origin-Embedder-Policy": "unsafe-none",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request bookkeeping.

    - Echoes X-Request-ID or generates one
    - Logs method, path, status and latency, warning on slow requests
    - Adds the cross-origin isolation headers to every response
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{request.method} {request.url.path} failed [request_id={request_id}]"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({duration_ms:.1f}ms) [request_id={request_id}]"
        )
        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took "
                f"{duration_ms:.0f}ms [request_id={request_id}]"
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        for name, value in CROSS_ORIGIN_HEADERS.items():
            response.headers[name] = value
        return response
