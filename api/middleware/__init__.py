"""
API middleware: exception handlers and request context.
"""

from .error_handler import setup_exception_handlers
from .headers import CROSS_ORIGIN_HEADERS, REQUEST_ID_HEADER, RequestContextMiddleware

__all__ = [
    "setup_exception_handlers",
    "RequestContextMiddleware",
    "CROSS_ORIGIN_HEADERS",
    "REQUEST_ID_HEADER",
]
