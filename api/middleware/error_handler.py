"""
Global exception handlers for the API.

Every failure is rendered as {"success": false, "error": {code, message, details?}}.
"""

import logging

import stripe
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.exceptions import AppException, PaymentError

logger = logging.getLogger(__name__)

# Starlette HTTPException status -> error code
_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "authentication_failed",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
) -> JSONResponse:
    """Build the JSON error envelope."""
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle custom application exceptions."""
        logger.warning(
            f"AppException on {request.method} {request.url.path}: "
            f"{exc.error_code} - {exc.message}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.to_dict(),
            },
        )

    @app.exception_handler(stripe.StripeError)
    async def stripe_exception_handler(
        request: Request,
        exc: stripe.StripeError,
    ) -> JSONResponse:
        """Stripe SDK failures surface as payment errors."""
        logger.error(f"Stripe error on {request.url.path}: {exc}")
        error = PaymentError(
            message=exc.user_message or "Payment provider request failed",
            details={"stripe_code": exc.code} if exc.code else None,
        )
        return JSONResponse(
            status_code=error.status_code,
            content={
                "success": False,
                "error": error.to_dict(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Handle framework HTTP errors (unknown routes, wrong methods)."""
        response = error_response(
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
            str(exc.detail),
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(x) for x in error["loc"])
            errors.append({
                "field": loc,
                "message": error["msg"],
                "type": error["type"],
            })

        logger.warning(f"Validation error on {request.url.path}: {errors}")

        return error_response(
            422,
            "validation_error",
            "Request validation failed",
            {"errors": errors},
        )

    @app.exception_handler(PydanticValidationError)
    async def pydantic_exception_handler(
        request: Request,
        exc: PydanticValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = [
            {"field": " -> ".join(str(x) for x in e["loc"]), "message": e["msg"]}
            for e in exc.errors()
        ]
        return error_response(
            422,
            "validation_error",
            "Data validation failed",
            {"errors": errors},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle all unhandled exceptions."""
        logger.exception(
            f"Unhandled exception on {request.url.path}: {exc}",
        )

        # In production, hide internal error details
        if get_settings().is_production:
            message = "An unexpected error occurred"
            details = None
        else:
            message = str(exc)
            details = {"type": type(exc).__name__}

        return error_response(500, "internal_error", message, details)
