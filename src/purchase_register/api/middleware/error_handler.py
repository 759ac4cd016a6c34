"""
Error handling middleware.

Standardizes all API error responses to include:
- error: machine-readable identifier
- message: human-readable description
- details: structured context
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from purchase_register.application.dto.responses import ErrorResponse
from purchase_register.config import get_logger
from purchase_register.core.exceptions import PurchaseRegisterError

logger = get_logger(__name__)


# Map error codes to HTTP status codes
CODE_STATUS_MAP: dict[str, int] = {
    "MISSING_CREDENTIALS": status.HTTP_412_PRECONDITION_FAILED,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "INVOICE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NO_DETAILS": status.HTTP_404_NOT_FOUND,
    "ALREADY_PROCESSING": status.HTTP_409_CONFLICT,
    "INVOICE_NOT_DETAILED": status.HTTP_409_CONFLICT,
    "GATEWAY_TRANSPORT_ERROR": status.HTTP_502_BAD_GATEWAY,
    "JOB_QUEUE_ERROR": status.HTTP_502_BAD_GATEWAY,
    "JOB_FAILED": status.HTTP_502_BAD_GATEWAY,
    "JOB_TIMEOUT": status.HTTP_504_GATEWAY_TIMEOUT,
    "PARTIAL_REGISTRATION": status.HTTP_502_BAD_GATEWAY,
    "REGISTRATION_FAILED": status.HTTP_502_BAD_GATEWAY,
    "ConfigurationError": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "MISSING_CREDENTIALS": "Save SUNAT credentials with PUT /api/session/credentials first.",
    "INVALID_CREDENTIALS": "The tax authority rejected the RUC, SOL user or password.",
    "INVOICE_NOT_FOUND": "Check the invoice ID and try GET /api/invoices/{kind} to list invoices.",
    "NO_DETAILS": "The invoice is detailed but has no line items. Fetch the period again.",
    "ALREADY_PROCESSING": "A detail job is already running for this invoice. Wait for it to finish.",
    "INVOICE_NOT_DETAILED": "Load the invoice detail first. Only invoices with line items can be registered.",
    "GATEWAY_TRANSPORT_ERROR": "The remote API could not be reached. Retry later.",
    "JOB_QUEUE_ERROR": "The detail job could not be queued. Retry later.",
    "JOB_FAILED": "The tax authority could not provide the document detail.",
    "JOB_TIMEOUT": "The detail job did not finish in time. Request the detail again.",
    "PARTIAL_REGISTRATION": "Some invoices were not registered. Retry the failed ones.",
    "REGISTRATION_FAILED": "The backend did not accept the invoice. Check the document data.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    502: "The remote API returned an error. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def status_for(error: PurchaseRegisterError) -> int:
    return CODE_STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to a standardized JSON response."""
    if isinstance(exc, PurchaseRegisterError):
        status_code = status_for(exc)
        error_code = exc.code
        details = exc.details
        message = exc.message
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = exc.__class__.__name__
        details = {}
        message = str(exc)

    logger.error(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    body = ErrorResponse(
        error=error_code,
        message=message,
        details=details,
        hint=_get_hint(error_code, status_code),
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions to standardized JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError

    @app.exception_handler(PurchaseRegisterError)
    async def domain_exception_handler(
        request: Request,
        exc: PurchaseRegisterError,
    ) -> JSONResponse:
        """Handle domain errors raised by routes."""
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="VALIDATION_ERROR",
                message="Request validation failed",
                details={"errors": errors},
                hint=HINT_MAP["VALIDATION_ERROR"],
                path=request.url.path,
            ).model_dump(mode="json"),
        )
