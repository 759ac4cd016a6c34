"""API middleware."""

from purchase_register.api.middleware.error_handler import ErrorHandlerMiddleware
from purchase_register.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
