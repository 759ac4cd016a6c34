"""
Dependency injection for FastAPI.

The session lives on ``app.state`` for the lifetime of the application.
"""

from fastapi import Request

from purchase_register.application.session import InvoiceSession
from purchase_register.config import Settings, get_settings
from purchase_register.core.exceptions import ConfigurationError


def get_session(request: Request) -> InvoiceSession:
    """Get the session built by the application lifespan."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise ConfigurationError("Invoice session is not initialized")
    return session


def get_app_settings() -> Settings:
    return get_settings()
