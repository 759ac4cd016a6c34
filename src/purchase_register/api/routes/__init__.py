"""API route modules."""

from purchase_register.api.routes.health import router as health_router
from purchase_register.api.routes.invoices import router as invoices_router
from purchase_register.api.routes.session import router as session_router

__all__ = [
    "health_router",
    "invoices_router",
    "session_router",
]
