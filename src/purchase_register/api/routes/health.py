"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends

from purchase_register.api.dependencies import get_app_settings, get_session
from purchase_register.application.dto.responses import HealthResponse
from purchase_register.application.session import InvoiceSession
from purchase_register.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check(
    session: InvoiceSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """Service status plus collection sizes and background work."""
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        environment=settings.environment,
        purchases=len(session.purchases),
        sales=len(session.sales),
        background_tasks=session.tasks.active,
    )
