"""
Factory functions for dependency injection.

Wires infrastructure implementations to the session. The API lifespan and
tests build sessions through here instead of constructing them by hand.
"""

from typing import TYPE_CHECKING

from purchase_register.application.session import InvoiceSession
from purchase_register.config import Settings, get_logger, get_settings

if TYPE_CHECKING:
    from purchase_register.core.interfaces import ICredentialsStore, IRemoteGateway

logger = get_logger(__name__)


def create_gateway(settings: Settings | None = None) -> "IRemoteGateway":
    """Build the HTTP gateway from settings."""
    # Lazy import infrastructure
    from purchase_register.infrastructure.gateway import HttpRemoteGateway

    gateway_settings = (settings or get_settings()).gateway
    return HttpRemoteGateway(
        base_url=gateway_settings.base_url,
        timeout=gateway_settings.timeout,
        max_retries=gateway_settings.max_retries,
        retry_delay=gateway_settings.retry_delay,
    )


def create_session(
    settings: Settings | None = None,
    gateway: "IRemoteGateway | None" = None,
    credentials: "ICredentialsStore | None" = None,
) -> InvoiceSession:
    """
    Build a session with its own store, task registry and channels.

    Args:
        settings: Optional settings override
        gateway: Optional gateway override (tests inject fakes)
        credentials: Optional credentials store override

    Returns:
        Configured, not yet started InvoiceSession
    """
    settings = settings or get_settings()
    session = InvoiceSession(
        gateway=gateway or create_gateway(settings),
        credentials=credentials,
        settings=settings,
    )
    logger.info(
        "session_created",
        base_url=settings.gateway.base_url,
        auto_register=settings.auto_register.enabled,
    )
    return session
