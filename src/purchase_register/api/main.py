"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from purchase_register import __version__
from purchase_register.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from purchase_register.api.middleware.error_handler import setup_exception_handlers
from purchase_register.api.routes import health_router, invoices_router, session_router
from purchase_register.application.services import create_session
from purchase_register.application.session import InvoiceSession
from purchase_register.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Builds the invoice session on startup (unless one was injected) and
    closes it, with its background tasks and gateway, on shutdown.
    """
    settings = get_settings()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        gateway=settings.gateway.base_url,
    )

    session: InvoiceSession | None = getattr(app.state, "session", None)
    if session is None:
        session = create_session(settings)
        app.state.session = session
    session.start()

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    await session.close()
    logger.info("application_stopped")


def create_app(session: InvoiceSession | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        session: Pre-built session (tests inject one with a fake gateway)

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="Purchase Register API",
        description="SUNAT invoice reconciliation, detail extraction and registration",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )
    if session is not None:
        app.state.session = session

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(invoices_router)
    app.include_router(session_router)

    # Root health endpoint (for k8s/docker health checks)
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        return {
            "status": "healthy",
            "version": __version__,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "purchase_register.api.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
