"""
Structured logging configuration using structlog.

Console output in development, JSON elsewhere. SOL credentials never reach a
log line: any event key naming a secret is masked before rendering.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from purchase_register.config.settings import Settings, get_settings

SECRET_KEYS = frozenset(
    {
        "password",
        "sol_password",
        "solPassword",
        "clave_sol",
        "claveSol",
        "client_secret",
        "clientSecret",
    }
)


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["environment"] = settings.environment
    return event_dict


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask credential values passed as log fields."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
        add_app_context,
    ]
    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ]
        )
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger."""
    settings = settings or get_settings()

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Gateway traffic is logged by the gateway itself
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
