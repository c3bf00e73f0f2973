"""Structured logging configuration with structlog.

Ledger facade events go through structlog; service modules log through the
stdlib and end up on the same root handler.
"""

import logging

import structlog

from trilo.config import Settings

SERVICE_NAME = "trilo-challenges"


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON or console output and tag every event with the service."""
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        service=SERVICE_NAME,
        environment=settings.environment,
        version=settings.app_version,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )
    # SQL echo is controlled by db_echo, not the service log level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
