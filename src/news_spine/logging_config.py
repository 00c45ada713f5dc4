"""
Logging configuration.

Single entry point for structured logging across the sync pipeline. Worker
processes, the orchestrator and tests all call ``configure_logging`` once;
modules then log through ``structlog.get_logger(__name__)`` with snake_case
event names and key/value context.

Defaults come from ``Settings.log_level`` / ``Settings.log_format`` so the
same LOG_LEVEL / LOG_FORMAT environment variables drive both the Celery
worker and in-process runs.

Usage:
    from news_spine.logging_config import configure_logging
    configure_logging()

    # or explicitly
    configure_logging(level="DEBUG", format="console")

Sync sessions are bound with contextvars so every event emitted while a
session runs carries its id:

    structlog.contextvars.bind_contextvars(session_id=session_id)
"""

import logging
import sys
from typing import Literal

import structlog
from structlog.types import Processor

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Subsequent calls are no-ops unless force=True.

    Args:
        level: Log level (overrides settings)
        format: Output format (overrides settings)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    if level is None or format is None:
        from news_spine.config import get_settings

        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        # UTC ISO-8601
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level),
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True


def reset_logging() -> None:
    """Allow the next ``configure_logging`` call to reconfigure (for testing)."""
    global _configured
    _configured = False
    structlog.reset_defaults()
