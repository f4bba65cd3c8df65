"""
Structured Logging Configuration
JSON output in production, console output during development
"""

import logging
import sys

import structlog

from lscs_core.core.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure structured logging for the application"""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL),
    )

    structlog.configure(
        processors=[
            # request_id and friends are bound by the request middleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def redact_session_id(session_id: str) -> str:
    """Shorten a session id so it can be logged without leaking the credential"""
    return f"{session_id[:8]}..." if session_id else ""
