"""
Structured logging configuration.

Development gets readable text lines; production renders every record,
including those from third-party libraries, as JSON through structlog.
"""
import logging
import re
import sys
from typing import Any

import structlog

from earmark.core.config import settings

# Fields whose values are never written to the logs
SENSITIVE_FIELDS = [
    "password",
    "password_hash",
    "secret",
    "session",
    "cookie",
    "authorization",
]

_BCRYPT_HASH_PATTERN = re.compile(r"\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}")


def setup_logging() -> None:
    """
    Configure logging for the application.

    In production: JSON format with timestamps and request IDs
    In development: Readable text format
    """
    log_level = getattr(logging, settings.LOG_LEVEL)

    if settings.is_development or settings.DEBUG:
        configure_development_logging(log_level)
    else:
        configure_production_logging(log_level)

    # Silence noisy SQLAlchemy engine logs
    for name in ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects", "sqlalchemy.orm"):
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_development_logging(level: int) -> None:
    """Configure logging for development (readable format)."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )


def configure_production_logging(level: int) -> None:
    """Configure logging for production (JSON format)."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive_data,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Redact sensitive data from log entries.

    Removes passwords, secrets, session and cookie values, and masks anything
    that looks like a bcrypt hash inside free-text values.
    """
    redacted = event_dict.copy()

    for key, value in redacted.items():
        if not isinstance(key, str):
            continue
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            redacted[key] = "***REDACTED***"
        elif isinstance(value, str):
            redacted[key] = redact_string(value)

    return redacted


def redact_string(value: str) -> str:
    """Mask bcrypt hashes embedded in a string."""
    return _BCRYPT_HASH_PATTERN.sub("***REDACTED***", value)
