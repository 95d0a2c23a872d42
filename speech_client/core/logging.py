"""
Structured logging configuration using structlog.
"""
import logging
from typing import Any, Dict, Optional

import structlog

from speech_client.core.config import Settings, settings as default_settings

# Event keys whose values are credentials
CREDENTIAL_KEYS = frozenset({
    "access_token",
    "refresh_token",
    "id_token",
    "identity_token",
    "authorization",
    "cookie",
})

REDACTED = "[REDACTED]"


def redact_credentials(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential values passed to a log call."""
    for key in CREDENTIAL_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the client.

    Development renders colored console lines; production emits JSON.
    """
    settings = settings or default_settings
    level = logging.DEBUG if settings.DEBUG else logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_credentials,
    ]
    if settings.is_development:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


def log_error_details(
    error: Exception,
    **kwargs: Any,
) -> Dict[str, Any]:
    """
    Create a context dict for error logging.

    Args:
        error: Exception instance
        **kwargs: Additional context

    Returns:
        Context dictionary for logging
    """
    return {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **kwargs,
    }
