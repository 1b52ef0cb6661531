"""
Logging Configuration

Structured logging with structlog. Every entry carries the service name,
version and environment; API requests additionally carry a request id
bound through contextvars. Credentials passed to collaborators (the
sentiment token, the vision API key, bearer tokens) are never rendered.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from config.settings import settings
from src.civicstack import __version__

REDACTED = "[REDACTED]"
SENSITIVE_KEYS = frozenset({"authorization", "token", "api_key", "hf_token", "password", "secret"})


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add application context to all log entries.
    """
    event_dict.setdefault("service", settings.service_name)
    event_dict["version"] = __version__
    event_dict["environment"] = settings.environment
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def bind_request_context(request_id: str, method: str, path: str, user_id: Optional[str] = None) -> None:
    """Start a fresh per-request log context."""
    structlog.contextvars.clear_contextvars()
    context = {"request_id": request_id, "method": method, "path": path}
    if user_id:
        context["user_id"] = user_id
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def build_processors(log_format: str) -> list:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        redact_secrets,
    ]

    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.ExceptionRenderer())
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def setup_logging() -> structlog.BoundLogger:
    """
    Configure structured logging for the application.

    log_format "json" renders one JSON object per line for log shipping;
    anything else uses the coloured console renderer.

    Returns:
        Configured structlog logger instance
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )
    # urllib3 logs every collaborator request at DEBUG
    logging.getLogger("urllib3").setLevel(max(logging.INFO, logging.getLogger().level))

    structlog.configure(
        processors=build_processors(settings.log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
