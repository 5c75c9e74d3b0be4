"""
Structured logging for the event store.

structlog renders each entry and hands it to the stdlib "eventrepo"
logger, so host applications keep control of handlers and levels.
"""

import logging
from typing import Any, Optional

import structlog

from eventrepo.config import settings

LOGGER_NAME = "eventrepo"
HANDLER_NAME = "eventrepo-console"


def configure_logging(log_level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """
    Wire structlog onto the stdlib "eventrepo" logger.

    Unset arguments fall back to EVENTS_LOG_LEVEL / EVENTS_LOG_JSON.
    Calling it again replaces the previous console handler.
    """
    log_level = log_level or settings.LOG_LEVEL
    json_format = settings.LOG_JSON if json_format is None else json_format
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger(LOGGER_NAME)
    for old in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
