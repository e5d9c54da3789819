"""Structured logging built on structlog and the standard logging module."""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING, Any, Optional

import structlog

from ovirt_api_model.config.platform_dirs import get_logs_location

if TYPE_CHECKING:
    from ovirt_api_model.config.schemas.app_schema import LoggingConfig

LOGGER_NAMESPACE = "ovirt_api_model"

_SHARED_PROCESSORS: list[Any] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def setup_logging(config: Optional[LoggingConfig] = None) -> structlog.stdlib.BoundLogger:
    """
    Set up structured logging for the application using structlog.

    :param config: Logging settings; defaults are used when omitted.
    :return: Configured structlog logger for the application namespace.
    """
    from ovirt_api_model.config.schemas.app_schema import LoggingConfig

    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)

    renderer: Any
    if config.json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )

    handlers: list[logging.Handler] = []
    if config.destination in ("file", "both"):
        log_dir = config.directory or str(get_logs_location())
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, config.filename), encoding="utf-8"))
    if config.destination in ("console", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        app_logger.addHandler(handler)
    app_logger.setLevel(level)
    app_logger.propagate = False

    return structlog.get_logger(LOGGER_NAMESPACE)


def get_logger(name: str = LOGGER_NAMESPACE) -> Any:
    """Get a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
