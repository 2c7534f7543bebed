"""structlog setup shared by the API, the demo runner and the tests."""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict

import structlog

from restaurant_fleet.enterprise.config.settings import LoggingSettings

# transport and driver libraries that are chatty below WARNING
_QUIET_LOGGERS = ("aio_pika", "aiormq", "paho", "sqlalchemy.engine", "opentelemetry")


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(settings: LoggingSettings) -> None:
    """Send structlog events through stdlib logging at ``settings.level``."""

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(settings.json_output),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_global_context(**context: Any) -> Dict[str, Any]:
    """Attach ``context`` to every log line emitted from now on."""

    structlog.contextvars.bind_contextvars(**context)
    return context
