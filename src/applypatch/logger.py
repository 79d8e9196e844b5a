from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

import structlog

LOGGER_NAME = "applypatch"
LOG_FORMAT = "%(message)s"


_handler: Optional[logging.Handler] = None


def configure_logging(
    level: Union[int, str] = logging.WARNING, stream: Optional[TextIO] = None
) -> logging.Logger:
    """Route applypatch records to stream (stderr by default) at the given level.

    Calling it again replaces the previously installed handler.
    """
    global _handler

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    std_logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        std_logger.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    std_logger.addHandler(_handler)
    std_logger.setLevel(level)
    std_logger.propagate = False
    return std_logger


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
)

logger: structlog.BoundLogger = structlog.get_logger(LOGGER_NAME)
