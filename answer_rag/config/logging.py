"""Logging configuration for answer-rag.

Application code logs through structlog; uvicorn, aiohttp, aiosqlite and
chromadb log through the standard library and share the same handlers.
"""

import logging
from typing import List, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from .settings import Settings

LOG_FILE_NAME = "answer_rag.log"

# Libraries that log every statement or request at DEBUG
CHATTY_LOGGERS = ("aiosqlite", "chromadb.telemetry", "httpx", "urllib3")


def _stdlib_handlers(settings: Settings) -> List[logging.Handler]:
    console = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=settings.DEBUG,
        markup=True,
        rich_tracebacks=True,
    )
    log_file = logging.FileHandler(settings.LOG_DIRECTORY / LOG_FILE_NAME, encoding="utf-8")
    return [console, log_file]


def _renderer(settings: Settings):
    if settings.DEBUG:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Route structlog and stdlib logging at the configured level."""
    settings = settings or Settings()
    settings.LOG_DIRECTORY.mkdir(parents=True, exist_ok=True)
    level = logging.getLevelNamesMapping().get(settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=_stdlib_handlers(settings),
    )
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(settings),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a ``logger`` bound to its module and class name."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        cls = type(self)
        return get_logger(cls.__module__).bind(component=cls.__name__)
