"""Logging configuration for the Bundling domain.

Stdlib handlers carry the output; structlog shapes it. Sync passes log one
event per bundle decision, so deployed environments render JSON for log
search while local runs get a readable console with rich tracebacks.

Environment:
    LOG_LEVEL    explicit level, overrides the per-environment default
    LOG_DIR      directory for rotating log files (deployed only)
    PROTEAN_ENV  / ENVIRONMENT select the environment
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
_DEPLOYED = ("production", "staging")
_QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "sqlalchemy.engine")

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def current_environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def get_log_level() -> str:
    """Level from LOG_LEVEL, else the environment's default."""
    return os.getenv("LOG_LEVEL", _DEFAULT_LEVELS.get(current_environment(), "INFO"))


def _rotating_handler(log_dir: Path, filename: str, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / filename,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging() -> None:
    log_level = get_log_level()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(log_level)

    if current_environment() in _DEPLOYED:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(exist_ok=True)
        handlers.append(_rotating_handler(log_dir, "stockpool.log", log_level))
        handlers.append(_rotating_handler(log_dir, "stockpool_error.log", logging.ERROR))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = handlers

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer():
    if current_environment() in _DEPLOYED:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
    )


def setup_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging() -> None:
    """Configure stdlib handlers and the structlog pipeline."""
    setup_stdlib_logging()
    setup_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind key-values onto every log event emitted from this context."""
    structlog.contextvars.bind_contextvars(**{k: v for k, v in kwargs.items() if v is not None})


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
