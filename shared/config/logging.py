"""
Structured logging on top of the standard logging module.

Loggers obtained through get_logger() accept keyword context next to the
message; the context travels on the record as ``extra_data`` and is rendered
by whichever formatter setup_logging() installed:

    logger = get_logger(__name__)
    logger.debug("Criteria applied", entity="User", filters=2)

    # production   {"timestamp": ..., "level": "DEBUG", ..., "context": {"entity": "User", "filters": 2}}
    # development  [12:00:01] DEBUG    repokit.criteria.applier: Criteria applied (entity=User | filters=2)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

# Keyword arguments the logging machinery itself understands
_RESERVED_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")


def _context_of(record: logging.LogRecord) -> dict[str, Any] | None:
    return getattr(record, "extra_data", None) or None


class StructuredFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation in production."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _context_of(record)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            payload["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"

        return json.dumps(payload, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Coloured single-line output for a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{clock}] {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        context = _context_of(record)
        if context:
            line += " (" + " | ".join(f"{key}={value}" for key, value in context.items()) + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """
    Logger accepting keyword context at every level.

    ``exc_info``, ``stack_info``, ``stacklevel`` and ``extra`` keep their
    usual meaning; every other keyword ends up in ``record.extra_data``.
    """

    def _log_with_context(self, level: int, msg: str, args: tuple, kwargs: dict[str, Any]) -> None:
        if not self.isEnabledFor(level):
            return
        options = {key: kwargs.pop(key) for key in _RESERVED_KWARGS if key in kwargs}
        extra = dict(options.pop("extra", None) or {})
        extra["extra_data"] = kwargs or None
        # Skip this frame and the level method so records point at the caller
        options["stacklevel"] = options.get("stacklevel", 1) + 2
        self._log(level, msg, args, extra=extra, **options)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, msg, args, kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.CRITICAL, msg, args, kwargs)


logging.setLoggerClass(StructuredLogger)


def setup_logging(level: int | str | None = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Call once at application startup. The level defaults to
    ``settings.log_level`` (DEBUG when ``settings.debug`` is on); production
    gets JSON output, every other environment the coloured formatter.
    """
    if level is None:
        level = logging.DEBUG if settings.debug else settings.log_level.upper()

    handler = logging.StreamHandler(sys.stdout)
    if settings.environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Statement logging only when asked for
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_echo else logging.WARNING
    )
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Logger for a module.

    Usage:
        logger = get_logger(__name__)
        logger.info("Entity created", entity="Product", entity_id=42)
    """
    return logging.getLogger(name)  # type: ignore[return-value]
