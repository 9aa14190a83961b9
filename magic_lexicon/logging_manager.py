"""Structured JSON logging for magic-lexicon.

Every module logs through a child of the ``magic_lexicon`` logger. Records are
rendered as one JSON object per line to ``log/app.log`` (rotated at 5 MB) and
to stderr. Fields bound with :func:`log_context` are attached to every record
emitted inside the block, which is how a resolution tags all of its log lines
with its query mode.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Iterator, List, Optional

PACKAGE_DIR = Path(__file__).resolve().parent
LOG_DIR = Path(os.environ.get("MAGIC_LEXICON_LOG_DIR", PACKAGE_DIR.parent / "log"))
LOG_FILE = LOG_DIR / "app.log"
LOGGER_NAME = "magic_lexicon"
DEFAULT_LOG_LEVEL = logging.INFO
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

_context: contextvars.ContextVar[Dict[str, object]] = contextvars.ContextVar(
    "magic_lexicon_log_context", default={}
)

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime"}


class JSONLogFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    DEFAULT_FIELDS: tuple[str, ...] = (
        "correlation_id",
        "event",
        "query_mode",
        "entry_id",
        "duration_ms",
        "status",
    )

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pid": record.process,
            "thread": record.threadName,
        }
        extra: Dict[str, object] = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES:
                continue
            if key in self.DEFAULT_FIELDS:
                if value is not None:
                    payload[key] = value
            else:
                extra[key] = value
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class LogContextFilter(logging.Filter):
    """Copy the active :func:`log_context` fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for key, value in _context.get().items():
            setattr(record, key, value)
        return True


def _build_handlers() -> List[logging.Handler]:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    handlers: List[logging.Handler] = [
        RotatingFileHandler(
            LOG_FILE, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    formatter = JSONLogFormatter()
    context_filter = LogContextFilter()
    for handler in handlers:
        # Handler-level so records from child loggers are enriched too.
        handler.addFilter(context_filter)
        handler.setFormatter(formatter)
    return handlers


def get_logger() -> logging.Logger:
    """Return the application logger, attaching handlers on first use."""

    app_logger = logging.getLogger(LOGGER_NAME)
    if not app_logger.handlers:
        app_logger.propagate = False
        for handler in _build_handlers():
            app_logger.addHandler(handler)
        configure_logging_level(log_level=DEFAULT_LOG_LEVEL)
    return app_logger


def configure_logging_level(debug_enabled: bool = False, log_level: Optional[int] = None) -> int:
    """Set the level of the application logger and its handlers.

    ``log_level`` wins when given; otherwise ``debug_enabled`` selects DEBUG
    over the default INFO. Returns the level applied.
    """

    level = log_level if log_level is not None else (
        logging.DEBUG if debug_enabled else DEFAULT_LOG_LEVEL
    )
    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(level)
    for handler in app_logger.handlers:
        handler.setLevel(level)
    return level


def get_log_context() -> Dict[str, object]:
    return dict(_context.get())


@contextlib.contextmanager
def log_context(**fields: object) -> Iterator[None]:
    """Bind ``fields`` (``None`` values skipped) to records logged in the block."""

    merged = {**_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _context.set(merged)
    try:
        yield
    finally:
        _context.reset(token)


def compact_excerpt(text: object, limit: int = 400) -> str:
    """Collapse whitespace in ``text`` and cap it at ``limit`` characters."""

    return " ".join(str(text or "").split())[:limit]


logger = get_logger()
