"""
Garden Logging
==============

One logging stack for the engine and everything it embeds in.

- Every record passes through a ``QueueHandler``; a background
  ``QueueListener`` feeds the real handlers, so a slow console or disk never
  stalls an engine action.
- ``LogContext`` binds the current action (``plant``, ``craft``...), the
  component and a short correlation id to every record emitted inside it.
- Console output is colored text while developing and JSON in production or
  when ``LOG_JSON`` is set. ``LOG_TO_FILE`` adds a size-rotated JSON file
  under ``LOGS_DIR``.
- Keys passed through ``extra={...}`` end up in the JSON ``extra`` object.

``setup_logging()`` is idempotent and is called by ``GardenEngine`` (unless
``configure_logging=False``), never at import time.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from manifest_garden.core.config.config import Config

CONTEXT_FIELDS = ("action", "component", "operation", "correlation_id")

_action_context: ContextVar[Dict[str, Any]] = ContextVar("garden_action_context", default={})

_INSTALLED_ATTR = "_garden_logging_installed"


# ============================================================================
# SETTINGS
# ============================================================================


@dataclass(frozen=True)
class LoggerConfig:
    """Logging settings, resolved from ``Config`` each time they are read."""

    TEXT_FORMAT: str = "%(asctime)s %(levelname)-8s [%(action)s] %(name)s: %(message)s"
    DATE_FORMAT: str = "%H:%M:%S"
    FILE_NAME: str = "garden.log.jsonl"
    QUEUE_SIZE: int = 5_000

    @property
    def level(self) -> int:
        level = logging.getLevelName(str(Config.LOG_LEVEL).upper())
        return level if isinstance(level, int) else logging.INFO

    @property
    def json_output(self) -> bool:
        return bool(Config.LOG_JSON) or Config.ENVIRONMENT == "production"

    @property
    def colored(self) -> bool:
        return not self.json_output and bool(Config.LOG_COLORS) and sys.stdout.isatty()

    @property
    def file_path(self) -> Optional[Path]:
        if not Config.LOG_TO_FILE:
            return None
        return Path(Config.LOGS_DIR).resolve() / self.FILE_NAME


LOGGER_CONFIG = LoggerConfig()


@dataclass
class LoggingHealth:
    installed: bool
    queued: int
    dropped: int


_health = LoggingHealth(installed=False, queued=0, dropped=0)
_listener: Optional[QueueListener] = None


# ============================================================================
# RECORD ENRICHMENT & FORMATTING
# ============================================================================


class ActionContextFilter(logging.Filter):
    """Copy the bound action context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _action_context.get()
        for name in CONTEXT_FIELDS:
            setattr(record, name, context.get(name) or "-")
        if record.component == "-":
            record.component = record.name.rsplit(".", 1)[-1]
        for key, value in context.items():
            if key not in CONTEXT_FIELDS and not hasattr(record, key):
                setattr(record, key, value)
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{text}\033[0m" if color else text


_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"} | set(CONTEXT_FIELDS)


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        document: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, "-")
            if value != "-":
                document[name] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if extra:
            document["extra"] = extra
        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)
        return json.dumps(document, default=str, ensure_ascii=False)


class _DroppingQueueHandler(QueueHandler):
    """Never blocks: a full queue drops the record and counts it."""

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
            _health.queued += 1
        except queue.Full:
            _health.dropped += 1


# ============================================================================
# INSTALL / REMOVE
# ============================================================================


def _handlers() -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if LOGGER_CONFIG.json_output:
        console.setFormatter(JSONFormatter())
    else:
        formatter_cls = ColoredFormatter if LOGGER_CONFIG.colored else logging.Formatter
        console.setFormatter(formatter_cls(LOGGER_CONFIG.TEXT_FORMAT, LOGGER_CONFIG.DATE_FORMAT))
    handlers: list[logging.Handler] = [console]

    file_path = LOGGER_CONFIG.file_path
    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=Config.LOG_MAX_BYTES,
            backupCount=Config.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(LOGGER_CONFIG.level)
    return handlers


def setup_logging() -> None:
    """Route the root logger through the background queue (idempotent)."""
    global _listener, _health

    root = logging.getLogger()
    if getattr(root, _INSTALLED_ATTR, False):
        return

    _health = LoggingHealth(installed=True, queued=0, dropped=0)
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(LOGGER_CONFIG.QUEUE_SIZE)

    _listener = QueueListener(log_queue, *_handlers(), respect_handler_level=True)
    _listener.start()

    queue_handler = _DroppingQueueHandler(log_queue)
    queue_handler.addFilter(ActionContextFilter())

    root.handlers.clear()
    root.addHandler(queue_handler)
    root.setLevel(LOGGER_CONFIG.level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    setattr(root, _INSTALLED_ATTR, True)

    get_logger(__name__).info(
        "Logging ready",
        extra={
            "environment": Config.ENVIRONMENT,
            "json": LOGGER_CONFIG.json_output,
            "file": str(LOGGER_CONFIG.file_path) if LOGGER_CONFIG.file_path else None,
        },
    )


def shutdown_logging() -> None:
    """Drain the queue and remove the installed handlers."""
    global _listener

    root = logging.getLogger()
    if not getattr(root, _INSTALLED_ATTR, False):
        return

    if _listener is not None:
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
        _listener = None

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    setattr(root, _INSTALLED_ATTR, False)
    _health.installed = False


def get_logging_health() -> LoggingHealth:
    return LoggingHealth(
        installed=_health.installed,
        queued=_health.queued,
        dropped=_health.dropped
    )


# ============================================================================
# PUBLIC API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind action context for the duration of a ``with`` block.

    >>> with LogContext(action="harvest", component="engine"):
    ...     get_logger("garden").info("Harvesting")
    """

    def __init__(
        self,
        action: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        self.context: Dict[str, Any] = {
            **_action_context.get(),
            **extra,
            "action": action,
            "component": component,
            "operation": operation,
            "correlation_id": correlation_id or uuid.uuid4().hex[:8],
        }
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _action_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _action_context.reset(self._token)
            self._token = None


def get_log_context() -> Dict[str, Any]:
    return dict(_action_context.get())


def clear_log_context() -> None:
    _action_context.set({})


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current context without a ``with`` block."""
    _action_context.set({**_action_context.get(), **fields})
