"""
Process-level settings read from the environment (``.env`` honoured).

These pick *where* the garden runs: which storage backend, how to reach
it, how to log. Game balance lives in ``ConfigManager``.

========================  =====================================  ============
Variable                  Meaning                                Default
========================  =====================================  ============
ENVIRONMENT               development / testing / staging /      development
                          production
DEBUG                     extra diagnostics                      false
LOG_LEVEL                 root log level                         INFO
LOG_JSON                  JSON console lines                     false
LOG_COLORS                colored text console                   true
LOG_TO_FILE               rotating JSON file under LOGS_DIR      false
LOG_MAX_BYTES             rotation size                          10 MiB
LOG_BACKUP_COUNT          rotated files kept                     5
LOGS_DIR, DATA_DIR        log and file-storage directories       logs, data
STORAGE_BACKEND           memory / file / redis / sql            file
REDIS_URL                 redis connection URL                   localhost
REDIS_KEY_PREFIX          namespace for every garden key         garden:
REDIS_SOCKET_TIMEOUT      seconds                                5
DATABASE_URL              SQLAlchemy URL for the sql backend     sqlite under
                                                                 DATA_DIR
DATABASE_ECHO             echo SQL statements                    false
========================  =====================================  ============

Malformed values are logged and replaced by the default; nothing here
raises at import time.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

_log = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        >>> Environment.from_string("Production") is Environment.PRODUCTION
        True
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            _log.warning("Unknown ENVIRONMENT %r, using development", value)
            return cls.DEVELOPMENT


class StorageBackend(Enum):
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"
    SQL = "sql"


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================================
# Parsers: raw string -> value, ValueError when malformed
# ============================================================================


def _as_bool(raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE:
        return True
    if word in _FALSE:
        return False
    raise ValueError("expected a boolean")


def _int_between(low: Optional[int] = None, high: Optional[int] = None) -> Callable[[str], int]:
    def parse(raw: str) -> int:
        value = int(raw)
        if (low is not None and value < low) or (high is not None and value > high):
            raise ValueError(f"outside [{low}, {high}]")
        return value

    return parse


def _one_of(choices: Iterable[str]) -> Callable[[str], str]:
    allowed = frozenset(choices)

    def parse(raw: str) -> str:
        value = raw.strip().lower()
        if value not in allowed:
            raise ValueError(f"expected one of {sorted(allowed)}")
        return value

    return parse


def _text(raw: str) -> str:
    return raw


# attribute, parser, default (callables get the partially loaded Config)
_SETTINGS: Tuple[Tuple[str, Callable[[str], Any], Any], ...] = (
    ("ENVIRONMENT", lambda raw: Environment.from_string(raw).value, "development"),
    ("DEBUG", _as_bool, False),
    ("LOG_LEVEL", lambda raw: raw.strip().upper(), "INFO"),
    ("LOG_JSON", _as_bool, False),
    ("LOG_COLORS", _as_bool, True),
    ("LOG_TO_FILE", _as_bool, False),
    ("LOG_MAX_BYTES", _int_between(low=1024), 10 * 1024 * 1024),
    ("LOG_BACKUP_COUNT", _int_between(0, 100), 5),
    ("LOGS_DIR", Path, Path("logs")),
    ("DATA_DIR", Path, Path("data")),
    ("STORAGE_BACKEND", _one_of(b.value for b in StorageBackend), StorageBackend.FILE.value),
    ("REDIS_URL", _text, "redis://localhost:6379/0"),
    ("REDIS_KEY_PREFIX", _text, "garden:"),
    ("REDIS_SOCKET_TIMEOUT", _int_between(1, 60), 5),
    ("DATABASE_URL", _text, lambda cfg: f"sqlite:///{cfg.DATA_DIR / 'garden.db'}"),
    ("DATABASE_ECHO", _as_bool, False),
)


class Config:
    """
    Class-level settings; never instantiated.

    >>> Config.STORAGE_BACKEND
    'file'
    """

    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    LOGS_DIR: Path = Path("logs")
    DATA_DIR: Path = Path("data")

    STORAGE_BACKEND: str = StorageBackend.FILE.value
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "garden:"
    REDIS_SOCKET_TIMEOUT: int = 5
    DATABASE_URL: str = "sqlite:///data/garden.db"
    DATABASE_ECHO: bool = False

    _from_environment: Dict[str, bool] = {}
    _rejected: Dict[str, str] = {}
    _validated: bool = False

    @classmethod
    def load(cls) -> None:
        """(Re)read every setting from ``os.environ``."""
        cls._from_environment = {}
        cls._rejected = {}
        for name, parse, default in _SETTINGS:
            fallback = default(cls) if callable(default) and not isinstance(default, type) else default
            raw = os.environ.get(name)
            cls._from_environment[name] = raw is not None
            if raw is None:
                setattr(cls, name, fallback)
                continue
            try:
                setattr(cls, name, parse(raw))
            except ValueError as e:
                cls._rejected[name] = f"{raw!r}: {e}"
                _log.warning("Ignoring %s=%r (%s); using %r", name, raw, e, fallback)
                setattr(cls, name, fallback)

    @classmethod
    def validate(cls) -> None:
        """
        Reload, normalise and create the directories the chosen backend needs.

        Raises ValueError in production when a directory cannot be created.
        """
        if cls._validated:
            return
        cls.load()

        if cls.LOG_LEVEL not in VALID_LOG_LEVELS:
            _log.warning("Unknown LOG_LEVEL %r, using INFO", cls.LOG_LEVEL)
            cls.LOG_LEVEL = "INFO"
        if cls.is_production() and cls.STORAGE_BACKEND == StorageBackend.MEMORY.value:
            _log.warning("In-memory storage in production: garden state will not survive restarts")

        try:
            if cls.LOG_TO_FILE:
                cls.LOGS_DIR.mkdir(parents=True, exist_ok=True)
            if cls.STORAGE_BACKEND == StorageBackend.FILE.value:
                cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            _log.warning("Could not prepare directories: %s", e)
            if cls.is_production():
                raise ValueError(f"Configuration validation failed: {e}") from e

        cls._validated = True
        _log.info("Configuration ready", extra={"settings": cls.get_config_summary()})

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == Environment.DEVELOPMENT.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Settings safe to log (no connection URLs)."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "log_json": cls.LOG_JSON,
            "storage_backend": cls.STORAGE_BACKEND,
            "data_dir": str(cls.DATA_DIR),
            "from_environment": sorted(k for k, v in cls._from_environment.items() if v),
            "rejected": dict(cls._rejected),
        }


Config.load()
