"""
Error hierarchy roots and infrastructure failures.

``GardenError`` is the single root: every error the engine raises carries a
stable ``error_code``, a ``details`` dict for structured logs and a
``severity`` the log call sites use to pick a level. Player-facing rule
violations subclass it in ``manifest_garden.modules.shared.exceptions``;
this module only holds storage and configuration failures.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class GardenError(Exception):
    """Base class for every engine error."""

    severity: ErrorSeverity = ErrorSeverity.ERROR
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class GardenInfrastructureException(GardenError):
    """Storage, configuration or other failures not caused by the player."""


class ConfigurationError(GardenInfrastructureException):
    """A configuration key is missing, malformed or points at nothing usable."""

    severity = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"{config_key}: {message}",
            details={"config_key": config_key},
            error_code="CONFIG_ERROR",
        )


class PersistenceFailure(GardenInfrastructureException):
    """
    A storage backend rejected a write group.

    The write queue logs it and parks the group until one of its keys is
    written again, so the player's in-memory state is never rolled back.
    """

    is_retryable = True

    def __init__(
        self,
        operation: str,
        keys: Sequence[str],
        original_error: Optional[Exception] = None,
    ) -> None:
        self.operation = operation
        self.keys = list(keys)
        self.original_error = original_error
        cause = f"{type(original_error).__name__}: {original_error}" if original_error else "rejected"
        super().__init__(
            f"{operation} failed for {', '.join(self.keys)} ({cause})",
            details={"operation": operation, "keys": self.keys},
            error_code="PERSISTENCE_FAILURE",
        )


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    if isinstance(exc, GardenError):
        return exc.severity
    return ErrorSeverity.ERROR
