"""
Game-rule errors raised by the garden services.

``GardenEngine`` catches ``GardenDomainException`` at the action boundary
and turns it into a failed ``ActionResult``; the ``error_code`` is what the
UI keys its message on (``INSUFFICIENT_ENERGY``, ``CRAFT_INPUT_INVALID``,
``MANIFESTATION_NOT_FOUND``...).
"""

from __future__ import annotations

from typing import Any, Optional

from manifest_garden.core.exceptions import ErrorSeverity, GardenError, get_error_severity


class GardenDomainException(GardenError):
    """A player action broke a game rule. Expected, logged at INFO."""

    severity = ErrorSeverity.INFO


class InsufficientResourcesError(GardenDomainException):
    """The ledger cannot cover a debit."""

    def __init__(self, resource: str, required: int, current: int) -> None:
        self.resource = resource
        self.required = required
        self.current = current
        super().__init__(
            f"Not enough {resource}: need {required:,}, have {current:,}",
            details={
                "resource": resource,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code=f"INSUFFICIENT_{resource.upper()}",
        )


class InvalidCraftInputError(GardenDomainException):
    """A craft request is not five distinct blooming items."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Cannot craft: {reason}",
            details={"reason": reason},
            error_code="CRAFT_INPUT_INVALID",
        )


class NotFoundError(GardenDomainException):
    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        suffix = f" '{identifier}'" if identifier is not None else ""
        super().__init__(
            f"No {resource_type}{suffix}",
            details={"resource_type": resource_type, "identifier": identifier},
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class ValidationError(GardenDomainException):
    """Caller input is malformed (empty intention, bad amount, unknown rarity...)."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(
            f"Invalid {field}: {message}",
            details={"field": field},
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidOperationError(GardenDomainException):
    """
    The input is well formed but the game state forbids the action.

    >>> raise InvalidOperationError("plant", "all plant slots are occupied")
    """

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Cannot {action}: {reason}",
            details={"action": action, "reason": reason},
            error_code=f"INVALID_{action.upper()}",
        )


__all__ = [
    "ErrorSeverity",
    "GardenDomainException",
    "InsufficientResourcesError",
    "InvalidCraftInputError",
    "InvalidOperationError",
    "NotFoundError",
    "ValidationError",
    "get_error_severity",
]
