"""
Shared building blocks for the garden's domain models.

Models with identity (a planted ``Manifestation``, a goal ``ProgressEntry``)
extend ``Entity``. State transitions that other parts of the engine care
about are recorded as ``DomainEvent`` values on the entity; the owning
service drains them with ``clear_domain_events()`` and publishes them on the
bus after its own state is consistent::

    plant.nurture(10)
    for event in plant.clear_domain_events():
        bus.publish(event.event_name, event.payload)

Models never touch storage or the bus themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DomainEvent:
    event_name: str
    payload: Dict[str, Any] = field(default_factory=dict)


class Entity:
    """Identity-based equality plus a buffer of pending domain events."""

    def __init__(self, entity_id: str) -> None:
        self._id = entity_id
        self._pending_events: List[DomainEvent] = []

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Entity) and type(other) is type(self) and other.id == self.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        self._pending_events.append(DomainEvent(event_name, dict(payload)))

    def clear_domain_events(self) -> List[DomainEvent]:
        """Hand over the pending events, oldest first, and forget them."""
        drained, self._pending_events = self._pending_events, []
        return drained


class DomainValidationError(ValueError):
    """
    A model was built or restored with values that break its invariants.

    Services translate it to ``ValidationError`` for player input, or log
    and skip the record when it came from storage.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


# Guards used in model constructors.


def validate_positive(value: int, field_name: str) -> None:
    if value <= 0:
        raise DomainValidationError(f"{field_name} must be > 0 (got {value})", field=field_name)


def validate_non_negative(value: Any, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(f"{field_name} must be >= 0 (got {value})", field=field_name)


def validate_range(value: int, min_val: int, max_val: int, field_name: str) -> None:
    if value < min_val or value > max_val:
        raise DomainValidationError(
            f"{field_name} must lie in [{min_val}, {max_val}] (got {value})", field=field_name
        )


def validate_not_empty(value: str, field_name: str) -> None:
    if not (value or "").strip():
        raise DomainValidationError(f"{field_name} is empty", field=field_name)
