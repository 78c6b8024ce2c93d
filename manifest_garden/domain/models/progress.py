"""
Progress-tracking domain model shared by achievements, quests, milestones
and weekly challenges.

Purpose
-------
Every goal in the garden has the same shape: a target value, a clamped
current value, a one-way ``locked -> unlocked`` transition and a reward that
is granted exactly once. Goals also carry a `Trigger` describing which bus
event advances them, so trackers subscribe to events instead of being called
by screens.

Trigger modes
-------------
- ``increment``: add ``payload[field]`` (or 1 when no field) to progress
- ``set``: set progress to ``payload[field]``
- ``distinct``: progress is the number of distinct ``payload[field]`` values
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from manifest_garden.domain.models.base import (
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_positive,
)
from manifest_garden.domain.models.inventory import Rarity

TRIGGER_MODES = ("increment", "set", "distinct")


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@dataclass(frozen=True)
class Reward:
    """
    Reward granted once when a goal unlocks.

    Attributes
    ----------
    gems, energy, xp : int
        Flat resource grants
    seeds_by_rarity : Dict[str, int]
        Seed grants keyed by rarity label ("common", "rare", ...)
    """

    gems: int = 0
    energy: int = 0
    xp: int = 0
    seeds_by_rarity: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_non_negative(self.gems, "gems")
        validate_non_negative(self.energy, "energy")
        validate_non_negative(self.xp, "xp")
        for rarity, count in self.seeds_by_rarity.items():
            Rarity.from_string(rarity)
            validate_non_negative(count, f"seeds_{rarity}")


    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.gems:
            data["gems"] = self.gems
        if self.energy:
            data["energy"] = self.energy
        if self.xp:
            data["xp"] = self.xp
        if self.seeds_by_rarity:
            data["seeds_by_rarity"] = dict(self.seeds_by_rarity)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Reward":
        """
        Build a reward from config or storage.

        Also accepts the single-rarity shape ``seeds: {rarity, count}``.
        """
        if not data:
            return cls()
        seeds = dict(data.get("seeds_by_rarity") or {})
        single = data.get("seeds")
        if isinstance(single, Mapping):
            rarity = str(single["rarity"]).lower()
            seeds[rarity] = seeds.get(rarity, 0) + int(single.get("count", 1))
        return cls(
            gems=int(data.get("gems", 0)),
            energy=int(data.get("energy", 0)),
            xp=int(data.get("xp", 0)),
            seeds_by_rarity={k.lower(): int(v) for k, v in seeds.items()},
        )


@dataclass(frozen=True)
class Trigger:
    """Which bus event advances a goal, and how."""

    event: str
    mode: str = "increment"
    payload_key: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.mode not in TRIGGER_MODES:
            raise DomainValidationError(
                f"Trigger mode must be one of {TRIGGER_MODES}, got {self.mode!r}",
                field="mode",
            )
        if self.mode in ("set", "distinct") and not self.payload_key:
            raise DomainValidationError(
                f"Trigger mode {self.mode!r} requires a payload field",
                field="field",
            )

    def matches(self, event_name: str, payload: Mapping[str, Any]) -> bool:
        if event_name != self.event:
            return False
        return all(payload.get(key) == value for key, value in self.filters.items())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"event": self.event, "mode": self.mode}
        if self.payload_key:
            data["field"] = self.payload_key
        if self.filters:
            data["filters"] = dict(self.filters)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Trigger":
        return cls(
            event=data["event"],
            mode=data.get("mode", "increment"),
            payload_key=data.get("field"),
            filters=dict(data.get("filters") or {}),
        )


# ============================================================================
# ENTITY
# ============================================================================


class ProgressEntry(Entity):
    """
    One achievement, quest, milestone or challenge.

    Invariants
    ----------
    - ``0 <= current_value <= target_value``
    - ``unlocked`` only ever goes from False to True
    - progress on an unlocked entry is a no-op

    Domain events
    -------------
    - ``<kind>.unlocked`` when the entry crosses its target
    """

    def __init__(
        self,
        entry_id: str,
        kind: str,
        title: str,
        target_value: int,
        reward: Reward,
        trigger: Trigger,
        description: str = "",
        current_value: int = 0,
        unlocked: bool = False,
        unlocked_at_ms: Optional[int] = None,
        expires_at_ms: Optional[int] = None,
        seen: Optional[List[Any]] = None,
        group: Optional[str] = None,
    ) -> None:
        super().__init__(entry_id)
        validate_positive(target_value, "target_value")
        self.kind = kind
        self.title = title
        self.description = description
        self.target_value = target_value
        self.reward = reward
        self.trigger = trigger
        self.current_value = max(0, min(current_value, target_value))
        self.unlocked = unlocked
        self.unlocked_at_ms = unlocked_at_ms
        self.expires_at_ms = expires_at_ms
        self.seen: List[Any] = list(seen or [])
        self.group = group

    # =========================================================================
    # STATE TRANSITIONS
    # =========================================================================

    def advance(self, delta: int, now_ms: int) -> bool:
        """
        Add ``delta`` to progress (clamped). Returns True if this call
        unlocked the entry.
        """
        if self.unlocked:
            return False
        return self._apply(self.current_value + delta, now_ms)

    def set_value(self, value: int, now_ms: int) -> bool:
        """Set progress directly (clamped). Returns True on unlock."""
        if self.unlocked:
            return False
        return self._apply(value, now_ms)

    def observe_distinct(self, value: Any, now_ms: int) -> bool:
        """Record a distinct value; progress is the count of distinct values."""
        if self.unlocked:
            return False
        if value is not None and value not in self.seen:
            self.seen.append(value)
        return self._apply(len(self.seen), now_ms)

    def _apply(self, value: int, now_ms: int) -> bool:
        self.current_value = max(0, min(value, self.target_value))
        if self.current_value >= self.target_value:
            self.unlocked = True
            self.unlocked_at_ms = now_ms
            self.add_domain_event(f"{self.kind}.unlocked", {
                "id": self.id,
                "kind": self.kind,
                "title": self.title,
                "reward": self.reward.to_dict(),
            })
            return True
        return False

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at_ms is not None and now_ms >= self.expires_at_ms

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def state_dict(self) -> Dict[str, Any]:
        """Mutable progress state only."""
        return {
            "currentValue": self.current_value,
            "unlocked": self.unlocked,
            "unlockedAt": self.unlocked_at_ms,
            "seen": list(self.seen),
        }

    def restore_state(self, data: Mapping[str, Any]) -> None:
        self.seen = list(data.get("seen") or [])
        self.current_value = max(0, min(int(data.get("currentValue", 0)), self.target_value))
        self.unlocked = bool(data.get("unlocked", False))
        self.unlocked_at_ms = data.get("unlockedAt")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "kind": self.kind,
            "title": self.title,
            "description": self.description,
            "targetValue": self.target_value,
            "reward": self.reward.to_dict(),
            "trigger": self.trigger.to_dict(),
            "expiresAt": self.expires_at_ms,
            "group": self.group,
        }
        data.update(self.state_dict())
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProgressEntry":
        entry = cls(
            entry_id=str(data["id"]),
            kind=data["kind"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            target_value=int(data["targetValue"]),
            reward=Reward.from_dict(data.get("reward")),
            trigger=Trigger.from_dict(data["trigger"]),
            expires_at_ms=data.get("expiresAt"),
            group=data.get("group"),
        )
        entry.restore_state(data)
        return entry

    @classmethod
    def from_definition(
        cls,
        kind: str,
        definition: Mapping[str, Any],
        expires_at_ms: Optional[int] = None,
        entry_id: Optional[str] = None,
    ) -> "ProgressEntry":
        """Build a fresh, zero-progress entry from a YAML definition."""
        return cls(
            entry_id=entry_id or str(definition["id"]),
            kind=kind,
            title=definition.get("title", ""),
            description=definition.get("description", ""),
            target_value=int(definition["target"]),
            reward=Reward.from_dict(definition.get("reward")),
            trigger=Trigger.from_dict(definition["trigger"]),
            expires_at_ms=expires_at_ms,
            group=definition.get("group"),
        )
