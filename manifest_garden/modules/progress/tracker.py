"""
Progress Tracker Base
=====================

Purpose
-------
Shared machinery for achievements, quests, milestones and weekly challenges.
Every goal is a ``ProgressEntry`` with a trigger; the tracker subscribes to
the trigger events on the bus and advances matching entries.

Unlock flow
-----------
1. The entry crosses its target and flips to unlocked (one-way).
2. Its reward is applied through the ledger and progression services.
3. The tracker record and the reward's ledger/progression records are
   enqueued as one write group, so an unlock is never persisted without its
   reward or vice versa.
4. The unlock is queued for the UI (``drain_unlocks()``) and
   ``<kind>.unlocked`` is published.

Subclasses decide where entries come from (``FixedTracker`` for goals that
never reset, ``RotatingTracker`` for sets that expire and regenerate).
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from manifest_garden.core.event.types import ListenerPriority
from manifest_garden.domain.models.base import DomainValidationError
from manifest_garden.domain.models.progress import ProgressEntry
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import ENERGY, GEMS, seed_resource
from manifest_garden.modules.shared.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService


class ProgressTracker(BaseService):
    """Base class for goal trackers."""

    KIND: str = "goal"
    CONFIG_KEY: str = ""

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        ledger: LedgerService,
        progression: ProgressionService,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)
        self._ledger = ledger
        self._progression = progression
        self._entries: Dict[str, ProgressEntry] = {}
        self._unlocks: List[Dict[str, Any]] = []
        self._listener_ids: List[tuple[str, str]] = []

    # ========================================================================
    # DEFINITIONS
    # ========================================================================

    def definitions(self) -> List[Mapping[str, Any]]:
        return list(self.get_config(self.CONFIG_KEY, []) or [])

    def watched_events(self) -> List[str]:
        return sorted({d["trigger"]["event"] for d in self.definitions()})

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def start(self) -> None:
        """Subscribe to every trigger event this tracker can observe."""
        for event_name in self.watched_events():
            identifier = self._events.subscribe(
                event_name,
                functools.partial(self.observe, event_name),
                priority=ListenerPriority.HIGH,
                identifier=f"{self.KIND}:{event_name}",
            )
            self._listener_ids.append((event_name, identifier))
        self.log.debug(
            f"{self.KIND} tracker subscribed",
            extra={"events": [e for e, _ in self._listener_ids]},
        )

    def stop(self) -> None:
        for event_name, identifier in self._listener_ids:
            self._events.unsubscribe(event_name, identifier)
        self._listener_ids.clear()

    def refresh(self) -> bool:
        """Hook for expiring sets; returns True when entries were regenerated."""
        return False

    # ========================================================================
    # QUERIES
    # ========================================================================

    def entries(self) -> List[ProgressEntry]:
        self.refresh()
        return list(self._entries.values())

    def get(self, entry_id: str) -> ProgressEntry:
        self.refresh()
        try:
            return self._entries[entry_id]
        except KeyError:
            raise NotFoundError(self.KIND.capitalize(), entry_id)

    def incomplete_count(self) -> int:
        return sum(1 for entry in self.entries() if not entry.unlocked)

    def drain_unlocks(self) -> List[Dict[str, Any]]:
        """Return and clear unlocks recorded since the last drain."""
        drained, self._unlocks = self._unlocks, []
        return drained

    # ========================================================================
    # PROGRESS
    # ========================================================================

    def progress(self, entry_id: str, delta: int = 1) -> ProgressEntry:
        """
        Add ``delta`` to an entry (clamped to its target). A no-op once the
        entry is unlocked.
        """
        self.validate_non_negative_int(delta, "delta")
        entry = self.get(entry_id)
        if entry.advance(delta, self._clock.now_ms()):
            self._complete(entry)
        else:
            self.persist()
        return entry

    def set_progress(self, entry_id: str, value: int) -> ProgressEntry:
        """Set an entry's progress directly (level/streak style goals)."""
        self.validate_non_negative_int(value, "value")
        entry = self.get(entry_id)
        if entry.set_value(value, self._clock.now_ms()):
            self._complete(entry)
        else:
            self.persist()
        return entry

    def observe(self, event_name: str, payload: Mapping[str, Any]) -> List[str]:
        """
        Bus listener: advance every locked entry whose trigger matches.

        Returns:
            Ids of entries unlocked by this event
        """
        self.refresh()
        now_ms = self._clock.now_ms()
        changed = False
        completed: List[ProgressEntry] = []

        for entry in list(self._entries.values()):
            if entry.unlocked or not entry.trigger.matches(event_name, payload):
                continue
            trigger = entry.trigger
            if trigger.mode == "increment":
                delta = int(payload.get(trigger.payload_key, 1)) if trigger.payload_key else 1
                unlocked = entry.advance(max(0, delta), now_ms)
            elif trigger.mode == "set":
                value = payload.get(trigger.payload_key)
                if value is None:
                    continue
                unlocked = entry.set_value(int(value), now_ms)
            else:
                unlocked = entry.observe_distinct(payload.get(trigger.payload_key), now_ms)
            changed = True
            if unlocked:
                completed.append(entry)

        if changed and not completed:
            self.persist()
        for entry in completed:
            self._complete(entry)
        return [entry.id for entry in completed]

    def _complete(self, entry: ProgressEntry) -> None:
        reward = entry.reward
        grants = {GEMS: reward.gems, ENERGY: reward.energy}
        for rarity, count in reward.seeds_by_rarity.items():
            grants[seed_resource(rarity)] = grants.get(seed_resource(rarity), 0) + count
        self._ledger.credit_many(grants, reason=f"{self.KIND}:{entry.id}")
        if reward.xp:
            self._progression.add_xp(reward.xp)

        self._store.save_many({
            self.STORAGE_KEY: self.to_record(),
            self._ledger.STORAGE_KEY: self._ledger.to_record(),
            self._progression.STORAGE_KEY: self._progression.to_record(),
        })

        self.log_operation(
            f"{self.KIND}_unlocked",
            entry_id=entry.id,
            title=entry.title,
            reward=reward.to_dict(),
        )
        for event in entry.clear_domain_events():
            self._unlocks.append(dict(event.payload))
            self.emit_event(event.event_name, event.payload)

    def _build(self, definition: Mapping[str, Any], **kwargs: Any) -> ProgressEntry:
        try:
            return ProgressEntry.from_definition(self.KIND, definition, **kwargs)
        except (DomainValidationError, KeyError, TypeError, ValueError) as e:
            self.log.error(
                f"Invalid {self.KIND} definition",
                extra={"definition": dict(definition), "error": str(e)},
            )
            raise ValidationError(self.CONFIG_KEY, f"Invalid {self.KIND} definition: {e}") from e


class FixedTracker(ProgressTracker):
    """
    Goals that never reset. Definitions come from config; only progress
    state is persisted, keyed by entry id.
    """

    def load(self) -> None:
        self._entries = {}
        for definition in self.definitions():
            entry = self._build(definition)
            self._entries[entry.id] = entry

        saved = self.load_record(default={}) or {}
        for entry_id, state in saved.items():
            if entry_id in self._entries:
                self._entries[entry_id].restore_state(state)

    def to_record(self) -> Dict[str, Any]:
        return {entry_id: entry.state_dict() for entry_id, entry in self._entries.items()}


class RotatingTracker(ProgressTracker):
    """
    Goal sets that expire at a calendar boundary. The first observation
    after expiry discards the whole set and generates a fresh one with
    zeroed progress.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._expires_at_ms: Optional[int] = None

    @property
    def expires_at_ms(self) -> Optional[int]:
        return self._expires_at_ms

    def next_expiry_ms(self) -> int:
        raise NotImplementedError

    def generate(self, expires_at_ms: int) -> List[ProgressEntry]:
        raise NotImplementedError

    def load(self) -> None:
        saved = self.load_record(default={}) or {}
        entries = []
        for data in saved.get("entries", []):
            try:
                entries.append(ProgressEntry.from_dict(data))
            except (DomainValidationError, KeyError, TypeError, ValueError) as e:
                self.log.warning(
                    f"Dropping unreadable {self.KIND}",
                    extra={"entry": data, "error": str(e)},
                )
        self._entries = {entry.id: entry for entry in entries}
        self._expires_at_ms = saved.get("expiresAt")
        self.refresh()

    def regenerate(self) -> None:
        expires_at = self.next_expiry_ms()
        self._entries = {entry.id: entry for entry in self.generate(expires_at)}
        self._expires_at_ms = expires_at
        self.persist()
        self.log_operation(
            f"{self.KIND}_regenerated",
            entry_ids=list(self._entries),
            expires_at=expires_at,
        )

    def refresh(self) -> bool:
        if self._expires_at_ms is not None and self._clock.now_ms() < self._expires_at_ms:
            return False
        self.regenerate()
        return True

    def to_record(self) -> Dict[str, Any]:
        return {
            "expiresAt": self._expires_at_ms,
            "entries": [entry.to_dict() for entry in self._entries.values()],
        }
