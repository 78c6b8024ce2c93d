"""
Daily Quest Service
===================

Purpose
-------
Three quests drawn at random from six templates each reference day. The set
expires at the next reference midnight; the first observation after that
discards it, progress included, and draws a new one.

Domain
------
- Templates live in ``progress.quests.templates``
- ``progress.quests.per_day`` quests are drawn without replacement
- Quest ids are ``<template>_<YYYY-MM-DD>`` so a day's quests are unique
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, List, Optional

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.progress import ProgressEntry
from manifest_garden.modules.progress.tracker import RotatingTracker
from manifest_garden.modules.shared.constants import KEY_QUESTS

if TYPE_CHECKING:
    import random

    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService

logger = get_logger(__name__)


class QuestService(RotatingTracker):
    """Daily quests."""

    KIND = "quest"
    CONFIG_KEY = "progress.quests.templates"
    STORAGE_KEY = KEY_QUESTS

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        ledger: LedgerService,
        progression: ProgressionService,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, ledger, progression, logger)
        self._rng = rng or secrets.SystemRandom()
        self.load()

    def next_expiry_ms(self) -> int:
        return self._clock.next_midnight_ms()

    def generate(self, expires_at_ms: int) -> List[ProgressEntry]:
        templates = self.definitions()
        per_day = min(int(self.get_config("progress.quests.per_day", 3)), len(templates))
        chosen = self._rng.sample(templates, per_day)
        day = self._clock.today().isoformat()
        return [
            self._build(template, expires_at_ms=expires_at_ms, entry_id=f"{template['id']}_{day}")
            for template in chosen
        ]
