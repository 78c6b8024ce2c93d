"""
Achievement Service
===================

Fourteen lifetime achievements (first plant, gardener, first bloom, week
warrior, balanced life...). Achievements never regenerate: once unlocked
they stay unlocked and further progress is ignored.

Definitions live in ``progress.achievements`` (YAML); only per-entry
progress state is stored under the ``achievements`` key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.modules.progress.tracker import FixedTracker
from manifest_garden.modules.shared.constants import KEY_ACHIEVEMENTS

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService

logger = get_logger(__name__)


class AchievementService(FixedTracker):
    """Lifetime achievements."""

    KIND = "achievement"
    CONFIG_KEY = "progress.achievements"
    STORAGE_KEY = KEY_ACHIEVEMENTS

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        ledger: LedgerService,
        progression: ProgressionService,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, ledger, progression, logger)
        self.load()

    def unlocked_count(self) -> int:
        return sum(1 for entry in self._entries.values() if entry.unlocked)
