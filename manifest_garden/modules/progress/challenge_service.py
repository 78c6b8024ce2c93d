"""
Weekly Challenge Service
========================

A fixed set of three weekly challenges (nurture 50 times, harvest 10
blooms, bloom a legendary). The set expires at the next reference Monday
midnight and is regenerated wholesale, like daily quests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.progress import ProgressEntry
from manifest_garden.modules.progress.tracker import RotatingTracker
from manifest_garden.modules.shared.constants import KEY_CHALLENGES

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService

logger = get_logger(__name__)


class ChallengeService(RotatingTracker):
    """Weekly challenges."""

    KIND = "challenge"
    CONFIG_KEY = "progress.challenges"
    STORAGE_KEY = KEY_CHALLENGES

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

    def next_expiry_ms(self) -> int:
        return self._clock.next_week_start_ms()

    def generate(self, expires_at_ms: int) -> List[ProgressEntry]:
        week = self._clock.start_of_week().isoformat()
        return [
            self._build(definition, expires_at_ms=expires_at_ms, entry_id=f"{definition['id']}_{week}")
            for definition in self.definitions()
        ]
