"""
Milestone Service
=================

Tiered, never-expiring tracks: player level (5/10/25), crafts (1/10/50) and
harvests (10/50/250). Milestone rewards pay seeds across several rarities.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.progress import ProgressEntry
from manifest_garden.modules.progress.tracker import FixedTracker
from manifest_garden.modules.shared.constants import KEY_MILESTONES

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService

logger = get_logger(__name__)


class MilestoneService(FixedTracker):
    """Tiered milestone tracks grouped by ``group`` (level, crafting, harvesting)."""

    KIND = "milestone"
    CONFIG_KEY = "progress.milestones"
    STORAGE_KEY = KEY_MILESTONES

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

    def tracks(self) -> Dict[str, List[ProgressEntry]]:
        """Entries per track, lowest tier first."""
        grouped: Dict[str, List[ProgressEntry]] = {}
        for entry in self._entries.values():
            grouped.setdefault(entry.group or "general", []).append(entry)
        for entries in grouped.values():
            entries.sort(key=lambda e: e.target_value)
        return grouped

