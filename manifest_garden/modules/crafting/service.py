"""
Crafting Service - burn 5 blooms for 1 seed
===========================================

Purpose
-------
Consumes exactly five distinct blooming inventory items and credits one seed
whose rarity is drawn from an odds table.

Mechanics
---------
1. Each input's rarity comes from its color tag.
2. The dominant rarity is the most frequent one; ties go to the higher
   rarity.
3. ``r`` is drawn uniformly from ``[0, 100)`` and walked through the bands
   of the table selected by ``(dominant, count)``. Bands are consumed in the
   order they are configured.
4. The five items are removed and one seed of the outcome rarity is
   credited. Inventory and ledger records are enqueued as a single write
   group.

Input validation happens before any mutation: a rejected craft leaves the
inventory and ledger untouched.

Events
------
- ``inventory.crafted``: {consumed, dominant, dominant_count, roll, rarity}
"""

from __future__ import annotations

import secrets
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.inventory import Rarity
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import EVENT_CRAFTED, seed_resource
from manifest_garden.modules.shared.exceptions import InvalidCraftInputError

if TYPE_CHECKING:
    import random

    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.inventory.service import InventoryService
    from manifest_garden.modules.ledger.service import LedgerService

logger = get_logger(__name__)

Band = Tuple[Rarity, float]
# rarity -> [(min_count, bands)] sorted by min_count descending
OddsTable = Dict[Rarity, List[Tuple[int, List[Band]]]]

DEFAULT_ODDS: Mapping[str, Any] = {
    "legendary": [
        {"min_count": 5, "outcomes": [["legendary", 70], ["epic", 25], ["rare", 5]]},
        {"min_count": 3, "outcomes": [["legendary", 50], ["epic", 35], ["rare", 15]]},
        {"min_count": 1, "outcomes": [["legendary", 25], ["epic", 45], ["rare", 30]]},
    ],
    "epic": [
        {"min_count": 1, "outcomes": [["epic", 70], ["rare", 22], ["common", 7], ["legendary", 1]]},
    ],
    "rare": [
        {"min_count": 1, "outcomes": [["rare", 70], ["common", 24], ["epic", 5.2], ["legendary", 0.8]]},
    ],
    "common": [
        {"min_count": 1, "outcomes": [["common", 70], ["rare", 22], ["epic", 7.5], ["legendary", 0.5]]},
    ],
}


@dataclass(frozen=True)
class CraftResult:
    """Outcome of one craft."""

    rarity: Rarity
    dominant: Rarity
    dominant_count: int
    roll: float
    consumed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rarity": self.rarity.label,
            "dominant": self.dominant.label,
            "dominant_count": self.dominant_count,
            "roll": self.roll,
            "consumed": list(self.consumed),
        }


# ============================================================================
# PURE FUNCTIONS
# ============================================================================


def parse_odds(config: Mapping[str, Any]) -> OddsTable:
    """Turn the YAML odds mapping into an ``OddsTable``."""
    table: OddsTable = {}
    for rarity_name, tiers in config.items():
        rarity = Rarity.from_string(rarity_name)
        parsed = []
        for tier in tiers:
            bands = [(Rarity.from_string(name), float(weight)) for name, weight in tier["outcomes"]]
            parsed.append((int(tier.get("min_count", 1)), bands))
        table[rarity] = sorted(parsed, key=lambda t: t[0], reverse=True)
    return table


def dominant_rarity(rarities: Sequence[Rarity]) -> Tuple[Rarity, int]:
    """Most frequent rarity; ties resolve to the higher rarity."""
    counts = Counter(rarities)
    dominant = max(counts, key=lambda r: (counts[r], r))
    return dominant, counts[dominant]


def select_bands(table: OddsTable, dominant: Rarity, count: int) -> List[Band]:
    for min_count, bands in table[dominant]:
        if count >= min_count:
            return bands
    return table[dominant][-1][1]


def roll_outcome(rarities: Sequence[Rarity], roll: float, table: Optional[OddsTable] = None) -> Rarity:
    """
    Map a roll in ``[0, 100)`` to an outcome rarity for the given inputs.

    Example:
        >>> L, E, R = Rarity.LEGENDARY, Rarity.EPIC, Rarity.RARE
        >>> roll_outcome([L, L, L, E, R], 40)
        <Rarity.LEGENDARY: 3>
    """
    odds = table if table is not None else parse_odds(DEFAULT_ODDS)
    dominant, count = dominant_rarity(rarities)
    bands = select_bands(odds, dominant, count)

    cumulative = 0.0
    for rarity, weight in bands:
        cumulative += weight
        if roll < cumulative:
            return rarity
    # Float sums can fall just short of 100
    return bands[-1][0]


# ============================================================================
# SERVICE
# ============================================================================


class CraftingService(BaseService):
    """
    Burn five blooming items for one seed.

    Args:
        rng: Random source with ``random()``; defaults to ``secrets.SystemRandom``
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        inventory: InventoryService,
        ledger: LedgerService,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)
        self._inventory = inventory
        self._ledger = ledger
        self._rng = rng or secrets.SystemRandom()
        self._odds = parse_odds(self.get_config("crafting.odds", DEFAULT_ODDS) or DEFAULT_ODDS)
        self._input_count = int(self.get_config("crafting.input_count", 5))

    @property
    def odds(self) -> OddsTable:
        return self._odds

    def draw(self) -> float:
        return self._rng.random() * 100

    def validate_inputs(self, item_ids: Sequence[str]) -> List[Rarity]:
        """
        Check the craft inputs and return their rarities.

        Raises:
            InvalidCraftInputError: wrong count, duplicates, unknown or
                non-blooming items
        """
        ids = list(item_ids)
        if len(ids) != self._input_count:
            raise InvalidCraftInputError(
                f"Exactly {self._input_count} items are required, got {len(ids)}"
            )
        if len(set(ids)) != len(ids):
            raise InvalidCraftInputError("Items must be distinct")

        rarities = []
        for item_id in ids:
            if not self._inventory.contains(item_id):
                raise InvalidCraftInputError(f"Item '{item_id}' is not in the inventory")
            item = self._inventory.get(item_id)
            if not item.is_blooming:
                raise InvalidCraftInputError(f"Item '{item_id}' is not blooming")
            rarities.append(self._inventory.rarity_of(item))
        return rarities

    def craft(self, item_ids: Sequence[str], roll: Optional[float] = None) -> CraftResult:
        """
        Burn the given items and credit one seed.

        Args:
            item_ids: Exactly five distinct blooming item ids
            roll: Forced roll in ``[0, 100)``; drawn from the rng when omitted
        """
        rarities = self.validate_inputs(item_ids)
        if roll is None:
            roll = self.draw()
        elif not 0 <= roll < 100:
            raise InvalidCraftInputError(f"Roll must be in [0, 100), got {roll}")

        dominant, count = dominant_rarity(rarities)
        outcome = roll_outcome(rarities, roll, self._odds)

        self._inventory.remove_many(item_ids, persist=False)
        self._ledger.credit(seed_resource(outcome.label), 1, reason="craft")
        self._store.save_many({
            self._inventory.STORAGE_KEY: self._inventory.to_record(),
            self._ledger.STORAGE_KEY: self._ledger.to_record(),
        })

        result = CraftResult(
            rarity=outcome,
            dominant=dominant,
            dominant_count=count,
            roll=roll,
            consumed=list(item_ids),
        )
        self.log_operation(
            "craft",
            outcome=outcome.label,
            dominant=dominant.label,
            dominant_count=count,
            roll=round(roll, 4),
        )
        self.emit_event(EVENT_CRAFTED, result.to_dict())
        return result
