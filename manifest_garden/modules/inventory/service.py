"""
Inventory Service
=================

Harvested manifestations waiting to be crafted or kept as a collection.
Rarity is derived from each item's color through the configured
``crafting.rarity_colors`` lookup.

Events
------
- ``inventory.added``: {id, category, stage, rarity}
- ``inventory.removed``: {ids}
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import TYPE_CHECKING, Any, Dict, Iterable, List

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.base import DomainValidationError
from manifest_garden.domain.models.inventory import (
    DEFAULT_RARITY_COLORS,
    Category,
    GrowthStage,
    InventoryItem,
    Rarity,
    build_color_lookup,
)
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import (
    EVENT_ITEM_ADDED,
    EVENT_ITEM_REMOVED,
    KEY_INVENTORY,
)
from manifest_garden.modules.shared.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore

logger = get_logger(__name__)


class InventoryService(BaseService):
    """Ordered collection of harvested items."""

    STORAGE_KEY = KEY_INVENTORY

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)

        colors = self.get_config("crafting.rarity_colors")
        self._color_lookup: Dict[str, Rarity] = (
            build_color_lookup(colors) if colors else dict(DEFAULT_RARITY_COLORS)
        )
        self._items: Dict[str, InventoryItem] = {}

        for data in self.load_record(default=[]) or []:
            try:
                item = InventoryItem.from_dict(data)
            except (DomainValidationError, KeyError) as e:
                self.log.warning(
                    "Skipping unreadable inventory item",
                    extra={"item": data, "error": str(e)},
                )
                continue
            self._items[item.id] = item

    @property
    def color_lookup(self) -> Dict[str, Rarity]:
        return dict(self._color_lookup)

    def to_record(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self._items.values()]

    # ========================================================================
    # QUERIES
    # ========================================================================

    def items(self) -> List[InventoryItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> InventoryItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError("InventoryItem", item_id)

    def contains(self, item_id: str) -> bool:
        return item_id in self._items

    def rarity_of(self, item: InventoryItem) -> Rarity:
        return item.rarity(self._color_lookup)

    def by_stage(self) -> Dict[str, List[InventoryItem]]:
        grouped: Dict[str, List[InventoryItem]] = {
            stage.value: [] for stage in GrowthStage if stage.at_least(GrowthStage.SPROUT)
        }
        for item in self._items.values():
            grouped[item.stage.value].append(item)
        return grouped

    def by_category(self) -> Dict[str, List[InventoryItem]]:
        grouped: Dict[str, List[InventoryItem]] = {c.value: [] for c in Category}
        for item in self._items.values():
            grouped[item.category.value].append(item)
        return grouped

    def bloomed_count(self) -> int:
        return sum(1 for item in self._items.values() if item.is_blooming)

    def rarity_counts(self) -> Dict[str, int]:
        counts = Counter(self.rarity_of(item).label for item in self._items.values())
        return {r.label: counts.get(r.label, 0) for r in Rarity}

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    @staticmethod
    def new_item_id() -> str:
        return uuid.uuid4().hex

    def add(self, item: InventoryItem) -> InventoryItem:
        if item.id in self._items:
            raise ValidationError("id", f"Inventory item '{item.id}' already exists")

        self._items[item.id] = item
        self.persist()

        self.log_operation("add_item", item_id=item.id, stage=item.stage.value)
        self.emit_event(EVENT_ITEM_ADDED, {
            "id": item.id,
            "category": item.category.value,
            "stage": item.stage.value,
            "rarity": self.rarity_of(item).label,
        })
        return item

    def remove(self, item_id: str) -> InventoryItem:
        return self.remove_many([item_id])[0]

    def remove_many(self, item_ids: Iterable[str], *, persist: bool = True) -> List[InventoryItem]:
        """
        Remove several items. Every id is checked before anything is removed.

        Raises:
            NotFoundError: an id is not in the inventory
        """
        ids = list(item_ids)
        missing = [item_id for item_id in ids if item_id not in self._items]
        if missing:
            raise NotFoundError("InventoryItem", missing[0])

        removed = [self._items.pop(item_id) for item_id in dict.fromkeys(ids)]
        if persist:
            self.persist()

        self.log_operation("remove_items", item_ids=ids)
        self.emit_event(EVENT_ITEM_REMOVED, {"ids": [item.id for item in removed]})
        return removed

