"""
Garden Service
==============

Purpose
-------
The manifestation lifecycle: plant an intention, nurture it with energy
until it blooms (or skip ahead with a growth booster), then harvest it into
the inventory. Sharing a manifestation with the community is also recorded
here because it counts toward quests and achievements.

Domain
------
- Planting needs a free slot (``len(garden) < max_plant_slots``); planting
  from a seed debits one seed of that rarity and tags the plant with the
  rarity's color, otherwise the category color is used
- Nurturing costs 1 energy, adds 10 growth (15 for premium players),
  advances the combo and awards ``floor(10 * multiplier)`` XP
- Harvesting at sprout or later creates an inventory item and awards
  ``floor(25 * multiplier)`` XP; earlier harvests just clear the slot, award
  nothing and publish ``garden.removed`` instead of ``garden.harvested``
- Every precondition is checked before the first mutation

Events
------
- ``garden.planted``: {id, category, color, rarity, seed_rarity}
- ``garden.nurtured``: {id, growth, stage, category}
- ``garden.bloomed``: {id, category, color, rarity}
- ``garden.harvested``: {id, stage, category, color, rarity, item_id}
- ``garden.removed``: {id, stage}
- ``community.shared``: {id, category}
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.base import DomainValidationError
from manifest_garden.domain.models.inventory import (
    DEFAULT_CATEGORY_COLORS,
    Category,
    Rarity,
    color_for_rarity,
)
from manifest_garden.domain.models.manifestation import Manifestation
from manifest_garden.modules.shared import formulas
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import (
    ENERGY,
    EVENT_HARVESTED,
    EVENT_NURTURED,
    EVENT_PLANT_REMOVED,
    EVENT_PLANTED,
    EVENT_SHARED,
    GROWTH_BOOSTERS,
    KEY_GARDEN,
    seed_resource,
)
from manifest_garden.modules.shared.exceptions import (
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.inventory.service import InventoryService
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService

logger = get_logger(__name__)


class GardenService(BaseService):
    """
    Plant, nurture, boost, harvest and remove manifestations.

    Public Methods
    --------------
    - plant() -> New manifestation in a free slot
    - nurture() -> Spend energy to grow a plant
    - use_growth_booster() -> Spend a booster to bloom a plant at once
    - harvest() -> Move a plant into the inventory
    - remove() -> Delete a plant without harvesting
    - share() -> Record a community share
    """

    STORAGE_KEY = KEY_GARDEN

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        ledger: LedgerService,
        progression: ProgressionService,
        inventory: InventoryService,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)
        self._ledger = ledger
        self._progression = progression
        self._inventory = inventory

        configured = self.get_config("garden.category_colors") or {}
        self._category_colors: Dict[Category, str] = dict(DEFAULT_CATEGORY_COLORS)
        for name, color in configured.items():
            self._category_colors[Category.from_string(name)] = color

        self._plants: Dict[str, Manifestation] = {}
        for data in self.load_record(default=[]) or []:
            try:
                plant = Manifestation.from_dict(data)
            except (DomainValidationError, KeyError, ValueError) as e:
                self.log.warning(
                    "Skipping unreadable manifestation",
                    extra={"manifestation": data, "error": str(e)},
                )
                continue
            self._plants[plant.id] = plant

    def to_record(self) -> List[Dict[str, Any]]:
        return [plant.to_dict() for plant in self._plants.values()]

    # ========================================================================
    # QUERIES
    # ========================================================================

    def manifestations(self) -> List[Manifestation]:
        return list(self._plants.values())

    def get(self, manifestation_id: str) -> Manifestation:
        try:
            return self._plants[manifestation_id]
        except KeyError:
            raise NotFoundError("Manifestation", manifestation_id)

    @property
    def free_slots(self) -> int:
        return max(0, self._progression.max_plant_slots - len(self._plants))

    def rarity_of(self, plant: Manifestation) -> Rarity:
        return self._inventory.color_lookup.get(plant.color.strip().upper(), Rarity.COMMON)

    # ========================================================================
    # PLANT
    # ========================================================================

    def plant(
        self,
        intention: str,
        category: str,
        seed_rarity: Optional[str] = None,
    ) -> Manifestation:
        """
        Plant a new manifestation.

        Raises:
            ValidationError: empty intention, unknown category or rarity
            InvalidOperationError: no free plant slot
            InsufficientResourcesError: planting from a seed the player lacks
        """
        intention = (intention or "").strip()
        if not intention:
            raise ValidationError("intention", "Intention cannot be empty")
        try:
            parsed_category = Category.from_string(category)
            rarity = Rarity.from_string(seed_rarity) if seed_rarity else None
        except DomainValidationError as e:
            raise ValidationError(e.field or "category", str(e)) from e

        if self.free_slots <= 0:
            raise InvalidOperationError(
                "plant", f"All {self._progression.max_plant_slots} plant slots are in use"
            )

        if rarity is not None:
            resource = seed_resource(rarity.label)
            if not self._ledger.has_sufficient(resource, 1):
                raise InsufficientResourcesError(resource, 1, self._ledger.balance(resource))
            color = color_for_rarity(rarity, self._inventory.color_lookup)
        else:
            color = self._category_colors[parsed_category]

        plant = Manifestation.plant(
            uuid.uuid4().hex,
            intention,
            parsed_category,
            color,
            now_ms=self._clock.now_ms(),
        )

        if rarity is not None:
            self._ledger.debit(seed_resource(rarity.label), 1, reason="plant")
        self._plants[plant.id] = plant
        self.persist()

        self.log_operation("plant", manifestation_id=plant.id, category=parsed_category.value)
        self.emit_event(EVENT_PLANTED, {
            "id": plant.id,
            "category": parsed_category.value,
            "color": plant.color,
            "rarity": self.rarity_of(plant).label,
            "seed_rarity": rarity.label if rarity else None,
        })
        return plant

    # ========================================================================
    # GROW
    # ========================================================================

    def nurture(self, manifestation_id: str) -> Dict[str, Any]:
        """
        Spend energy to grow a plant.

        Returns:
            {"id", "growth", "stage", "bloomed", "xp", "combo"}

        Raises:
            NotFoundError: unknown manifestation
            InvalidOperationError: plant already blooming
            InsufficientResourcesError: not enough energy
        """
        plant = self.get(manifestation_id)
        if plant.is_blooming:
            raise InvalidOperationError("nurture", "Manifestation is already blooming")

        cfg = self.get_config("garden.nurture", {}) or {}
        cost = int(cfg.get("energy_cost", 1))
        growth_key = "growth_premium" if self._ledger.is_premium else "growth"
        growth = int(cfg.get(growth_key, 15 if self._ledger.is_premium else 10))

        self._ledger.debit(ENERGY, cost, reason="nurture")
        plant.nurture(growth, self._clock.now_ms())
        self.persist()

        combo = self._progression.increment_combo()
        xp = formulas.scaled_xp(int(cfg.get("base_xp", 10)), combo["multiplier"])
        self._progression.add_xp(xp)

        self.log_operation(
            "nurture",
            manifestation_id=plant.id,
            growth=plant.growth,
            stage=plant.stage.value,
            xp=xp,
        )
        self.emit_event(EVENT_NURTURED, {
            "id": plant.id,
            "growth": plant.growth,
            "stage": plant.stage.value,
            "category": plant.category.value,
        })
        bloomed = self._publish_domain_events(plant)

        return {
            "id": plant.id,
            "growth": plant.growth,
            "stage": plant.stage.value,
            "bloomed": bloomed,
            "xp": xp,
            "combo": combo,
        }

    def use_growth_booster(self, manifestation_id: str) -> Manifestation:
        """
        Spend one growth booster to bring a plant to full bloom.

        Raises:
            NotFoundError: unknown manifestation
            InvalidOperationError: plant already blooming
            InsufficientResourcesError: no growth boosters
        """
        plant = self.get(manifestation_id)
        if plant.is_blooming:
            raise InvalidOperationError("use_growth_booster", "Manifestation is already blooming")

        self._ledger.debit(GROWTH_BOOSTERS, 1, reason="growth_booster")
        plant.bring_to_bloom(self._clock.now_ms())
        self.persist()

        self.log_operation("use_growth_booster", manifestation_id=plant.id)
        self._publish_domain_events(plant)
        return plant

    def _publish_domain_events(self, plant: Manifestation) -> bool:
        """Publish the plant's pending domain events; True if it bloomed."""
        bloomed = False
        for event in plant.clear_domain_events():
            payload = dict(event.payload)
            payload["rarity"] = self.rarity_of(plant).label
            bloomed = bloomed or event.event_name.endswith(".bloomed")
            self.emit_event(event.event_name, payload)
        return bloomed

    # ========================================================================
    # HARVEST / REMOVE
    # ========================================================================

    def harvest(self, manifestation_id: str) -> Dict[str, Any]:
        """
        Remove a plant from the garden; at sprout or later it becomes an
        inventory item.

        Returns:
            {"id", "stage", "item", "xp"}
        """
        plant = self.get(manifestation_id)
        now_ms = self._clock.now_ms()

        if not plant.can_harvest():
            self.remove(plant.id)
            return {"id": plant.id, "stage": plant.stage.value, "item": None, "xp": 0}

        item = plant.to_inventory_item(self._inventory.new_item_id(), now_ms)
        del self._plants[plant.id]
        self.persist()
        self._inventory.add(item)

        xp = formulas.scaled_xp(
            int(self.get_config("garden.harvest.base_xp", 25)),
            self._progression.active_multiplier(),
        )
        self._progression.add_xp(xp)

        self.log_operation(
            "harvest",
            manifestation_id=plant.id,
            stage=plant.stage.value,
            item_id=item.id,
            xp=xp,
        )
        self.emit_event(EVENT_HARVESTED, {
            "id": plant.id,
            "stage": plant.stage.value,
            "category": plant.category.value,
            "color": plant.color,
            "rarity": self.rarity_of(plant).label,
            "item_id": item.id,
        })
        return {"id": plant.id, "stage": plant.stage.value, "item": item, "xp": xp}

    def remove(self, manifestation_id: str) -> Manifestation:
        """Delete a plant without harvesting it. Nothing is refunded."""
        plant = self.get(manifestation_id)
        del self._plants[plant.id]
        self.persist()

        self.log_operation("remove", manifestation_id=plant.id)
        self.emit_event(EVENT_PLANT_REMOVED, {"id": plant.id, "stage": plant.stage.value})
        return plant

    # ========================================================================
    # COMMUNITY
    # ========================================================================

    def share(self, manifestation_id: str) -> Dict[str, Any]:
        """
        Record that a garden plant or inventory item was shared.

        Raises:
            NotFoundError: the id is in neither the garden nor the inventory
        """
        if manifestation_id in self._plants:
            category = self._plants[manifestation_id].category.value
        elif self._inventory.contains(manifestation_id):
            category = self._inventory.get(manifestation_id).category.value
        else:
            raise NotFoundError("Manifestation", manifestation_id)

        self.log_operation("share", manifestation_id=manifestation_id)
        payload = {"id": manifestation_id, "category": category}
        self.emit_event(EVENT_SHARED, payload)
        return payload
