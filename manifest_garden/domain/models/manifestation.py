"""
Manifestation domain model: a plant growing in the garden.

A manifestation accumulates growth (0..100) from nurturing; its stage is
always derived from growth and never stored independently.

Usage Example
-------------
>>> plant = Manifestation.plant("m1", "I am calm", Category.PEACE, "#98FB98", now_ms=0)
>>> plant.nurture(60, now_ms=1000)
>>> plant.stage
<GrowthStage.SPROUT: 'sprout'>
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from manifest_garden.domain.models.base import (
    Entity,
    validate_non_negative,
    validate_not_empty,
    validate_range,
)
from manifest_garden.domain.models.inventory import (
    MAX_GROWTH,
    Category,
    GrowthStage,
    InventoryItem,
)


class Manifestation(Entity):
    """
    A planted intention that grows toward blooming.

    Domain events
    -------------
    - ``garden.bloomed`` when growth first reaches the blooming threshold.
    """

    def __init__(
        self,
        manifestation_id: str,
        intention: str,
        category: Category,
        color: str,
        growth: int,
        created_at_ms: int,
        last_nurtured_ms: int,
    ) -> None:
        super().__init__(manifestation_id)
        validate_not_empty(intention, "intention")
        validate_range(growth, 0, MAX_GROWTH, "growth")
        self.intention = intention
        self.category = category
        self.color = color
        self.growth = growth
        self.created_at_ms = created_at_ms
        self.last_nurtured_ms = last_nurtured_ms

    @classmethod
    def plant(
        cls,
        manifestation_id: str,
        intention: str,
        category: Category,
        color: str,
        now_ms: int,
    ) -> "Manifestation":
        return cls(manifestation_id, intention, category, color, 0, now_ms, now_ms)

    @property
    def stage(self) -> GrowthStage:
        return GrowthStage.from_growth(self.growth)

    @property
    def is_blooming(self) -> bool:
        return self.stage is GrowthStage.BLOOMING

    def nurture(self, amount: int, now_ms: int) -> GrowthStage:
        """
        Add growth, capped at full bloom, and return the new stage.

        Emits ``garden.bloomed`` on the transition into blooming.
        """
        validate_non_negative(amount, "amount")
        was_blooming = self.is_blooming
        self.growth = min(self.growth + amount, MAX_GROWTH)
        self.last_nurtured_ms = now_ms
        if self.is_blooming and not was_blooming:
            self.add_domain_event("garden.bloomed", {
                "id": self.id,
                "category": self.category.value,
                "color": self.color,
            })
        return self.stage

    def bring_to_bloom(self, now_ms: int) -> None:
        self.nurture(MAX_GROWTH - self.growth, now_ms)

    def can_harvest(self) -> bool:
        return self.stage.at_least(GrowthStage.SPROUT)

    def to_inventory_item(self, item_id: str, now_ms: int) -> InventoryItem:
        return InventoryItem(
            id=item_id,
            intention=self.intention,
            category=self.category,
            color=self.color,
            stage=self.stage,
            collected_at_ms=now_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "intention": self.intention,
            "category": self.category.value,
            "color": self.color,
            "growth": self.growth,
            "stage": self.stage.value,
            "createdAt": self.created_at_ms,
            "lastNurtured": self.last_nurtured_ms,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Manifestation":
        return cls(
            manifestation_id=str(data["id"]),
            intention=data["intention"],
            category=Category.from_string(data["category"]),
            color=data["color"],
            growth=int(data.get("growth", 0)),
            created_at_ms=int(data.get("createdAt", 0)),
            last_nurtured_ms=int(data.get("lastNurtured", 0)),
        )
