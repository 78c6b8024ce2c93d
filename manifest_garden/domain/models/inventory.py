"""
Inventory domain model: rarities, growth stages, categories and the
harvested `InventoryItem` value object.

Rarity is never stored on an item. It is derived from the item's color tag
through a lookup table, so rebalancing the table re-rates every item.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional

from manifest_garden.domain.models.base import DomainValidationError, validate_not_empty


class Rarity(IntEnum):
    """Ordered rarity tiers: ``COMMON < RARE < EPIC < LEGENDARY``."""

    COMMON = 0
    RARE = 1
    EPIC = 2
    LEGENDARY = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_string(cls, value: str) -> "Rarity":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise DomainValidationError(f"Unknown rarity '{value}'", field="rarity")


class GrowthStage(Enum):
    """Growth stages of a plant; harvested items keep the stage they had."""

    SEED = "seed"
    SPROUT = "sprout"
    GROWING = "growing"
    BLOOMING = "blooming"

    @property
    def order(self) -> int:
        return _STAGE_ORDER[self]

    def at_least(self, other: "GrowthStage") -> bool:
        return self.order >= other.order

    @classmethod
    def from_growth(cls, growth: int) -> "GrowthStage":
        """Derive the stage from a 0..100 growth value."""
        if growth >= STAGE_THRESHOLDS[cls.BLOOMING]:
            return cls.BLOOMING
        if growth >= STAGE_THRESHOLDS[cls.GROWING]:
            return cls.GROWING
        if growth >= STAGE_THRESHOLDS[cls.SPROUT]:
            return cls.SPROUT
        return cls.SEED


_STAGE_ORDER = {
    GrowthStage.SEED: 0,
    GrowthStage.SPROUT: 1,
    GrowthStage.GROWING: 2,
    GrowthStage.BLOOMING: 3,
}

# Minimum growth for each stage
STAGE_THRESHOLDS = {
    GrowthStage.SEED: 0,
    GrowthStage.SPROUT: 50,
    GrowthStage.GROWING: 75,
    GrowthStage.BLOOMING: 100,
}

MAX_GROWTH = STAGE_THRESHOLDS[GrowthStage.BLOOMING]


class Category(Enum):
    """Intention categories a manifestation can be planted under."""

    ABUNDANCE = "abundance"
    LOVE = "love"
    HEALTH = "health"
    SUCCESS = "success"
    PEACE = "peace"

    @classmethod
    def from_string(cls, value: str) -> "Category":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise DomainValidationError(f"Unknown category '{value}'", field="category")


DEFAULT_RARITY_COLORS: Dict[str, Rarity] = {
    "#90EE90": Rarity.COMMON,
    "#4169E1": Rarity.RARE,
    "#9370DB": Rarity.EPIC,
    "#FFD700": Rarity.LEGENDARY,
}

DEFAULT_CATEGORY_COLORS: Dict[Category, str] = {
    Category.ABUNDANCE: "#FFD700",
    Category.LOVE: "#FF69B4",
    Category.HEALTH: "#00CED1",
    Category.SUCCESS: "#9370DB",
    Category.PEACE: "#98FB98",
}


def build_color_lookup(rarity_colors: Mapping[str, str]) -> Dict[str, Rarity]:
    """
    Turn a ``{rarity_name: color}`` config mapping into a color lookup.

    Colors are normalized to upper case so matching is case-insensitive.
    """
    return {
        color.strip().upper(): Rarity.from_string(name)
        for name, color in rarity_colors.items()
    }


def rarity_for_color(color: str, lookup: Optional[Mapping[str, Rarity]] = None) -> Rarity:
    """Map a color tag to its rarity; unmapped colors are common."""
    table = lookup if lookup is not None else DEFAULT_RARITY_COLORS
    return table.get((color or "").strip().upper(), Rarity.COMMON)


def color_for_rarity(rarity: Rarity, lookup: Optional[Mapping[str, Rarity]] = None) -> str:
    table = lookup if lookup is not None else DEFAULT_RARITY_COLORS
    for color, mapped in table.items():
        if mapped is rarity:
            return color
    raise DomainValidationError(f"No color mapped to {rarity.label}", field="rarity")


@dataclass(frozen=True)
class InventoryItem:
    """
    A harvested manifestation held in the inventory.

    Attributes
    ----------
    id : str
        Unique item id
    intention : str
        The intention text of the harvested plant
    category : Category
        Intention category
    color : str
        Color tag; encodes rarity
    stage : GrowthStage
        Stage at harvest time (sprout or later)
    collected_at_ms : int
        Harvest time in epoch milliseconds
    """

    id: str
    intention: str
    category: Category
    color: str
    stage: GrowthStage
    collected_at_ms: int

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        if not self.stage.at_least(GrowthStage.SPROUT):
            raise DomainValidationError(
                f"Inventory items must be sprout or later, got {self.stage.value}",
                field="stage",
            )

    @property
    def is_blooming(self) -> bool:
        return self.stage is GrowthStage.BLOOMING

    def rarity(self, lookup: Optional[Mapping[str, Rarity]] = None) -> Rarity:
        return rarity_for_color(self.color, lookup)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "intention": self.intention,
            "category": self.category.value,
            "color": self.color,
            "stage": self.stage.value,
            "collectedAt": self.collected_at_ms,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InventoryItem":
        return cls(
            id=str(data["id"]),
            intention=data.get("intention", ""),
            category=Category.from_string(data["category"]),
            color=data["color"],
            stage=GrowthStage(data["stage"]),
            collected_at_ms=int(data.get("collectedAt", 0)),
        )
