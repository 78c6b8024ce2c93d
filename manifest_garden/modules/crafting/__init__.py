"""Burn five blooming items into one seed."""

from .service import CraftingService, CraftResult, dominant_rarity, parse_odds, roll_outcome

__all__ = [
    "CraftingService",
    "CraftResult",
    "dominant_rarity",
    "parse_odds",
    "roll_outcome",
]
