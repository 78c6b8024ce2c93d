"""
Read-only player snapshot handed to callers after every engine action.

The live state is split across the ledger and progression services; the
engine assembles a `PlayerSnapshot` from both so screens never hold a
mutable reference into service state.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PlayerSnapshot:
    """
    Immutable view of the player's economy and progression.

    Attributes
    ----------
    gems, energy, max_energy : int
        Currency balances and the current energy cap
    special_seeds, growth_boosters, energy_boosts : int
        Consumable balances
    seeds : Dict[str, int]
        Seed balance per rarity label
    level, xp, xp_to_next, max_plant_slots : int
        Progression state
    streak, longest_streak : int
        Daily check-in streaks
    last_play_date : Optional[date]
        Last check-in day in the reference timezone
    combo_count : int
    combo_multiplier : Decimal
    total_spent : Decimal
        Lifetime real-money spend
    is_premium : bool
    premium_expires_at_ms : Optional[int]
    """

    gems: int
    energy: int
    max_energy: int
    special_seeds: int
    growth_boosters: int
    energy_boosts: int
    seeds: Dict[str, int] = field(default_factory=dict)
    level: int = 1
    xp: int = 0
    xp_to_next: int = 0
    max_plant_slots: int = 7
    streak: int = 0
    longest_streak: int = 0
    last_play_date: Optional[date] = None
    combo_count: int = 0
    combo_multiplier: Decimal = Decimal("1")
    total_spent: Decimal = Decimal("0")
    is_premium: bool = False
    premium_expires_at_ms: Optional[int] = None


    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
