"""
Garden Domain Constants

Purpose
-------
Names shared across services: ledger resources, storage keys and event
names. Tunable numbers (prices, odds, thresholds, curves) live in the YAML
files loaded by ConfigManager, not here.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- Grouped by concern
- No side effects at import time
"""

from __future__ import annotations

from typing import Final, Tuple

# ============================================================================
# LEDGER RESOURCES
# ============================================================================

GEMS: Final[str] = "gems"
ENERGY: Final[str] = "energy"
SPECIAL_SEEDS: Final[str] = "special_seeds"
GROWTH_BOOSTERS: Final[str] = "growth_boosters"
ENERGY_BOOSTS: Final[str] = "energy_boosts"

SEED_PREFIX: Final[str] = "seeds_"


def seed_resource(rarity_label: str) -> str:
    """Ledger resource name for one rarity's seed balance (``seeds_rare``)."""
    return f"{SEED_PREFIX}{rarity_label}"


SEED_RESOURCES: Final[Tuple[str, ...]] = (
    "seeds_common",
    "seeds_rare",
    "seeds_epic",
    "seeds_legendary",
)

RESOURCES: Final[Tuple[str, ...]] = (
    GEMS,
    ENERGY,
    SPECIAL_SEEDS,
    GROWTH_BOOSTERS,
    ENERGY_BOOSTS,
) + SEED_RESOURCES

# ============================================================================
# STORAGE KEYS
# ============================================================================

KEY_LEDGER: Final[str] = "ledger"
KEY_PROGRESSION: Final[str] = "progression"
KEY_INVENTORY: Final[str] = "inventory"
KEY_GARDEN: Final[str] = "garden"
KEY_ACHIEVEMENTS: Final[str] = "achievements"
KEY_QUESTS: Final[str] = "quests"
KEY_MILESTONES: Final[str] = "milestones"
KEY_CHALLENGES: Final[str] = "challenges"
KEY_PURCHASES: Final[str] = "purchases"
KEY_RANKING_PROFILE: Final[str] = "rankingProfile"
KEY_RANKING_OPPONENTS: Final[str] = "rankingOpponents"

RANKING_KEYS: Final[dict] = {
    "bloomed": "seedRankings",
    "legendary": "legendaryRankings",
    "streak": "streakRankings",
}

# ============================================================================
# EVENTS
# ============================================================================

EVENT_CREDITED: Final[str] = "ledger.credited"
EVENT_DEBITED: Final[str] = "ledger.debited"
EVENT_SPEND_RECORDED: Final[str] = "ledger.spend_recorded"
EVENT_ENERGY_CONSUMED: Final[str] = "energy.consumed"
EVENT_PREMIUM_ACTIVATED: Final[str] = "player.premium_activated"

EVENT_XP_GAINED: Final[str] = "player.xp_gained"
EVENT_LEVELED_UP: Final[str] = "player.leveled_up"
EVENT_COMBO_ADVANCED: Final[str] = "player.combo_advanced"
EVENT_CHECKED_IN: Final[str] = "player.checked_in"
EVENT_STREAK_ADVANCED: Final[str] = "player.streak_advanced"

EVENT_PLANTED: Final[str] = "garden.planted"
EVENT_NURTURED: Final[str] = "garden.nurtured"
EVENT_BLOOMED: Final[str] = "garden.bloomed"
EVENT_HARVESTED: Final[str] = "garden.harvested"
EVENT_PLANT_REMOVED: Final[str] = "garden.removed"
EVENT_SHARED: Final[str] = "community.shared"

EVENT_ITEM_ADDED: Final[str] = "inventory.added"
EVENT_ITEM_REMOVED: Final[str] = "inventory.removed"
EVENT_CRAFTED: Final[str] = "inventory.crafted"

EVENT_PURCHASE_CONFIRMED: Final[str] = "purchase.confirmed"
EVENT_USERNAME_CHANGED: Final[str] = "leaderboard.username_changed"
EVENT_RANKINGS_UPDATED: Final[str] = "leaderboard.updated"
