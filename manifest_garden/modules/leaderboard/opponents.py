"""
Synthetic opponent pool for the leaderboards.

Twenty named opponents are generated once from a seeded RNG and persisted,
so every category ranks the player against the same stable field. Spend and
level come from bands keyed by pool index (the first three opponents are
big spenders who clear the top-rank gates); category scores grow with
spend.
"""

from __future__ import annotations

import random
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence

CATEGORIES = ("bloomed", "legendary", "streak")

DEFAULT_BANDS: Sequence[Sequence[int]] = (
    (0, 700, 100, 45, 10),
    (1, 500, 100, 38, 7),
    (2, 300, 100, 30, 8),
    (3, 100, 300, 20, 10),
    (10, 0, 100, 5, 15),
)

DEFAULT_SCORES: Mapping[str, Mapping[str, int]] = {
    "bloomed": {"range": 100, "base": 20, "spend_divisor": 5},
    "legendary": {"range": 20, "base": 5, "spend_divisor": 50},
    "streak": {"range": 80, "base": 10, "spend_divisor": 10},
}


def _band_for(index: int, bands: Sequence[Sequence[int]]) -> Sequence[int]:
    chosen = bands[0]
    for band in bands:
        if index >= band[0]:
            chosen = band
    return chosen


def generate_opponents(
    names: Sequence[str],
    seed: int,
    bands: Sequence[Sequence[int]] = DEFAULT_BANDS,
    scores: Mapping[str, Mapping[str, int]] = DEFAULT_SCORES,
) -> List[Dict[str, Any]]:
    """
    Build the opponent pool.

    Each record: ``{"index", "username", "totalSpent", "level", "scores",
    "longestStreak"}``; ``totalSpent`` is a string so it round-trips as a
    Decimal.
    """
    rng = random.Random(seed)
    pool: List[Dict[str, Any]] = []
    for index, name in enumerate(names):
        _, spend_base, spend_range, level_base, level_range = _band_for(index, bands)
        total_spent = spend_base + rng.randrange(spend_range)
        level = level_base + rng.randrange(level_range)

        category_scores = {}
        for category in CATEGORIES:
            cfg = scores[category]
            category_scores[category] = (
                rng.randrange(int(cfg["range"]))
                + int(cfg["base"])
                + total_spent // int(cfg["spend_divisor"])
            )
        longest_streak = category_scores["streak"] + rng.randrange(50)

        pool.append({
            "index": index,
            "username": name,
            "totalSpent": str(Decimal(total_spent)),
            "level": level,
            "scores": category_scores,
            "longestStreak": longest_streak,
        })
    return pool
