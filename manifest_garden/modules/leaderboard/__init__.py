"""
Leaderboard Module
==================

Domain: spend-gated rankings against a synthetic opponent pool

Services:
- LeaderboardService: bloomed / legendary / streak categories
"""

from .opponents import generate_opponents
from .ranking import rank_entries
from .service import LeaderboardService

__all__ = [
    "LeaderboardService",
    "generate_opponents",
    "rank_entries",
]
