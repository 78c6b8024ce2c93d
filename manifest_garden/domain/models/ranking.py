"""Leaderboard row value object."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

PLAYER_ENTRY_ID = "user"


@dataclass(frozen=True)
class RankingEntry:
    """
    One row in a leaderboard category.

    ``rank`` is assigned by the leaderboard service; entries built from raw
    scores carry ``rank=None`` until ranked.
    """

    id: str
    username: str
    score: int
    total_spent: Decimal
    level: int = 1
    rank: Optional[int] = None

    @property
    def is_player(self) -> bool:
        return self.id == PLAYER_ENTRY_ID

    def with_rank(self, rank: int) -> "RankingEntry":
        return replace(self, rank=rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "score": self.score,
            "totalSpent": str(self.total_spent),
            "level": self.level,
            "rank": self.rank,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RankingEntry":
        return cls(
            id=str(data["id"]),
            username=data.get("username", ""),
            score=int(data.get("score", 0)),
            total_spent=Decimal(str(data.get("totalSpent", "0"))),
            level=int(data.get("level", 1)),
            rank=data.get("rank"),
        )
