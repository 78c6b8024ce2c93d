"""
Leaderboard Service
===================

Purpose
-------
Ranks the player against a fixed pool of synthetic opponents in three
categories:

- ``bloomed``: blooming items in the inventory
- ``legendary``: legendary seed balance
- ``streak``: current daily streak

Top places are spend-gated (see ``ranking.rank_entries``). Results are
persisted to ``seedRankings``, ``legendaryRankings`` and ``streakRankings``;
the player's display name lives under ``rankingProfile``.

Rankings are recomputed when an event that can move the player's score,
spend, level or name is published, and only if one of those inputs
actually changed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from manifest_garden.core.event.types import ListenerPriority
from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.ranking import PLAYER_ENTRY_ID, RankingEntry
from manifest_garden.modules.leaderboard.opponents import (
    CATEGORIES,
    DEFAULT_BANDS,
    DEFAULT_SCORES,
    generate_opponents,
)
from manifest_garden.modules.leaderboard.ranking import (
    DEFAULT_THRESHOLDS,
    SENTINEL_RANK,
    rank_entries,
)
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import (
    EVENT_CREDITED,
    EVENT_DEBITED,
    EVENT_ITEM_ADDED,
    EVENT_ITEM_REMOVED,
    EVENT_LEVELED_UP,
    EVENT_RANKINGS_UPDATED,
    EVENT_SPEND_RECORDED,
    EVENT_STREAK_ADVANCED,
    EVENT_USERNAME_CHANGED,
    KEY_RANKING_OPPONENTS,
    KEY_RANKING_PROFILE,
    RANKING_KEYS,
)
from manifest_garden.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.inventory.service import InventoryService
    from manifest_garden.modules.ledger.service import LedgerService
    from manifest_garden.modules.progression.service import ProgressionService

logger = get_logger(__name__)

_WATCHED_EVENTS = (
    EVENT_ITEM_ADDED,
    EVENT_ITEM_REMOVED,
    EVENT_CREDITED,
    EVENT_DEBITED,
    EVENT_SPEND_RECORDED,
    EVENT_STREAK_ADVANCED,
    EVENT_LEVELED_UP,
)


class LeaderboardService(BaseService):
    """
    Spend-gated leaderboards.

    Public Methods
    --------------
    - rankings() -> Ranked list for a category
    - player_rank() -> The player's rank in a category
    - recalculate() -> Recompute every category now
    - set_username() -> Change the player's display name
    """

    STORAGE_KEY = KEY_RANKING_PROFILE

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

        profile = self.load_record(default={}) or {}
        self._username: str = profile.get("username") or self.get_config(
            "leaderboard.default_username", "You"
        )
        self._opponents = self._load_opponents()
        self._rankings: Dict[str, List[RankingEntry]] = {}
        self._last_inputs: Optional[Tuple[Any, ...]] = None

        for category in CATEGORIES:
            saved = self._store.load(RANKING_KEYS[category], default=None)
            if saved:
                self._rankings[category] = [RankingEntry.from_dict(row) for row in saved]

    # ========================================================================
    # SETUP
    # ========================================================================

    def _load_opponents(self) -> List[Dict[str, Any]]:
        saved = self._store.load(KEY_RANKING_OPPONENTS, default=None)
        if saved:
            return list(saved)

        cfg = self.get_config("leaderboard.opponents", {}) or {}
        pool = generate_opponents(
            names=list(cfg.get("names") or []),
            seed=int(cfg.get("seed", 0)),
            bands=cfg.get("bands") or DEFAULT_BANDS,
            scores=cfg.get("scores") or DEFAULT_SCORES,
        )
        self._store.save(KEY_RANKING_OPPONENTS, pool)
        self.log_operation("generate_opponents", count=len(pool))
        return pool

    def start(self) -> None:
        """Recompute after any event that can move the player's standing."""
        for event_name in _WATCHED_EVENTS:
            self._events.subscribe(
                event_name,
                self._on_player_changed,
                priority=ListenerPriority.NORMAL,
                identifier=f"leaderboard:{event_name}",
            )
        self.recalculate()

    def _on_player_changed(self, payload: Dict[str, Any]) -> None:
        self.recalculate()

    # ========================================================================
    # PROFILE
    # ========================================================================

    @property
    def username(self) -> str:
        return self._username

    def to_record(self) -> Dict[str, Any]:
        return {"username": self._username}

    def set_username(self, username: str) -> str:
        """
        Change the player's display name.

        Raises:
            ValidationError: empty or too long
        """
        name = (username or "").strip()
        max_length = int(self.get_config("leaderboard.max_username_length", 24))
        if not name:
            raise ValidationError("username", "Username cannot be empty")
        if len(name) > max_length:
            raise ValidationError("username", f"Username must be at most {max_length} characters")

        self._username = name
        self.persist()
        self.log_operation("set_username", username=name)
        self.emit_event(EVENT_USERNAME_CHANGED, {"username": name})
        self.recalculate()
        return name

    # ========================================================================
    # RANKING
    # ========================================================================

    def player_score(self, category: str) -> int:
        if category == "bloomed":
            return self._inventory.bloomed_count()
        if category == "legendary":
            return self._ledger.balance("seeds_legendary")
        if category == "streak":
            return self._progression.streak
        raise ValidationError("category", f"Unknown leaderboard category '{category}'")

    def _player_inputs(self) -> Tuple[Any, ...]:
        return (
            self._username,
            self._ledger.total_spent,
            self._progression.level,
            tuple(self.player_score(c) for c in CATEGORIES),
        )

    def _candidates(self, category: str) -> List[RankingEntry]:
        candidates = [
            RankingEntry.from_dict({
                "id": f"{category}_{opponent['index']}",
                "username": opponent["username"],
                "score": opponent["scores"][category],
                "totalSpent": opponent["totalSpent"],
                "level": opponent["level"],
            })
            for opponent in self._opponents
        ]
        candidates.append(RankingEntry(
            id=PLAYER_ENTRY_ID,
            username=self._username,
            score=self.player_score(category),
            total_spent=self._ledger.total_spent,
            level=self._progression.level,
        ))
        return candidates

    def recalculate(self, force: bool = False) -> Dict[str, List[RankingEntry]]:
        """Recompute every category if the player's inputs changed."""
        inputs = self._player_inputs()
        if not force and inputs == self._last_inputs and self._rankings:
            return dict(self._rankings)

        thresholds = self.get_config("leaderboard.rank_thresholds") or DEFAULT_THRESHOLDS
        sentinel = int(self.get_config("leaderboard.sentinel_rank", SENTINEL_RANK))
        for category in CATEGORIES:
            self._rankings[category] = rank_entries(self._candidates(category), thresholds, sentinel)

        self._last_inputs = inputs
        self._store.save_many({
            RANKING_KEYS[category]: [entry.to_dict() for entry in self._rankings[category]]
            for category in CATEGORIES
        })

        ranks = {category: self.player_rank(category) for category in CATEGORIES}
        self.log.debug("Leaderboards recalculated", extra={"player_ranks": ranks})
        self.emit_event(EVENT_RANKINGS_UPDATED, {"player_ranks": ranks})
        return dict(self._rankings)

    def rankings(self, category: str) -> List[RankingEntry]:
        if category not in CATEGORIES:
            raise ValidationError("category", f"Unknown leaderboard category '{category}'")
        if category not in self._rankings:
            self.recalculate(force=True)
        return list(self._rankings[category])

    def player_rank(self, category: str) -> int:
        for entry in self._rankings.get(category) or self.rankings(category):
            if entry.is_player:
                return entry.rank
        raise ValidationError("category", f"Player missing from '{category}' rankings")
