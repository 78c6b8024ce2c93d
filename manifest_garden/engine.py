"""
Garden Engine
=============

Purpose
-------
Composition root and single entry point for the economy & progression
engine. Builds every service around one config manager, event bus, state
store and clock, wires the goal trackers and leaderboards to the bus, and
exposes the player's actions as methods that never raise domain errors.

Action contract
---------------
- Each action runs inside a ``LogContext`` tagged with the action name
- Domain exceptions are caught and returned as ``ActionResult(success=False)``
- Services validate before mutating, so a failed action leaves state as it was
- The write queue is flushed once at the end of every action; a failed write
  is logged and retried on the next mutation of the same key
- Unlocks from achievements, quests, milestones and challenges triggered by
  the action are returned in ``ActionResult.unlocks``
- Queries (``snapshot``, ``entries``, ``top_rankings``...) return plain values;
  an unknown goal kind or leaderboard category raises ``ValidationError``

Usage
-----
>>> engine = GardenEngine(backend="memory", configure_logging=False)
>>> result = engine.plant("Find a new job", "success")
>>> result.success
True
>>> engine.snapshot().max_plant_slots
7
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from manifest_garden.core.clock import GardenClock
from manifest_garden.core.config.config import Config
from manifest_garden.core.config.manager import ConfigManager
from manifest_garden.core.event.bus import EventBus
from manifest_garden.core.logging.logger import LogContext, get_logger, setup_logging
from manifest_garden.core.persistence.factory import create_gateway
from manifest_garden.core.persistence.store import StateStore
from manifest_garden.domain.models.player import PlayerSnapshot
from manifest_garden.modules.crafting import CraftingService
from manifest_garden.modules.garden import GardenService
from manifest_garden.modules.inventory import InventoryService
from manifest_garden.modules.leaderboard import LeaderboardService
from manifest_garden.modules.leaderboard.opponents import CATEGORIES
from manifest_garden.modules.ledger import LedgerService
from manifest_garden.modules.progress import (
    AchievementService,
    ChallengeService,
    MilestoneService,
    QuestService,
)
from manifest_garden.modules.progression import ProgressionService
from manifest_garden.modules.purchases import PurchaseService
from manifest_garden.modules.shared.constants import (
    ENERGY,
    ENERGY_BOOSTS,
    GEMS,
    GROWTH_BOOSTERS,
    SEED_PREFIX,
    SEED_RESOURCES,
    SPECIAL_SEEDS,
)
from manifest_garden.modules.shared.exceptions import GardenDomainException, ValidationError

if TYPE_CHECKING:
    import random

    from manifest_garden.core.persistence.gateway import PersistenceGateway
    from manifest_garden.domain.models.progress import ProgressEntry
    from manifest_garden.domain.models.ranking import RankingEntry
    from manifest_garden.modules.progress.tracker import ProgressTracker

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one engine action."""

    success: bool
    value: Any = None
    error: Optional[GardenDomainException] = None
    unlocks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def error_code(self) -> Optional[str]:
        return self.error.error_code if self.error else None


@dataclass(frozen=True)
class ReminderSnapshot:
    """Figures an external scheduler needs to decide on a reminder."""

    bloomed_count: int
    energy: int
    max_energy: int
    incomplete_quests: int
    streak: int
    streak_at_risk: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bloomed_count": self.bloomed_count,
            "energy": self.energy,
            "max_energy": self.max_energy,
            "incomplete_quests": self.incomplete_quests,
            "streak": self.streak,
            "streak_at_risk": self.streak_at_risk,
        }


class GardenEngine:
    """
    Owns every service for one player installation.

    Args:
        config_manager: Balance configuration; built from the packaged YAML
            (plus ``overrides``) when omitted
        overrides: Dot-notation balance overrides
        gateway: Byte storage; built from ``backend`` or ``Config.STORAGE_BACKEND``
            when omitted
        backend: ``memory``, ``file``, ``redis`` or ``sql``
        clock: Reference-timezone clock
        rng: Random source shared by crafting and quest selection
        configure_logging: Install the queue-backed logging handlers
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        *,
        overrides: Optional[Mapping[str, Any]] = None,
        gateway: Optional[PersistenceGateway] = None,
        backend: Optional[str] = None,
        clock: Optional[GardenClock] = None,
        rng: Optional[random.Random] = None,
        configure_logging: bool = True,
    ) -> None:
        start = time.perf_counter()
        if configure_logging:
            setup_logging()
        if gateway is None and backend is None:
            Config.validate()

        self.config = config_manager or ConfigManager(overrides=overrides)
        if config_manager is not None and overrides:
            self.config.apply_overrides(overrides)

        self.event_bus = EventBus()
        self.store = StateStore(gateway if gateway is not None else create_gateway(backend))
        self.clock = clock or GardenClock()

        deps = (self.config, self.event_bus, self.store, self.clock)
        self.ledger = LedgerService(*deps)
        self.progression = ProgressionService(*deps, self.ledger)
        self.inventory = InventoryService(*deps)
        self.garden = GardenService(*deps, self.ledger, self.progression, self.inventory)
        self.crafting = CraftingService(*deps, self.inventory, self.ledger, rng=rng)
        self.purchases = PurchaseService(*deps, self.ledger)

        self.achievements = AchievementService(*deps, self.ledger, self.progression)
        self.quests = QuestService(*deps, self.ledger, self.progression, rng=rng)
        self.milestones = MilestoneService(*deps, self.ledger, self.progression)
        self.challenges = ChallengeService(*deps, self.ledger, self.progression)
        self.leaderboard = LeaderboardService(
            *deps, self.ledger, self.progression, self.inventory
        )

        for tracker in self._trackers():
            tracker.start()
        self.leaderboard.start()
        self._flush("startup")

        logger.info(
            "Garden engine initialized",
            extra={
                "gateway": type(self.store.gateway).__name__,
                "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )

    def _trackers(self) -> List[ProgressTracker]:
        return [self.achievements, self.quests, self.milestones, self.challenges]

    # ========================================================================
    # ACTION BOUNDARY
    # ========================================================================

    def _run(self, action: str, operation: Callable[[], Any], **context: Any) -> ActionResult:
        with LogContext(action=action, component="engine", **context):
            try:
                value = operation()
            except GardenDomainException as e:
                logger.warning(
                    f"Action {action} rejected: {e.message}",
                    extra={"error_code": e.error_code, "details": e.details},
                )
                self._flush(action)
                return ActionResult(success=False, error=e, unlocks=self.drain_unlocks())

            self._flush(action)
            return ActionResult(success=True, value=value, unlocks=self.drain_unlocks())

    def _flush(self, action: str) -> None:
        failures = self.store.flush()
        if failures:
            logger.warning(
                f"{len(failures)} write group(s) unsaved after {action}",
                extra={"keys": sorted(k for f in failures for k in f.keys)},
            )

    def drain_unlocks(self) -> List[Dict[str, Any]]:
        """Unlocks recorded since the last drain, across all goal trackers."""
        unlocks: List[Dict[str, Any]] = []
        for tracker in self._trackers():
            unlocks.extend(tracker.drain_unlocks())
        return unlocks

    # ========================================================================
    # GARDEN ACTIONS
    # ========================================================================

    def plant(self, intention: str, category: str, seed_rarity: Optional[str] = None) -> ActionResult:
        return self._run(
            "plant",
            lambda: self.garden.plant(intention, category, seed_rarity),
            category=category,
        )

    def nurture(self, manifestation_id: str) -> ActionResult:
        return self._run("nurture", lambda: self.garden.nurture(manifestation_id))

    def use_growth_booster(self, manifestation_id: str) -> ActionResult:
        return self._run(
            "use_growth_booster", lambda: self.garden.use_growth_booster(manifestation_id)
        )

    def harvest(self, manifestation_id: str) -> ActionResult:
        return self._run("harvest", lambda: self.garden.harvest(manifestation_id))

    def remove(self, manifestation_id: str) -> ActionResult:
        return self._run("remove", lambda: self.garden.remove(manifestation_id))

    def share(self, manifestation_id: str) -> ActionResult:
        return self._run("share", lambda: self.garden.share(manifestation_id))

    def craft(self, item_ids: List[str], roll: Optional[float] = None) -> ActionResult:
        return self._run("craft", lambda: self.crafting.craft(item_ids, roll=roll))

    # ========================================================================
    # PLAYER ACTIONS
    # ========================================================================

    def check_in(self) -> ActionResult:
        return self._run("check_in", self.progression.check_in)

    def add_xp(self, amount: int) -> ActionResult:
        return self._run("add_xp", lambda: self.progression.add_xp(amount))

    def set_username(self, username: str) -> ActionResult:
        return self._run("set_username", lambda: self.leaderboard.set_username(username))

    # ========================================================================
    # PURCHASES
    # ========================================================================

    def on_purchase_confirmed(
        self,
        kind: str,
        amount: int,
        price_usd: Any,
        rarity: Optional[str] = None,
        duration: Optional[str] = None,
    ) -> ActionResult:
        return self._run(
            "purchase",
            lambda: self.purchases.on_purchase_confirmed(
                kind, amount, price_usd, rarity=rarity, duration=duration
            ),
            kind=kind,
        )

    def confirm_product(self, product_id: str) -> ActionResult:
        return self._run(
            "purchase",
            lambda: self.purchases.confirm_product(product_id),
            product_id=product_id,
        )

    def use_energy_boost(self) -> ActionResult:
        return self._run("use_energy_boost", self.purchases.use_energy_boost)

    def claim_free_seeds(self) -> ActionResult:
        return self._run("claim_free_seeds", self.purchases.claim_free_seeds)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def snapshot(self) -> PlayerSnapshot:
        ledger, progression = self.ledger, self.progression
        return PlayerSnapshot(
            gems=ledger.balance(GEMS),
            energy=ledger.balance(ENERGY),
            max_energy=ledger.max_energy,
            special_seeds=ledger.balance(SPECIAL_SEEDS),
            growth_boosters=ledger.balance(GROWTH_BOOSTERS),
            energy_boosts=ledger.balance(ENERGY_BOOSTS),
            seeds={r[len(SEED_PREFIX):]: ledger.balance(r) for r in SEED_RESOURCES},
            level=progression.level,
            xp=progression.xp,
            xp_to_next=progression.xp_to_next,
            max_plant_slots=progression.max_plant_slots,
            streak=progression.streak,
            longest_streak=progression.longest_streak,
            last_play_date=progression.last_play_date,
            combo_count=progression.combo_count,
            combo_multiplier=progression.combo_multiplier,
            total_spent=ledger.total_spent,
            is_premium=ledger.is_premium,
            premium_expires_at_ms=ledger.premium_expires_at_ms,
        )

    def reminder_snapshot(self) -> ReminderSnapshot:
        return ReminderSnapshot(
            bloomed_count=self.inventory.bloomed_count(),
            energy=self.ledger.balance(ENERGY),
            max_energy=self.ledger.max_energy,
            incomplete_quests=self.quests.incomplete_count(),
            streak=self.progression.streak,
            streak_at_risk=self.progression.is_streak_at_risk(),
        )

    def rankings(self, category: str) -> ActionResult:
        return self._run("rankings", lambda: self.leaderboard.rankings(category))

    def entries(self, kind: str) -> List[ProgressEntry]:
        """Current entries of ``achievements``, ``quests``, ``milestones`` or ``challenges``."""
        trackers = {
            "achievements": self.achievements,
            "quests": self.quests,
            "milestones": self.milestones,
            "challenges": self.challenges,
        }
        if kind not in trackers:
            raise ValidationError("kind", f"Unknown goal kind '{kind}'")
        entries = trackers[kind].entries()
        self._flush(f"entries:{kind}")
        return entries

    def player_ranks(self) -> Dict[str, int]:
        return {
            category: self.leaderboard.player_rank(category)
            for category in CATEGORIES
        }

    def top_rankings(self, category: str, limit: int = 10) -> List[RankingEntry]:
        if limit < 0:
            raise ValidationError("limit", "must be zero or more")
        return self.leaderboard.rankings(category)[:limit]

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def reset(self) -> None:
        """Wipe stored state. Services keep their in-memory state until rebuilt."""
        self.store.reset()
        logger.warning("Garden storage cleared")

    def shutdown(self) -> None:
        self._flush("shutdown")
        for tracker in self._trackers():
            tracker.stop()
        self.event_bus.clear()
        logger.info("Garden engine shut down")
