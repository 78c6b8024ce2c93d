"""
Progression Service
===================

Purpose
-------
Player level and XP, the combo chain for rapid consecutive actions, and the
daily check-in streak.

Domain
------
- XP curve: ``xp_needed(level) = floor(100 * 1.15^(level-1))``; leveling
  happens one level at a time and carries the remainder
- Level rewards: gems ``25 + 15*level``, energy ``min(3 + level//3, 10)``,
  plant slots ``6 + level``
- Combo: actions less than 5000ms apart extend the chain, otherwise it
  restarts at 1; multiplier ``min(1 + (count//3)*0.5, 4)``; every 10th step
  pays ``count//2`` bonus gems
- Streak: the first check-in of a reference day continues the streak if the
  previous play date was yesterday, else restarts it at 1; a new day also
  refills energy and grants ``min(streak, 5)`` bonus energy

Events
------
- ``player.xp_gained``: {amount, xp, level}
- ``player.leveled_up``: {level, gems, energy, max_plant_slots}
- ``player.combo_advanced``: {count, multiplier, bonus_gems}
- ``player.checked_in``: {date, streak}
- ``player.streak_advanced``: {streak, longest_streak, continued}
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.modules.shared import formulas
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import (
    ENERGY,
    EVENT_CHECKED_IN,
    EVENT_COMBO_ADVANCED,
    EVENT_LEVELED_UP,
    EVENT_STREAK_ADVANCED,
    EVENT_XP_GAINED,
    GEMS,
    KEY_PROGRESSION,
)

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService

logger = get_logger(__name__)


class ProgressionService(BaseService):
    """
    Level/XP, combo chain and daily streak.

    Public Methods
    --------------
    - xp_needed() -> XP to advance from a level
    - add_xp() -> Accumulate XP and apply level-ups
    - increment_combo() -> Extend or restart the combo chain
    - active_multiplier() -> Multiplier usable right now
    - check_in() -> Daily streak check-in
    - is_streak_at_risk() -> Reminder helper
    """

    STORAGE_KEY = KEY_PROGRESSION

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        ledger: LedgerService,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)
        self._ledger = ledger

        self.level = 1
        self.xp = 0
        self.combo_count = 0
        self.combo_multiplier = Decimal("1")
        self.last_combo_action_ms: Optional[int] = None
        self.streak = 0
        self.longest_streak = 0
        self.last_play_date: Optional[date] = None

        record = self.load_record()
        if record:
            self._restore(record)

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    def to_record(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "comboCount": self.combo_count,
            "comboMultiplier": str(self.combo_multiplier),
            "lastComboActionAt": self.last_combo_action_ms,
            "streak": self.streak,
            "longestStreak": self.longest_streak,
            "lastPlayDate": self.last_play_date.isoformat() if self.last_play_date else None,
        }

    def _restore(self, record: Mapping[str, Any]) -> None:
        self.level = max(1, int(record.get("level", 1)))
        self.xp = max(0, int(record.get("xp", 0)))
        self.combo_count = max(0, int(record.get("comboCount", 0)))
        self.combo_multiplier = max(Decimal("1"), Decimal(str(record.get("comboMultiplier", "1"))))
        self.last_combo_action_ms = record.get("lastComboActionAt")
        self.streak = max(0, int(record.get("streak", 0)))
        self.longest_streak = max(self.streak, int(record.get("longestStreak", 0)))
        last_play = record.get("lastPlayDate")
        self.last_play_date = date.fromisoformat(last_play) if last_play else None

    # ========================================================================
    # LEVELING
    # ========================================================================

    def xp_needed(self, level: Optional[int] = None) -> int:
        return formulas.xp_needed(
            self.level if level is None else level,
            base=int(self.get_config("progression.xp.base", 100)),
            growth=float(self.get_config("progression.xp.growth", 1.15)),
        )

    @property
    def xp_to_next(self) -> int:
        return self.xp_needed() - self.xp

    @property
    def max_plant_slots(self) -> int:
        return formulas.max_plant_slots(
            self.level, base=int(self.get_config("progression.plant_slots.base", 6))
        )

    def add_xp(self, amount: int) -> Dict[str, Any]:
        """
        Add XP and apply every level-up it pays for.

        Returns:
            {"amount", "level", "xp", "levels_gained"}

        Raises:
            ValidationError: negative amount (nothing changes)
        """
        self.validate_non_negative_int(amount, "amount")
        if amount == 0:
            return {"amount": 0, "level": self.level, "xp": self.xp, "levels_gained": 0}

        self.xp += amount
        levels_gained = 0
        while self.xp >= self.xp_needed():
            self.xp -= self.xp_needed()
            self.level += 1
            levels_gained += 1
            self._grant_level_rewards(self.level)
        self.persist()

        self.log_operation("add_xp", amount=amount, level=self.level, xp=self.xp)
        self.emit_event(EVENT_XP_GAINED, {"amount": amount, "xp": self.xp, "level": self.level})
        return {
            "amount": amount,
            "level": self.level,
            "xp": self.xp,
            "levels_gained": levels_gained,
        }

    def _grant_level_rewards(self, level: int) -> None:
        rewards = self.get_config("progression.level_rewards", {}) or {}
        gems = formulas.level_up_gems(
            level,
            base=int(rewards.get("gems_base", 25)),
            per_level=int(rewards.get("gems_per_level", 15)),
        )
        energy = formulas.level_up_energy(
            level,
            base=int(rewards.get("energy_base", 3)),
            divisor=int(rewards.get("energy_divisor", 3)),
            cap=int(rewards.get("energy_cap", 10)),
        )
        self._ledger.credit_many({GEMS: gems, ENERGY: energy}, reason=f"level_{level}")

        self.log.info(
            f"Player reached level {level}",
            extra={"level": level, "gems": gems, "energy": energy},
        )
        # Persist the new level before observers react to it
        self.persist()
        self.emit_event(EVENT_LEVELED_UP, {
            "level": level,
            "gems": gems,
            "energy": energy,
            "max_plant_slots": self.max_plant_slots,
        })

    # ========================================================================
    # COMBO
    # ========================================================================

    def _combo_window_ms(self) -> int:
        return int(self.get_config("progression.combo.window_ms", 5000))

    def _combo_multiplier(self, count: int) -> Decimal:
        combo = self.get_config("progression.combo", {}) or {}
        return formulas.combo_multiplier(
            count,
            step=int(combo.get("step", 3)),
            increment=Decimal(str(combo.get("increment", "0.5"))),
            cap=Decimal(str(combo.get("max_multiplier", "4"))),
        )

    def _combo_alive(self, now_ms: int) -> bool:
        last = self.last_combo_action_ms
        return last is not None and now_ms - last < self._combo_window_ms()

    def increment_combo(self) -> Dict[str, Any]:
        """
        Extend the chain if the previous action was inside the window,
        otherwise restart it at 1.

        Returns:
            {"count", "multiplier", "bonus_gems"}
        """
        now_ms = self._clock.now_ms()
        if self._combo_alive(now_ms):
            self.combo_count += 1
        else:
            self.combo_count = 1
        self.last_combo_action_ms = now_ms
        self.combo_multiplier = self._combo_multiplier(self.combo_count)
        self.persist()

        bonus_gems = formulas.combo_bonus_gems(
            self.combo_count, every=int(self.get_config("progression.combo.bonus_every", 10))
        )
        if bonus_gems:
            self._ledger.credit(GEMS, bonus_gems, reason=f"combo_{self.combo_count}")

        self.emit_event(EVENT_COMBO_ADVANCED, {
            "count": self.combo_count,
            "multiplier": str(self.combo_multiplier),
            "bonus_gems": bonus_gems,
        })
        return {
            "count": self.combo_count,
            "multiplier": self.combo_multiplier,
            "bonus_gems": bonus_gems,
        }

    def active_multiplier(self) -> Decimal:
        """Current multiplier, or 1 once the combo window has lapsed."""
        if self._combo_alive(self._clock.now_ms()):
            return self.combo_multiplier
        return Decimal("1")

    # ========================================================================
    # STREAK
    # ========================================================================

    def check_in(self) -> Dict[str, Any]:
        """
        Daily check-in. A second check-in on the same reference day is a
        no-op.

        Returns:
            {"new_day", "streak", "continued", "refilled", "bonus_energy"}
        """
        today = self._clock.today()
        if self.last_play_date == today:
            return {
                "new_day": False,
                "streak": self.streak,
                "continued": False,
                "refilled": 0,
                "bonus_energy": 0,
            }

        continued = self.last_play_date == self._clock.yesterday()
        self.streak = self.streak + 1 if continued else 1
        self.longest_streak = max(self.longest_streak, self.streak)
        self.last_play_date = today
        self.persist()

        refilled = 0
        bonus_energy = 0
        streak_cfg = self.get_config("progression.streak", {}) or {}
        if streak_cfg.get("refill_energy_on_new_day", True):
            refilled = self._ledger.refill_energy(reason="daily_refill")
            bonus_energy = formulas.streak_bonus_energy(
                self.streak, cap=int(streak_cfg.get("bonus_energy_cap", 5))
            )
            if bonus_energy:
                self._ledger.credit(ENERGY, bonus_energy, reason="streak_bonus")

        self.log_operation(
            "check_in",
            streak=self.streak,
            continued=continued,
            bonus_energy=bonus_energy,
        )
        self.emit_event(EVENT_CHECKED_IN, {"date": today.isoformat(), "streak": self.streak})
        self.emit_event(EVENT_STREAK_ADVANCED, {
            "streak": self.streak,
            "longest_streak": self.longest_streak,
            "continued": continued,
        })
        return {
            "new_day": True,
            "streak": self.streak,
            "continued": continued,
            "refilled": refilled,
            "bonus_energy": bonus_energy,
        }

    def is_streak_at_risk(self) -> bool:
        """True late in the day when yesterday's streak has not been renewed."""
        if self.streak <= 0 or self.last_play_date != self._clock.yesterday():
            return False
        at_risk_hour = int(self.get_config("progression.streak.at_risk_hour", 20))
        return self._clock.local_now().hour >= at_risk_hour
