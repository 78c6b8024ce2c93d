"""
Unit tests for ProgressionService: leveling, combo chain and daily streak.
"""

from decimal import Decimal

import pytest

from manifest_garden.modules.shared.exceptions import ValidationError


# ============================================================================
# LEVELING
# ============================================================================


@pytest.mark.unit
class TestLeveling:
    """Test XP accumulation and level rewards."""

    def test_exact_xp_lands_on_next_level(self, progression):
        progression.add_xp(progression.xp_needed())

        assert progression.level == 2
        assert progression.xp == 0

    def test_level_up_grants_rewards(self, progression, ledger):
        # Arrange
        gems_before = ledger.balance("gems")
        energy_before = ledger.balance("energy")

        # Act
        progression.add_xp(100)

        # Assert
        assert ledger.balance("gems") == gems_before + 55
        assert ledger.balance("energy") == energy_before + 3
        assert progression.max_plant_slots == 8

    def test_large_grant_applies_multiple_levels(self, progression):
        result = progression.add_xp(100 + 114 + 10)

        assert result["levels_gained"] == 2
        assert progression.level == 3
        assert progression.xp == 10

    def test_remainder_carries(self, progression):
        progression.add_xp(130)

        assert progression.level == 2
        assert progression.xp == 30
        assert progression.xp_to_next == 84

    def test_negative_xp_rejected(self, progression):
        with pytest.raises(ValidationError):
            progression.add_xp(-1)

        assert progression.xp == 0

    def test_level_up_event(self, progression, published):
        progression.add_xp(100)

        assert published.payloads("player.leveled_up") == [
            {"level": 2, "gems": 55, "energy": 3, "max_plant_slots": 8}
        ]


# ============================================================================
# COMBO
# ============================================================================


@pytest.mark.unit
class TestCombo:
    """Test the combo chain window."""

    def test_actions_inside_window_extend_chain(self, progression, manual_time):
        progression.increment_combo()
        manual_time.advance(milliseconds=4999)

        result = progression.increment_combo()

        assert result["count"] == 2

    def test_gap_of_window_restarts_chain(self, progression, manual_time):
        for _ in range(3):
            progression.increment_combo()
            manual_time.advance(milliseconds=1000)
        assert progression.combo_multiplier == Decimal("1.5")

        manual_time.advance(milliseconds=5000)
        result = progression.increment_combo()

        assert result["count"] == 1
        assert result["multiplier"] == Decimal("1")

    def test_active_multiplier_lapses(self, progression, manual_time):
        for _ in range(3):
            progression.increment_combo()
        assert progression.active_multiplier() == Decimal("1.5")

        manual_time.advance(seconds=5)

        assert progression.active_multiplier() == Decimal("1")

    def test_tenth_step_pays_bonus_gems(self, progression, ledger):
        results = [progression.increment_combo() for _ in range(10)]

        assert results[-1]["bonus_gems"] == 5
        assert ledger.balance("gems") == 5


# ============================================================================
# STREAK
# ============================================================================


@pytest.mark.unit
class TestStreak:
    """Test daily check-in."""

    def test_first_check_in_starts_streak(self, progression):
        result = progression.check_in()

        assert result["new_day"] is True
        assert progression.streak == 1

    def test_same_day_check_in_is_noop(self, progression, manual_time):
        progression.check_in()
        manual_time.advance(hours=5)

        result = progression.check_in()

        assert result["new_day"] is False
        assert progression.streak == 1

    def test_consecutive_days_extend_streak(self, progression, manual_time):
        progression.check_in()
        manual_time.advance(days=1)

        result = progression.check_in()

        assert result["continued"] is True
        assert progression.streak == 2
        assert progression.longest_streak == 2

    def test_missed_day_restarts_streak(self, progression, manual_time):
        progression.check_in()
        manual_time.advance(days=1)
        progression.check_in()
        manual_time.advance(days=2)

        progression.check_in()

        assert progression.streak == 1
        assert progression.longest_streak == 2

    def test_new_day_refills_energy_with_bonus(self, progression, ledger):
        ledger.debit("energy", 15)

        result = progression.check_in()

        assert result["refilled"] == 15
        assert result["bonus_energy"] == 1
        assert ledger.balance("energy") == 16

    def test_streak_at_risk_late_in_day(self, progression, manual_time):
        progression.check_in()
        manual_time.advance(days=1)
        assert not progression.is_streak_at_risk()

        # 21:00 in New York
        manual_time.advance(hours=10)

        assert progression.is_streak_at_risk()
