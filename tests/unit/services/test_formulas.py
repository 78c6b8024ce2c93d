"""
Unit tests for the pure economy formulas.
"""

from decimal import Decimal

import pytest

from manifest_garden.modules.shared import formulas


@pytest.mark.unit
class TestLevelCurve:
    """Test the XP curve and level rewards."""

    @pytest.mark.parametrize(
        "level, expected",
        [(1, 100), (2, 114), (3, 132), (5, 174), (10, 351)],
    )
    def test_xp_needed(self, level, expected):
        assert formulas.xp_needed(level) == expected

    def test_xp_needed_strictly_increases(self):
        values = [formulas.xp_needed(level) for level in range(1, 60)]

        assert all(a < b for a, b in zip(values, values[1:]))

    def test_level_up_gems(self):
        assert formulas.level_up_gems(2) == 55
        assert formulas.level_up_gems(10) == 175

    def test_level_up_energy_is_capped(self):
        assert formulas.level_up_energy(2) == 3
        assert formulas.level_up_energy(9) == 6
        assert formulas.level_up_energy(40) == 10

    def test_plant_slots_grow_with_level(self):
        assert formulas.max_plant_slots(1) == 7
        assert formulas.max_plant_slots(5) == 11


@pytest.mark.unit
class TestCombo:
    """Test combo multiplier and bonus gems."""

    @pytest.mark.parametrize(
        "count, multiplier",
        [(1, "1"), (2, "1"), (3, "1.5"), (6, "2"), (18, "4"), (40, "4")],
    )
    def test_combo_multiplier(self, count, multiplier):
        assert formulas.combo_multiplier(count) == Decimal(multiplier)

    def test_bonus_gems_on_every_tenth_step(self):
        assert formulas.combo_bonus_gems(10) == 5
        assert formulas.combo_bonus_gems(20) == 10
        assert formulas.combo_bonus_gems(11) == 0
        assert formulas.combo_bonus_gems(0) == 0

    def test_scaled_xp_floors(self):
        assert formulas.scaled_xp(25, Decimal("1.5")) == 37
        assert formulas.scaled_xp(10, Decimal("1")) == 10


@pytest.mark.unit
def test_streak_bonus_energy_is_capped():
    assert formulas.streak_bonus_energy(0) == 0
    assert formulas.streak_bonus_energy(3) == 3
    assert formulas.streak_bonus_energy(12) == 5
