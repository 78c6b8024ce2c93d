"""
Garden Formulas

Purpose
-------
Pure calculation functions for the economy: the leveling curve, level-up
rewards, combo multiplier, streak bonus and XP scaling.

Design Notes
------------
All formulas:
- Accept parameters explicitly (no config access)
- Return calculated values
- Are deterministic and testable

Usage
-----
    from manifest_garden.modules.shared.formulas import xp_needed

    xp_needed(1)   # 100
    xp_needed(2)   # 114
"""

from __future__ import annotations

import math
from decimal import ROUND_FLOOR, Decimal


def xp_needed(level: int, base: int = 100, growth: float = 1.15) -> int:
    """
    XP required to advance from ``level`` to ``level + 1``.

    Example:
        >>> xp_needed(1)
        100
        >>> xp_needed(5)
        174
    """
    return math.floor(base * growth ** (level - 1))


def level_up_gems(level: int, base: int = 25, per_level: int = 15) -> int:
    """Gems granted on reaching ``level``."""
    return math.floor(base + per_level * level)


def level_up_energy(level: int, base: int = 3, divisor: int = 3, cap: int = 10) -> int:
    """Energy granted on reaching ``level``; grows every ``divisor`` levels up to ``cap``."""
    return min(base + level // divisor, cap)


def max_plant_slots(level: int, base: int = 6) -> int:
    return base + level


def combo_multiplier(
    combo_count: int,
    step: int = 3,
    increment: Decimal = Decimal("0.5"),
    cap: Decimal = Decimal("4"),
) -> Decimal:
    """
    Multiplier for a combo chain.

    Example:
        >>> combo_multiplier(2)
        Decimal('1.0')
        >>> combo_multiplier(6)
        Decimal('2.0')
        >>> combo_multiplier(40)
        Decimal('4')
    """
    value = Decimal(1) + (combo_count // step) * Decimal(increment)
    return min(value, Decimal(cap))


def combo_bonus_gems(combo_count: int, every: int = 10) -> int:
    """Bonus gems on every ``every``-th combo step, else 0."""
    if combo_count <= 0 or combo_count % every:
        return 0
    return combo_count // 2


def scaled_xp(base_xp: int, multiplier: Decimal) -> int:
    """``floor(base_xp * multiplier)``"""
    return int((Decimal(base_xp) * multiplier).to_integral_value(rounding=ROUND_FLOOR))


def streak_bonus_energy(streak: int, cap: int = 5) -> int:
    return max(0, min(streak, cap))
