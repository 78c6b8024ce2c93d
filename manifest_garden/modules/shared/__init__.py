"""
Garden Shared Module

Purpose
-------
Provides domain-level foundations for all garden modules:
- Domain exceptions and error handling
- Base service pattern
- Shared names (resources, storage keys, events) and formulas

Usage
-----
    from manifest_garden.modules.shared import (
        BaseService,
        InsufficientResourcesError,
        xp_needed,
    )
"""

from __future__ import annotations

from .base_service import BaseService
from .exceptions import (
    ErrorSeverity,
    GardenDomainException,
    InsufficientResourcesError,
    InvalidCraftInputError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
    get_error_severity,
)
from .formulas import (
    combo_bonus_gems,
    combo_multiplier,
    level_up_energy,
    level_up_gems,
    max_plant_slots,
    scaled_xp,
    streak_bonus_energy,
    xp_needed,
)

__all__ = [
    "BaseService",
    "ErrorSeverity",
    "GardenDomainException",
    "InsufficientResourcesError",
    "InvalidCraftInputError",
    "InvalidOperationError",
    "NotFoundError",
    "ValidationError",
    "get_error_severity",
    "combo_bonus_gems",
    "combo_multiplier",
    "level_up_energy",
    "level_up_gems",
    "max_plant_slots",
    "scaled_xp",
    "streak_bonus_energy",
    "xp_needed",
]
