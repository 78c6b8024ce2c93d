"""
Domain models package for the Manifestation Garden.

Domain models encapsulate game rules, validation and state transitions.
Services orchestrate them and own persistence; models never touch storage.

Base Classes
------------
- Entity: Objects with identity and domain events
- DomainEvent: State change notifications
"""

from .base import (
    DomainEvent,
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
    validate_range,
)
from .inventory import (
    Category,
    GrowthStage,
    InventoryItem,
    Rarity,
    rarity_for_color,
)
from .manifestation import Manifestation
from .player import PlayerSnapshot
from .progress import ProgressEntry, Reward, Trigger
from .ranking import RankingEntry

__all__ = [
    # Base classes
    "Entity",
    "DomainEvent",
    "DomainValidationError",
    # Validators
    "validate_positive",
    "validate_non_negative",
    "validate_range",
    "validate_not_empty",
    # Models
    "Category",
    "GrowthStage",
    "InventoryItem",
    "Rarity",
    "rarity_for_color",
    "Manifestation",
    "PlayerSnapshot",
    "ProgressEntry",
    "Reward",
    "Trigger",
    "RankingEntry",
]
