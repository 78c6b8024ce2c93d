"""Level/XP, combo chain and daily streak."""

from .service import ProgressionService

__all__ = ["ProgressionService"]
