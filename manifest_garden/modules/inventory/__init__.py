"""Harvested items held for crafting."""

from .service import InventoryService

__all__ = ["InventoryService"]
