"""Manifestation lifecycle: plant, nurture, bloom, harvest."""

from .service import GardenService

__all__ = ["GardenService"]
