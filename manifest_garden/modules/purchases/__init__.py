"""Confirmed store purchases, energy boosts and the daily free seeds."""

from .service import PURCHASE_KINDS, PurchaseService

__all__ = ["PURCHASE_KINDS", "PurchaseService"]
