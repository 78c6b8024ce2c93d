"""Player balances, lifetime spend and premium status."""

from .service import LedgerService

__all__ = ["LedgerService"]
