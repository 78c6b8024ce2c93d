"""
Purchase Service
================

Purpose
-------
Applies store purchases that the platform has already confirmed. This
service never starts or verifies a payment; it receives an opaque
"purchase succeeded" signal and turns it into ledger credits plus lifetime
spend.

Also owns two free consumables:

- ``use_energy_boost()``: spend one energy boost to refill energy
- ``claim_free_seeds()``: 3 common seeds per reference day (5 for premium)

Domain
------
Kinds: ``gems``, ``seeds`` (needs a rarity), ``seed_bundle``,
``growth_boosters``, ``energy_boosts``, ``special_seeds``, ``premium``
(needs a duration). Everything is validated before the ledger is touched.

Events
------
- ``purchase.confirmed``: {kind, amount, price_usd, product_id, granted}
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, Optional

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.domain.models.base import DomainValidationError
from manifest_garden.domain.models.inventory import Rarity
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import (
    ENERGY_BOOSTS,
    EVENT_PURCHASE_CONFIRMED,
    GEMS,
    GROWTH_BOOSTERS,
    KEY_PURCHASES,
    SPECIAL_SEEDS,
    seed_resource,
)
from manifest_garden.modules.shared.exceptions import (
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore
    from manifest_garden.modules.ledger.service import LedgerService

logger = get_logger(__name__)

_SIMPLE_KINDS = {
    "gems": GEMS,
    "growth_boosters": GROWTH_BOOSTERS,
    "energy_boosts": ENERGY_BOOSTS,
    "special_seeds": SPECIAL_SEEDS,
}

PURCHASE_KINDS = tuple(_SIMPLE_KINDS) + ("seeds", "seed_bundle", "premium")

DEFAULT_SEED_BUNDLE = {"common": 5, "rare": 3, "epic": 1}


class PurchaseService(BaseService):
    """
    Confirmed purchases and free consumables.

    Public Methods
    --------------
    - on_purchase_confirmed() -> Apply a confirmed purchase
    - confirm_product() -> Apply a catalog product by id
    - use_energy_boost() -> Spend a boost to refill energy
    - claim_free_seeds() -> Daily free seeds
    """

    STORAGE_KEY = KEY_PURCHASES

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        ledger: LedgerService,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)
        self._ledger = ledger

        record = self.load_record(default={}) or {}
        claimed = record.get("lastFreeSeedsDate")
        self._last_free_seeds: Optional[date] = date.fromisoformat(claimed) if claimed else None

    def to_record(self) -> Dict[str, Any]:
        return {
            "lastFreeSeedsDate": self._last_free_seeds.isoformat() if self._last_free_seeds else None,
        }

    # ========================================================================
    # CATALOG
    # ========================================================================

    def products(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.get_config("shop.products", {}) or {})

    def confirm_product(self, product_id: str) -> Dict[str, Any]:
        """
        Apply a confirmed purchase of a catalog product.

        Raises:
            NotFoundError: unknown product id
        """
        product = self.products().get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        return self.on_purchase_confirmed(
            kind=product["kind"],
            amount=int(product.get("amount", 1)),
            price_usd=product["price"],
            rarity=product.get("rarity"),
            duration=product.get("duration"),
            product_id=product_id,
        )

    # ========================================================================
    # CONFIRMED PURCHASES
    # ========================================================================

    def on_purchase_confirmed(
        self,
        kind: str,
        amount: int,
        price_usd: Any,
        rarity: Optional[str] = None,
        duration: Optional[str] = None,
        product_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Credit a confirmed purchase and add its price to lifetime spend.

        Returns:
            {"kind", "granted", "total_spent", "premium_expires_at"}

        Raises:
            ValidationError: unknown kind, missing rarity/duration, bad amount or price
        """
        self.validate_positive_int(amount, "amount")
        price = self._parse_price(price_usd)
        grants = self._grants_for(kind, amount, rarity)

        premium_expires_at = None
        if kind == "premium":
            durations = self.get_config("economy.premium.durations_days", {}) or {}
            if duration not in durations:
                raise ValidationError("duration", f"Unknown premium duration '{duration}'")
            premium_expires_at = self._ledger.activate_premium(duration)
        else:
            self._ledger.credit_many(grants, reason=f"purchase:{product_id or kind}")

        total_spent = self._ledger.record_spend(price)

        self.log_operation(
            "purchase_confirmed",
            kind=kind,
            amount=amount,
            price_usd=str(price),
            product_id=product_id,
        )
        self.emit_event(EVENT_PURCHASE_CONFIRMED, {
            "kind": kind,
            "amount": amount,
            "price_usd": str(price),
            "product_id": product_id,
            "granted": grants,
        })
        return {
            "kind": kind,
            "granted": grants,
            "total_spent": total_spent,
            "premium_expires_at": premium_expires_at,
        }

    def _grants_for(self, kind: str, amount: int, rarity: Optional[str]) -> Dict[str, int]:
        if kind in _SIMPLE_KINDS:
            return {_SIMPLE_KINDS[kind]: amount}
        if kind == "seeds":
            if not rarity:
                raise ValidationError("rarity", "Seed purchases need a rarity")
            try:
                parsed = Rarity.from_string(rarity)
            except DomainValidationError as e:
                raise ValidationError("rarity", str(e)) from e
            return {seed_resource(parsed.label): amount}
        if kind == "seed_bundle":
            bundle = self.get_config("shop.seed_bundle") or DEFAULT_SEED_BUNDLE
            return {seed_resource(label): int(count) * amount for label, count in bundle.items()}
        if kind == "premium":
            return {}
        raise ValidationError("kind", f"Unknown purchase kind '{kind}'")

    @staticmethod
    def _parse_price(value: Any) -> Decimal:
        try:
            price = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError("price_usd", f"Invalid price: {value!r}") from e
        if not price.is_finite() or price < 0:
            raise ValidationError("price_usd", f"Price must be a non-negative amount, got {value}")
        return price

    # ========================================================================
    # CONSUMABLES
    # ========================================================================

    def use_energy_boost(self) -> Dict[str, int]:
        """
        Spend one energy boost and refill energy to the cap.

        Raises:
            InsufficientResourcesError: no energy boosts
        """
        self._ledger.debit(ENERGY_BOOSTS, 1, reason="energy_boost")
        refilled = self._ledger.refill_energy(reason="energy_boost")
        self.log_operation("use_energy_boost", refilled=refilled)
        return {"refilled": refilled, "energy_boosts": self._ledger.balance(ENERGY_BOOSTS)}

    def free_seeds_available(self) -> bool:
        return self._last_free_seeds != self._clock.today()

    def claim_free_seeds(self) -> Dict[str, Any]:
        """
        Grant the daily free seeds once per reference day.

        Raises:
            InvalidOperationError: already claimed today
        """
        today = self._clock.today()
        if self._last_free_seeds == today:
            raise InvalidOperationError("claim_free_seeds", "Free seeds already claimed today")

        cfg = self.get_config("economy.free_seeds", {}) or {}
        per_day_key = "per_day_premium" if self._ledger.is_premium else "per_day"
        count = int(cfg.get(per_day_key, 5 if self._ledger.is_premium else 3))
        resource = seed_resource(cfg.get("rarity", "common"))

        self._ledger.credit(resource, count, reason="free_seeds")
        self._last_free_seeds = today
        self._store.save_many({
            self.STORAGE_KEY: self.to_record(),
            self._ledger.STORAGE_KEY: self._ledger.to_record(),
        })

        self.log_operation("claim_free_seeds", count=count, date=today.isoformat())
        return {"resource": resource, "amount": count, "date": today}
