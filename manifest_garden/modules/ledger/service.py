"""
Ledger Service
==============

Purpose
-------
Owns every player balance: gems, energy, special seeds, growth boosters,
energy boosts and the per-rarity seed balances crafting credits into. Also
owns lifetime real-money spend and premium status, which decide the energy
cap.

Domain
------
- ``credit`` always succeeds for non-negative amounts
- ``debit`` raises ``InsufficientResourcesError`` before touching state
- ``record_spend`` only ever increases ``total_spent``
- Premium lasts 30 days (month) or 365 days (year) from activation and is
  re-checked against the clock on every observation

Persistence
-----------
Memory is updated first, then the ``ledger`` record is enqueued. A crash can
lose the write but never persist a negative balance.

Events
------
- ``ledger.credited`` / ``ledger.debited``: {resource, amount, balance, reason}
- ``energy.consumed``: {amount, balance} on every energy debit
- ``ledger.spend_recorded``: {amount, total_spent}
- ``player.premium_activated``: {duration, expires_at}
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union

from manifest_garden.core.logging.logger import get_logger
from manifest_garden.modules.shared.base_service import BaseService
from manifest_garden.modules.shared.constants import (
    ENERGY,
    EVENT_CREDITED,
    EVENT_DEBITED,
    EVENT_ENERGY_CONSUMED,
    EVENT_PREMIUM_ACTIVATED,
    EVENT_SPEND_RECORDED,
    KEY_LEDGER,
    RESOURCES,
)
from manifest_garden.modules.shared.exceptions import (
    InsufficientResourcesError,
    ValidationError,
)

if TYPE_CHECKING:
    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore

logger = get_logger(__name__)

_DAY_MS = 24 * 60 * 60 * 1000

Money = Union[Decimal, str, int, float]


class LedgerService(BaseService):
    """
    Player balances, lifetime spend and premium status.

    Public Methods
    --------------
    - balance() / balances() -> Read balances
    - credit() / debit() / try_debit() -> Mutate one balance
    - credit_many() -> Apply several grants as one mutation (rewards)
    - record_spend() -> Add confirmed real-money spend
    - activate_premium() -> Start or replace a premium period
    - refill_energy() -> Top energy up to the cap
    """

    STORAGE_KEY = KEY_LEDGER

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
    ) -> None:
        super().__init__(config_manager, event_bus, store, clock, logger)

        starting = self.get_config("economy.starting_balances", {}) or {}
        self._balances: Dict[str, int] = {r: int(starting.get(r, 0)) for r in RESOURCES}
        self._total_spent = Decimal("0")
        self._premium_expires_at_ms: Optional[int] = None

        record = self.load_record()
        if record:
            self._restore(record)

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    def to_record(self) -> Dict[str, Any]:
        return {
            "balances": dict(self._balances),
            "totalSpent": str(self._total_spent),
            "premiumExpiresAt": self._premium_expires_at_ms,
        }

    def _restore(self, record: Mapping[str, Any]) -> None:
        for resource, amount in (record.get("balances") or {}).items():
            if resource in self._balances:
                self._balances[resource] = max(0, int(amount))
        self._total_spent = max(Decimal("0"), Decimal(str(record.get("totalSpent", "0"))))
        self._premium_expires_at_ms = record.get("premiumExpiresAt")

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    def balance(self, resource: str) -> int:
        return self._balances[self._validate_resource(resource)]

    def balances(self) -> Dict[str, int]:
        return dict(self._balances)

    def has_sufficient(self, resource: str, amount: int) -> bool:
        return self.balance(resource) >= amount

    @property
    def total_spent(self) -> Decimal:
        return self._total_spent

    @property
    def is_premium(self) -> bool:
        expires = self._premium_expires_at_ms
        return expires is not None and self._clock.now_ms() < expires

    @property
    def premium_expires_at_ms(self) -> Optional[int]:
        return self._premium_expires_at_ms if self.is_premium else None

    @property
    def max_energy(self) -> int:
        if self.is_premium:
            return int(self.get_config("economy.energy.max_premium", 25))
        return int(self.get_config("economy.energy.max_base", 15))

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    def credit(self, resource: str, amount: int, reason: str = "") -> Dict[str, Any]:
        """
        Add ``amount`` to a balance.

        Returns:
            {"resource", "old_value", "new_value", "delta"}

        Raises:
            ValidationError: unknown resource or negative amount
        """
        resource = self._validate_resource(resource)
        self.validate_non_negative_int(amount, "amount")

        old_value = self._balances[resource]
        self._balances[resource] = old_value + amount
        self.persist()

        self.log_operation("credit", resource=resource, amount=amount, reason=reason)
        self.emit_event(EVENT_CREDITED, {
            "resource": resource,
            "amount": amount,
            "balance": self._balances[resource],
            "reason": reason,
        })
        return self._change(resource, old_value)

    def debit(self, resource: str, amount: int, reason: str = "") -> Dict[str, Any]:
        """
        Remove ``amount`` from a balance.

        Raises:
            InsufficientResourcesError: balance < amount (nothing changes)
            ValidationError: unknown resource or negative amount
        """
        resource = self._validate_resource(resource)
        self.validate_non_negative_int(amount, "amount")

        old_value = self._balances[resource]
        if old_value < amount:
            raise InsufficientResourcesError(resource, amount, old_value)

        self._balances[resource] = old_value - amount
        self.persist()

        self.log_operation("debit", resource=resource, amount=amount, reason=reason)
        self.emit_event(EVENT_DEBITED, {
            "resource": resource,
            "amount": amount,
            "balance": self._balances[resource],
            "reason": reason,
        })
        if resource == ENERGY and amount:
            self.emit_event(EVENT_ENERGY_CONSUMED, {
                "amount": amount,
                "balance": self._balances[resource],
            })
        return self._change(resource, old_value)

    def try_debit(self, resource: str, amount: int, reason: str = "") -> bool:
        """Boundary helper: debit and report success instead of raising."""
        try:
            self.debit(resource, amount, reason)
        except InsufficientResourcesError:
            return False
        return True

    def credit_many(self, grants: Mapping[str, int], reason: str = "") -> Dict[str, int]:
        """
        Credit several resources. All grants are validated before any
        balance changes.
        """
        validated = {self._validate_resource(r): amount for r, amount in grants.items()}
        for resource, amount in validated.items():
            self.validate_non_negative_int(amount, resource)

        for resource, amount in validated.items():
            if amount:
                self.credit(resource, amount, reason)
        return {r: self._balances[r] for r in validated}

    def record_spend(self, amount_usd: Money) -> Decimal:
        """
        Add confirmed real-money spend. ``total_spent`` never decreases.

        Raises:
            ValidationError: amount is not a non-negative number
        """
        amount = self._to_money(amount_usd)
        self._total_spent += amount
        self.persist()

        self.log_operation("record_spend", amount=str(amount), total_spent=str(self._total_spent))
        self.emit_event(EVENT_SPEND_RECORDED, {
            "amount": str(amount),
            "total_spent": str(self._total_spent),
        })
        return self._total_spent

    def activate_premium(self, duration: str) -> int:
        """
        Start a premium period of ``month`` or ``year`` from now.

        Returns:
            Expiry time in epoch milliseconds
        """
        durations = self.get_config("economy.premium.durations_days", {}) or {}
        if duration not in durations:
            raise ValidationError("duration", f"Unknown premium duration '{duration}'")

        expires_at = self._clock.now_ms() + int(durations[duration]) * _DAY_MS
        self._premium_expires_at_ms = expires_at
        self.persist()

        self.log_operation("activate_premium", duration=duration, expires_at=expires_at)
        self.emit_event(EVENT_PREMIUM_ACTIVATED, {"duration": duration, "expires_at": expires_at})
        return expires_at

    def refill_energy(self, reason: str = "refill") -> int:
        """
        Top energy up to ``max_energy``. Energy already above the cap is kept.

        Returns:
            Amount credited
        """
        missing = self.max_energy - self._balances[ENERGY]
        if missing <= 0:
            return 0
        self.credit(ENERGY, missing, reason)
        return missing

    # ========================================================================
    # PRIVATE HELPERS
    # ========================================================================

    def _validate_resource(self, resource: str) -> str:
        if resource not in self._balances:
            raise ValidationError("resource", f"Unknown resource '{resource}'")
        return resource

    def _change(self, resource: str, old_value: int) -> Dict[str, Any]:
        new_value = self._balances[resource]
        return {
            "resource": resource,
            "old_value": old_value,
            "new_value": new_value,
            "delta": new_value - old_value,
        }

    @staticmethod
    def _to_money(value: Money) -> Decimal:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError("amount_usd", f"Invalid amount: {value!r}") from e
        if not amount.is_finite() or amount < 0:
            raise ValidationError("amount_usd", f"Spend must be a non-negative amount, got {value}")
        return amount
