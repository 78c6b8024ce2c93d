"""
Common plumbing for the garden services.

A service owns one slice of player state (ledger balances, plants,
inventory, goal entries...), keeps it in memory, and after every mutation
hands a snapshot to the ``StateStore`` under its ``STORAGE_KEY``. It never
flushes: ``GardenEngine`` flushes once per action. It never catches
``GardenDomainException`` either; those travel up to the engine boundary.

Subclasses set ``STORAGE_KEY``, implement ``to_record()`` and call
``persist()`` after mutating::

    class InventoryService(BaseService):
        STORAGE_KEY = "inventory"

        def to_record(self):
            return [item.to_dict() for item in self._items.values()]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from manifest_garden.core.exceptions import ConfigurationError
from manifest_garden.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from manifest_garden.core.clock import GardenClock
    from manifest_garden.core.config.manager import ConfigManager
    from manifest_garden.core.event.bus import EventBus
    from manifest_garden.core.persistence.store import StateStore


class BaseService:
    STORAGE_KEY: Optional[str] = None

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        store: StateStore,
        clock: GardenClock,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self._store = store
        self._clock = clock
        self.log = logger

    # ------------------------------------------------------------------ #
    # Collaborators
    # ------------------------------------------------------------------ #

    def get_config(self, key: str, default: Optional[Any] = None, required: bool = False) -> Any:
        """Dotted balance lookup; ``required`` turns a missing key into ConfigurationError."""
        value = self._config.get(key, default)
        if value is None and required:
            raise ConfigurationError(key, "missing from balance config")
        return value

    def emit_event(self, event_type: str, data: Dict[str, Any]) -> None:
        self._events.publish(event_type, data)

    def log_operation(self, operation: str, **fields: Any) -> None:
        self.log.info(operation.replace("_", " ").capitalize(), extra={"operation": operation, **fields})

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    def to_record(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not persist state")

    def persist(self) -> None:
        if self.STORAGE_KEY is None:
            raise NotImplementedError(f"{type(self).__name__} has no STORAGE_KEY")
        self._store.save(self.STORAGE_KEY, self.to_record())

    def load_record(self, default: Any = None) -> Any:
        if self.STORAGE_KEY is None:
            return default
        return self._store.load(self.STORAGE_KEY, default)

    # ------------------------------------------------------------------ #
    # Input checks
    # ------------------------------------------------------------------ #

    @staticmethod
    def _is_int(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    def validate_positive_int(self, value: int, name: str) -> None:
        if not self._is_int(value) or value <= 0:
            raise ValidationError(name, f"must be a positive integer, got {value!r}")

    def validate_non_negative_int(self, value: int, name: str) -> None:
        if not self._is_int(value) or value < 0:
            raise ValidationError(name, f"must be a non-negative integer, got {value!r}")
