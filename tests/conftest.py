"""
Pytest Configuration and Fixtures for the Manifestation Garden Tests
=====================================================================

Purpose
-------
Centralized fixtures for the garden test suite: a controllable clock, real
balance config, an isolated event bus and in-memory storage, every service
wired the way the engine wires them, and small factories for test data.

Architecture Notes
------------------
- Unit tests use MemoryStorage and the packaged YAML config (fast, isolated)
- Integration tests use real backends (sqlite via SQLAlchemy, files under
  tmp_path) or a mocked Redis client
- Time never comes from the wall clock: ``manual_time`` drives ``clock``
- Random sources are seeded so crafting and quest draws are repeatable
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from manifest_garden.core.clock import GardenClock
from manifest_garden.core.config.manager import ConfigManager
from manifest_garden.core.event.bus import EventBus
from manifest_garden.core.persistence.gateway import MemoryStorage
from manifest_garden.core.persistence.store import StateStore
from manifest_garden.domain.models.inventory import Category, GrowthStage, InventoryItem
from manifest_garden.engine import GardenEngine
from manifest_garden.modules.crafting import CraftingService
from manifest_garden.modules.garden import GardenService
from manifest_garden.modules.inventory import InventoryService
from manifest_garden.modules.ledger import LedgerService
from manifest_garden.modules.progression import ProgressionService

COMMON = "#90EE90"
RARE = "#4169E1"
EPIC = "#9370DB"
LEGENDARY = "#FFD700"

# Wednesday 2025-03-12, 11:00 in America/New_York
START = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)


# ============================================================================
# TIME
# ============================================================================


class ManualTime:
    """Mutable time source for GardenClock."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)

    def set(self, value: datetime) -> None:
        self.current = value


@pytest.fixture
def manual_time() -> ManualTime:
    return ManualTime()


@pytest.fixture
def clock(manual_time) -> GardenClock:
    return GardenClock(now_fn=manual_time)


# ============================================================================
# INFRASTRUCTURE
# ============================================================================


@pytest.fixture
def config_manager() -> ConfigManager:
    """Packaged YAML balance config."""
    return ConfigManager()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(memory_storage) -> StateStore:
    return StateStore(memory_storage)


# ============================================================================
# SERVICES
# ============================================================================


@pytest.fixture
def ledger(config_manager, event_bus, store, clock) -> LedgerService:
    return LedgerService(config_manager, event_bus, store, clock)


@pytest.fixture
def progression(config_manager, event_bus, store, clock, ledger) -> ProgressionService:
    return ProgressionService(config_manager, event_bus, store, clock, ledger)


@pytest.fixture
def inventory(config_manager, event_bus, store, clock) -> InventoryService:
    return InventoryService(config_manager, event_bus, store, clock)


@pytest.fixture
def garden(config_manager, event_bus, store, clock, ledger, progression, inventory) -> GardenService:
    return GardenService(config_manager, event_bus, store, clock, ledger, progression, inventory)


@pytest.fixture
def crafting(config_manager, event_bus, store, clock, inventory, ledger) -> CraftingService:
    return CraftingService(
        config_manager, event_bus, store, clock, inventory, ledger, rng=random.Random(7)
    )


@pytest.fixture
def engine(memory_storage, clock) -> GardenEngine:
    return GardenEngine(
        gateway=memory_storage,
        clock=clock,
        rng=random.Random(7),
        configure_logging=False,
    )


# ============================================================================
# FACTORIES
# ============================================================================


_item_counter = iter(range(1, 1_000_000))


def make_item(
    color: str = COMMON,
    stage: GrowthStage = GrowthStage.BLOOMING,
    category: Category = Category.PEACE,
    item_id: Optional[str] = None,
) -> InventoryItem:
    return InventoryItem(
        id=item_id or f"item-{next(_item_counter)}",
        intention="I am at peace",
        category=category,
        color=color,
        stage=stage,
        collected_at_ms=0,
    )


@pytest.fixture
def item_factory():
    return make_item


class PublishedEvents:
    """Read-only view over a spy on ``EventBus.publish``."""

    def __init__(self, spy) -> None:
        self._spy = spy

    def names(self):
        return [call.args[0] for call in self._spy.call_args_list]

    def payloads(self, event_name: str):
        return [call.args[1] for call in self._spy.call_args_list if call.args[0] == event_name]


@pytest.fixture
def published(mocker, event_bus) -> PublishedEvents:
    """Every event published on ``event_bus`` from this point on."""
    return PublishedEvents(mocker.spy(event_bus, "publish"))
