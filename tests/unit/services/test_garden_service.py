"""
Unit Tests for GardenService
============================

Testing Strategy
----------------
- Real ledger, progression and inventory services over MemoryStorage
- Every rejected action is checked for "nothing changed"
- AAA pattern (Arrange, Act, Assert)
"""

import pytest

from manifest_garden.domain.models.inventory import GrowthStage
from manifest_garden.modules.shared.exceptions import (
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)


def _grow(garden, plant_id, times):
    for _ in range(times):
        garden.nurture(plant_id)


# ============================================================================
# PLANT
# ============================================================================


@pytest.mark.unit
class TestPlant:
    """Test planting."""

    def test_plant_uses_category_color(self, garden):
        plant = garden.plant("I am loved", "love")

        assert plant.color == "#FF69B4"
        assert plant.stage is GrowthStage.SEED
        assert garden.free_slots == 6

    def test_planted_event(self, garden, published):
        plant = garden.plant("I am calm", "peace")

        assert published.payloads("garden.planted") == [{
            "id": plant.id,
            "category": "peace",
            "color": "#98FB98",
            "rarity": "common",
            "seed_rarity": None,
        }]

    def test_plant_from_seed_debits_seed(self, garden, ledger):
        ledger.credit("seeds_rare", 2)

        plant = garden.plant("I am bold", "success", seed_rarity="rare")

        assert plant.color == "#4169E1"
        assert ledger.balance("seeds_rare") == 1

    def test_plant_from_missing_seed_changes_nothing(self, garden):
        with pytest.raises(InsufficientResourcesError):
            garden.plant("I am bold", "success", seed_rarity="epic")

        assert garden.manifestations() == []

    def test_full_garden_rejects_planting(self, garden):
        for index in range(7):
            garden.plant(f"intention {index}", "health")

        with pytest.raises(InvalidOperationError):
            garden.plant("one too many", "health")

        assert len(garden.manifestations()) == 7

    @pytest.mark.parametrize(
        "intention, category",
        [("   ", "love"), ("I am", "wealth")],
    )
    def test_invalid_input_rejected(self, garden, intention, category):
        with pytest.raises(ValidationError):
            garden.plant(intention, category)


# ============================================================================
# NURTURE
# ============================================================================


@pytest.mark.unit
class TestNurture:
    """Test nurturing and boosting."""

    def test_nurture_spends_energy_and_grows(self, garden, ledger, progression):
        # Arrange
        plant = garden.plant("I am calm", "peace")

        # Act
        result = garden.nurture(plant.id)

        # Assert
        assert ledger.balance("energy") == 14
        assert result["growth"] == 10
        assert result["xp"] == 10
        assert progression.xp == 10

    def test_premium_nurture_grows_faster(self, garden, ledger):
        ledger.activate_premium("month")
        plant = garden.plant("I am calm", "peace")

        result = garden.nurture(plant.id)

        assert result["growth"] == 15

    def test_combo_scales_xp(self, garden):
        plant = garden.plant("I am calm", "peace")
        _grow(garden, plant.id, 2)

        result = garden.nurture(plant.id)

        assert result["combo"]["count"] == 3
        assert result["xp"] == 15

    def test_nurture_without_energy_changes_nothing(self, garden, ledger):
        plant = garden.plant("I am calm", "peace")
        ledger.debit("energy", 15)

        with pytest.raises(InsufficientResourcesError):
            garden.nurture(plant.id)

        assert garden.get(plant.id).growth == 0

    def test_blooming_plant_cannot_be_nurtured(self, garden, ledger):
        plant = garden.plant("I am calm", "peace")
        ledger.credit("growth_boosters", 1)
        garden.use_growth_booster(plant.id)
        energy = ledger.balance("energy")

        with pytest.raises(InvalidOperationError):
            garden.nurture(plant.id)

        assert ledger.balance("energy") == energy

    def test_bloom_published_once(self, garden, ledger, published):
        plant = garden.plant("I am calm", "peace")
        ledger.credit("energy", 20)

        _grow(garden, plant.id, 10)

        assert published.payloads("garden.bloomed") == [{
            "id": plant.id,
            "category": "peace",
            "color": "#98FB98",
            "rarity": "common",
        }]

    def test_booster_requires_stock(self, garden):
        plant = garden.plant("I am calm", "peace")

        with pytest.raises(InsufficientResourcesError):
            garden.use_growth_booster(plant.id)

        assert not garden.get(plant.id).is_blooming

    def test_unknown_plant(self, garden):
        with pytest.raises(NotFoundError):
            garden.nurture("ghost")


# ============================================================================
# HARVEST / REMOVE / SHARE
# ============================================================================


@pytest.mark.unit
class TestHarvest:
    """Test harvesting, removal and sharing."""

    def test_harvest_sprout_creates_item(self, garden, inventory):
        plant = garden.plant("I am calm", "peace")
        _grow(garden, plant.id, 5)

        result = garden.harvest(plant.id)

        assert result["stage"] == "sprout"
        assert inventory.items() == [result["item"]]
        assert garden.manifestations() == []

    def test_harvest_seed_clears_slot_only(self, garden, inventory, progression, published):
        plant = garden.plant("I am calm", "peace")

        result = garden.harvest(plant.id)

        assert result["item"] is None
        assert result["xp"] == 0
        assert inventory.items() == []
        assert garden.free_slots == 7
        assert progression.xp == 0
        assert progression.level == 1
        assert published.payloads("garden.harvested") == []
        assert published.payloads("garden.removed") == [{"id": plant.id, "stage": "seed"}]

    def test_repeated_seed_harvests_award_nothing(self, garden, progression, ledger):
        gems = ledger.balance("gems")

        for _ in range(20):
            plant = garden.plant("I am calm", "peace")
            garden.harvest(plant.id)

        assert progression.level == 1
        assert progression.xp == 0
        assert ledger.balance("gems") == gems

    def test_harvest_awards_xp(self, garden, progression, manual_time):
        plant = garden.plant("I am calm", "peace")
        _grow(garden, plant.id, 5)
        manual_time.advance(seconds=10)
        xp_before = progression.xp

        result = garden.harvest(plant.id)

        assert result["xp"] == 25
        assert progression.xp == xp_before + 25

    def test_remove_refunds_nothing(self, garden, ledger):
        ledger.credit("seeds_epic", 1)
        plant = garden.plant("I am bold", "success", seed_rarity="epic")

        garden.remove(plant.id)

        assert garden.manifestations() == []
        assert ledger.balance("seeds_epic") == 0

    def test_share_inventory_item(self, garden, inventory, item_factory, published):
        item = inventory.add(item_factory(item_id="kept"))

        garden.share(item.id)

        assert published.payloads("community.shared") == [{"id": "kept", "category": "peace"}]

    def test_share_unknown_id(self, garden):
        with pytest.raises(NotFoundError):
            garden.share("ghost")
