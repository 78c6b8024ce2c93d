"""
Unit tests for PurchaseService: confirmed purchases and free consumables.
"""

from decimal import Decimal

import pytest

from manifest_garden.modules.purchases import PurchaseService
from manifest_garden.modules.shared.exceptions import (
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def purchases(config_manager, event_bus, store, clock, ledger):
    return PurchaseService(config_manager, event_bus, store, clock, ledger)


@pytest.mark.unit
class TestConfirmedPurchases:
    """Test crediting confirmed purchases."""

    def test_gems_purchase_credits_and_records_spend(self, purchases, ledger):
        # Act
        result = purchases.on_purchase_confirmed("gems", 500, "3.99")

        # Assert
        assert ledger.balance("gems") == 500
        assert ledger.total_spent == Decimal("3.99")
        assert result["granted"] == {"gems": 500}

    def test_seed_purchase_needs_rarity(self, purchases, ledger):
        with pytest.raises(ValidationError):
            purchases.on_purchase_confirmed("seeds", 5, "4.99")

        assert ledger.total_spent == Decimal("0")

    def test_seed_bundle_scales_with_amount(self, purchases, ledger):
        purchases.on_purchase_confirmed("seed_bundle", 2, "25.98")

        assert ledger.balance("seeds_common") == 10
        assert ledger.balance("seeds_rare") == 6
        assert ledger.balance("seeds_epic") == 2

    def test_premium_purchase_activates_premium(self, purchases, ledger):
        result = purchases.on_purchase_confirmed("premium", 1, "4.99", duration="month")

        assert ledger.is_premium
        assert result["premium_expires_at"] == ledger.premium_expires_at_ms
        assert result["granted"] == {}

    @pytest.mark.parametrize(
        "kind, amount, price",
        [("gold", 1, "1.00"), ("gems", 0, "1.00"), ("gems", 10, "-1"), ("gems", 10, "free")],
    )
    def test_invalid_purchase_changes_nothing(self, purchases, ledger, kind, amount, price):
        with pytest.raises(ValidationError):
            purchases.on_purchase_confirmed(kind, amount, price)

        assert ledger.balance("gems") == 0
        assert ledger.total_spent == Decimal("0")

    def test_catalog_product(self, purchases, ledger, published):
        purchases.confirm_product("seeds_legendary")

        assert ledger.balance("seeds_legendary") == 1
        assert ledger.total_spent == Decimal("19.99")
        assert published.payloads("purchase.confirmed")[0]["product_id"] == "seeds_legendary"

    def test_unknown_product(self, purchases):
        with pytest.raises(NotFoundError):
            purchases.confirm_product("gems_infinite")


@pytest.mark.unit
class TestConsumables:
    """Test energy boosts and daily free seeds."""

    def test_energy_boost_refills(self, purchases, ledger):
        ledger.credit("energy_boosts", 1)
        ledger.debit("energy", 12)

        result = purchases.use_energy_boost()

        assert result == {"refilled": 12, "energy_boosts": 0}
        assert ledger.balance("energy") == 15

    def test_energy_boost_requires_stock(self, purchases, ledger):
        ledger.debit("energy", 5)

        with pytest.raises(InsufficientResourcesError):
            purchases.use_energy_boost()

        assert ledger.balance("energy") == 10

    def test_free_seeds_once_per_day(self, purchases, ledger, manual_time):
        purchases.claim_free_seeds()

        with pytest.raises(InvalidOperationError):
            purchases.claim_free_seeds()

        manual_time.advance(days=1)
        purchases.claim_free_seeds()

        assert ledger.balance("seeds_common") == 6

    def test_premium_players_get_more_free_seeds(self, purchases, ledger):
        ledger.activate_premium("year")

        result = purchases.claim_free_seeds()

        assert result["amount"] == 5

    def test_claim_survives_reload(self, purchases, config_manager, event_bus, store, clock, ledger):
        purchases.claim_free_seeds()

        reloaded = PurchaseService(config_manager, event_bus, store, clock, ledger)

        assert not reloaded.free_seeds_available()
