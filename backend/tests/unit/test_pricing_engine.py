"""
Tests unitarios para el motor de precios.
"""
from decimal import Decimal

import pytest

from backend.database.models import AssetType
from backend.database.seed_data import ASSETS_INICIALES
from backend.domain.asset_schemas import AssetEntry
from backend.domain.design_schemas import DesignConfig, Layer
from backend.services.pricing_engine import (
    PricingEngine,
    PricingRules,
    build_asset_lookups,
    compute_price,
    height_key,
)


def _seed_catalog() -> list[AssetEntry]:
    return [
        AssetEntry(
            type=data["type"],
            name=data["name"],
            price_modifier=data["price_modifier"],
            metadata=data["metadata_json"],
        )
        for data in ASSETS_INICIALES
    ]


@pytest.fixture
def seed_catalog() -> list[AssetEntry]:
    return _seed_catalog()


@pytest.mark.unit
class TestComputePrice:
    """Tests del cálculo de precio."""

    def test_empty_catalog_single_layer(self):
        """Sin catálogo solo cuentan la tarifa base y el diámetro."""
        config = DesignConfig(shape="Round", layers=[Layer(width=6)])
        assert compute_price(config, []) == 660

    def test_no_layers_is_base_fee(self):
        assert compute_price(DesignConfig(layers=[]), []) == 300

    def test_heart_vanilla_with_seed_catalog(self, seed_catalog):
        """300 + 6×60×1.4 + vainilla 0 + altura 4 (50) = 854."""
        config = DesignConfig(shape="Heart", layers=[Layer(width=6, flavor="Vanilla", height=4)])
        assert compute_price(config, seed_catalog) == 854

    def test_fractional_total_rounds_up(self, seed_catalog):
        """300 + 6.3×60×1.4 (529.2) + 50 = 879.2 -> 880."""
        config = DesignConfig(shape="Heart", layers=[Layer(width=6.3, flavor="Vanilla", height=4)])
        assert compute_price(config, seed_catalog) == 880

    def test_multiple_layers_all_contribute(self, seed_catalog):
        config = DesignConfig(
            shape="Round",
            layers=[
                Layer(width=8, flavor="Chocolate", height=4),
                Layer(width=6, flavor="Ube", height=3),
            ],
        )
        # 300 + (480 + 50 + 50) + (360 + 60 + 0)
        assert compute_price(config, seed_catalog) == 1300

    def test_sample_config(self, seed_catalog, sample_config):
        assert compute_price(sample_config, seed_catalog) == 810

    def test_custom_rules(self):
        rules = PricingRules(base_fee=100, layer_diameter_cost=10)
        config = DesignConfig(layers=[Layer(width=6)])
        assert compute_price(config, [], rules) == 160

    def test_deterministic(self, seed_catalog, sample_config):
        prices = {compute_price(sample_config, seed_catalog) for _ in range(5)}
        assert prices == {810}


@pytest.mark.unit
class TestToppingsAndTexture:
    """Tests de toppings y texturas."""

    def test_topping_selection_kinds(self, seed_catalog):
        """Solo suman `true` y cantidades positivas con nombre exacto."""
        base = compute_price(DesignConfig(layers=[]), seed_catalog)
        config = DesignConfig(
            layers=[],
            toppings={
                "Sprinkles": True,      # 20
                "Candles": 3,           # 10 × 3
                "Macarons": 0,          # nada
                "Gold Flakes": False,   # nada
                "Unknown": True,        # no existe en el catálogo
            },
        )
        assert compute_price(config, seed_catalog) == base + 50

    def test_topping_lookup_is_case_sensitive(self, seed_catalog):
        config = DesignConfig(layers=[], toppings={"sprinkles": True})
        assert compute_price(config, seed_catalog) == 300

    def test_topper_counts_as_topping(self, seed_catalog):
        config = DesignConfig(layers=[], toppings={"Number Topper": 2})
        assert compute_price(config, seed_catalog) == 460

    def test_texture_lookup_is_case_insensitive(self, seed_catalog):
        config = DesignConfig(layers=[], texture="ribbed")
        assert compute_price(config, seed_catalog) == 350


@pytest.mark.unit
class TestCatalogLookups:
    """Tests de las tablas derivadas del catálogo."""

    def test_height_key_normalization(self):
        assert height_key(4) == "4"
        assert height_key(4.0) == "4"
        assert height_key("4") == "4"
        assert height_key(4.5) == "4.5"
        assert height_key("abc") is None
        assert height_key(True) is None

    def test_float_height_matches_integer_asset(self, seed_catalog):
        config = DesignConfig(layers=[Layer(width=6, flavor="Vanilla", height=4.0)])
        assert compute_price(config, seed_catalog) == 710

    def test_unknown_height_adds_nothing(self, seed_catalog):
        config = DesignConfig(layers=[Layer(width=6, flavor="Vanilla", height=4.5)])
        assert compute_price(config, seed_catalog) == 660

    def test_unknown_shape_uses_multiplier_one(self, seed_catalog):
        config = DesignConfig(shape="Hexagon", layers=[Layer(width=6, flavor="Vanilla", height=3)])
        assert compute_price(config, seed_catalog) == 660

    def test_unknown_flavor_adds_nothing(self, seed_catalog):
        config = DesignConfig(layers=[Layer(width=6, flavor="Durian", height=3)])
        assert compute_price(config, seed_catalog) == 660

    def test_unavailable_assets_are_ignored(self):
        catalog = [
            AssetEntry(type=AssetType.FLAVOR, name="Ube", price_modifier=Decimal("60"), is_available=False),
        ]
        config = DesignConfig(layers=[Layer(width=6, flavor="Ube", height=3)])

        assert compute_price(config, catalog) == 660
        assert compute_price(config, catalog, include_unavailable=True) == 720

    def test_zero_multiplier_falls_back_to_one(self):
        catalog = [AssetEntry(type=AssetType.SHAPE, name="Star", metadata={"multiplier": 0})]
        lookups = build_asset_lookups(catalog)
        assert lookups.shape_multipliers["star"] == Decimal("1")

    def test_engine_uses_configured_rules(self, seed_catalog):
        engine = PricingEngine(PricingRules(base_fee=0, layer_diameter_cost=60))
        config = DesignConfig(layers=[Layer(width=6, flavor="Vanilla", height=3)])
        assert engine.compute(config, seed_catalog) == 360
