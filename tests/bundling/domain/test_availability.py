"""Tests for bundle availability arithmetic."""

import pytest

from bundling.sync.availability import (
    ComponentStock,
    InvalidQuantityError,
    mixed_bundle_availability,
    same_product_availability,
)


class TestSameProductAvailability:
    @pytest.mark.parametrize(
        "multiplier, expected",
        [(24, 2), (6, 8), (4, 12), (1, 48)],
    )
    def test_pack_sizes_from_shared_base(self, multiplier, expected):
        assert same_product_availability(48, multiplier) == expected

    def test_multiplier_of_one_is_identity(self):
        for stock in (0, 1, 7, 1000):
            assert same_product_availability(stock, 1) == stock

    def test_stock_below_multiplier_is_zero(self):
        for stock in range(24):
            assert same_product_availability(stock, 24) == 0

    def test_monotonic_in_stock(self):
        values = [same_product_availability(stock, 6) for stock in range(100)]
        assert values == sorted(values)

    def test_floors_partial_packs(self):
        assert same_product_availability(47, 24) == 1

    @pytest.mark.parametrize("multiplier", [0, -1, -24])
    def test_non_positive_multiplier_rejected(self, multiplier):
        with pytest.raises(InvalidQuantityError, match="Multiplier must be a positive number"):
            same_product_availability(48, multiplier)

    def test_invalid_quantity_is_a_value_error(self):
        with pytest.raises(ValueError):
            same_product_availability(10, 0)


class TestMixedBundleAvailability:
    def test_variety_pack_limited_by_scarcest_component(self):
        components = [
            {"stock": 100, "quantity": 6},
            {"stock": 40, "quantity": 4},
            {"stock": 10, "quantity": 2},
        ]
        assert mixed_bundle_availability(components) == 5

    def test_empty_component_list_is_zero(self):
        assert mixed_bundle_availability([]) == 0

    def test_single_component_matches_same_product(self):
        assert mixed_bundle_availability([{"stock": 48, "quantity": 24}]) == 2

    def test_out_of_stock_component_forces_zero(self):
        components = [
            {"stock": 1000, "quantity": 1},
            {"stock": 0, "quantity": 1},
        ]
        assert mixed_bundle_availability(components) == 0

    def test_accepts_component_stock_records(self):
        components = [ComponentStock(stock=12, quantity=3), ComponentStock(stock=9, quantity=2)]
        assert mixed_bundle_availability(components) == 4

    def test_equals_minimum_of_floor_divisions(self):
        components = [
            {"stock": 17, "quantity": 5},
            {"stock": 33, "quantity": 8},
            {"stock": 90, "quantity": 30},
        ]
        assert mixed_bundle_availability(components) == min(17 // 5, 33 // 8, 90 // 30)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_component_quantity_rejected(self, quantity):
        with pytest.raises(InvalidQuantityError, match="Component quantity must be a positive number"):
            mixed_bundle_availability([{"stock": 10, "quantity": 1}, {"stock": 10, "quantity": quantity}])
