"""Tests for the service price list."""
from decimal import Decimal

import pytest

from src.models.transactions import ServiceCategory
from src.services.catalog import (
    BARBING_SERVICES,
    COMPUTER_SERVICES,
    DEVICE_TYPES,
    PricingShape,
    get_rule,
    list_catalog,
    price_for,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "code,expected",
    [
        ("adult_male_cut", 1000),
        ("adult_female_cut", 1000),
        ("children_cut", 500),
        ("toddler_cut", 500),
    ],
)
def test_barbing_prices(code, expected):
    assert price_for(code) == Decimal(expected)


@pytest.mark.unit
@pytest.mark.parametrize(
    "code,expected",
    [("iphone", 200), ("android", 150), ("power_bank", 300), ("laptop", 500), ("other", 200)],
)
def test_device_prices(code, expected):
    assert price_for(code) == Decimal(expected)


@pytest.mark.unit
def test_fixed_price_ignores_quantity():
    assert price_for("adult_male_cut", 3) == Decimal("1000")


@pytest.mark.unit
def test_per_unit_pricing():
    assert price_for("print_bw", 10) == Decimal("500")
    assert price_for("copy_color_double", 3) == Decimal("210")
    assert price_for("lamination_a4", 2) == Decimal("400")


@pytest.mark.unit
def test_binding_is_base_plus_per_page():
    assert get_rule("binding_comb").shape is PricingShape.BASE_PLUS_PER_UNIT
    assert price_for("binding_comb", 10) == Decimal("120")
    assert price_for("binding_wire", 10) == Decimal("170")


@pytest.mark.unit
def test_unknown_code_raises_key_error():
    with pytest.raises(KeyError):
        get_rule("perm")


@pytest.mark.unit
def test_list_catalog_filters_by_category():
    computer = list_catalog(ServiceCategory.COMPUTER)

    assert [rule.code for rule in computer] == list(COMPUTER_SERVICES)
    assert all(rule.category is ServiceCategory.COMPUTER for rule in computer)
    assert len(list_catalog()) == len(BARBING_SERVICES) + len(DEVICE_TYPES) + len(COMPUTER_SERVICES)


@pytest.mark.unit
def test_all_prices_are_whole_naira():
    for rule in list_catalog():
        assert rule.unit_price == rule.unit_price.to_integral_value()
        assert rule.base_price == rule.base_price.to_integral_value()
