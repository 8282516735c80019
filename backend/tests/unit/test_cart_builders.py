"""Tests for per-category cart construction."""
from decimal import Decimal

import pytest
from pydantic import TypeAdapter, ValidationError

from src.api.middleware.error_handler import ValidationException
from src.models.transactions import ServiceCategory
from src.services.cart_builders import (
    BarbingSelection,
    Cart,
    ChargingSelection,
    ComputerSelection,
    ServiceSelection,
    build_cart,
    coerce_quantity,
    get_cart_builder,
)


def computer(**services):
    return ComputerSelection(services=services)


@pytest.mark.unit
class TestCoerceQuantity:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, 5),
            ("12", 12),
            (" 7 ", 7),
            (3.0, 3),
            (Decimal("4"), 4),
            (0, 0),
            (-2, 0),
            ("-3", 0),
            ("2.5", 0),
            ("10.0", 10),
            (" 10.00 ", 10),
            (10.0, 10),
            ("10.50", 0),
            ("1e3", 0),
            (2.5, 0),
            ("abc", 0),
            ("", 0),
            (None, 0),
            (True, 0),
            (float("nan"), 0),
            (float("inf"), 0),
            (Decimal("NaN"), 0),
            ("١٢", 0),
        ],
    )
    def test_values(self, value, expected):
        assert coerce_quantity(value) == expected


@pytest.mark.unit
class TestBarbing:

    def test_one_haircut(self):
        cart = build_cart(BarbingSelection(service_type="adult_male_cut"))

        assert cart.category is ServiceCategory.BARBING
        assert cart.total == Decimal("1000")
        assert len(cart.items) == 1
        assert cart.items[0].name == "Adult Male Cut"
        assert cart.items[0].item_type == "barbing"
        assert cart.extras == {"service_type": "Adult Male Cut"}

    def test_nothing_selected_is_empty(self):
        cart = build_cart(BarbingSelection())

        assert cart.is_empty
        assert cart.total == Decimal("0")

    def test_unknown_service_rejected(self):
        with pytest.raises(ValidationException):
            build_cart(BarbingSelection(service_type="beard_dye"))


@pytest.mark.unit
class TestCharging:

    def test_devices_are_summed(self):
        cart = build_cart(ChargingSelection(devices=["iphone", "laptop"], port_number=4))

        assert cart.total == Decimal("700")
        assert [item.name for item in cart.items] == ["iPhone", "Laptop"]
        assert cart.extras == {"port_number": 4}

    def test_port_required_with_devices(self):
        with pytest.raises(ValidationException) as exc_info:
            build_cart(ChargingSelection(devices=["android"]))
        assert "port_number" in exc_info.value.details["errors"]

    @pytest.mark.parametrize("port", [0, 11, -1])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValidationException):
            build_cart(ChargingSelection(devices=["android"], port_number=port))

    def test_duplicate_device_rejected(self):
        with pytest.raises(ValidationException):
            build_cart(ChargingSelection(devices=["android", "android"], port_number=1))

    def test_unknown_device_rejected(self):
        with pytest.raises(ValidationException):
            build_cart(ChargingSelection(devices=["tablet"], port_number=1))

    def test_no_devices_is_empty(self):
        cart = build_cart(ChargingSelection(port_number=3))

        assert cart.is_empty
        assert cart.extras == {}


@pytest.mark.unit
class TestComputer:

    def test_printing_and_lamination(self):
        cart = build_cart(computer(
            print_bw={"enabled": True, "quantity": 10},
            lamination_a4={"enabled": True, "quantity": 2},
        ))

        assert cart.total == Decimal("900")
        assert [item.name for item in cart.items] == [
            "B&W Printing (10 pages)",
            "A4 Lamination (2 items)",
        ]
        assert cart.extras == {"total_services": 2}

    def test_singular_unit_name(self):
        cart = build_cart(computer(scan_standard={"enabled": True, "quantity": 1}))

        assert cart.items[0].name == "Scanning (1 page)"
        assert cart.total == Decimal("30")

    def test_binding_with_zero_pages_is_excluded(self):
        cart = build_cart(computer(binding_comb={"enabled": True, "quantity": 0}))

        assert cart.is_empty

    def test_binding_with_pages(self):
        cart = build_cart(computer(binding_comb={"enabled": True, "quantity": 10}))

        assert cart.total == Decimal("120")
        assert cart.items[0].unit_price == Decimal("2")

    def test_disabled_service_ignored(self):
        cart = build_cart(computer(
            print_color={"enabled": False, "quantity": 5},
            copy_bw_single={"enabled": True, "quantity": "3"},
        ))

        assert [item.code for item in cart.items] == ["copy_bw_single"]
        assert cart.total == Decimal("60")

    def test_items_follow_catalog_order(self):
        cart = build_cart(computer(
            lamination_a3={"enabled": True, "quantity": 1},
            print_bw={"enabled": True, "quantity": 1},
        ))

        assert [item.code for item in cart.items] == ["print_bw", "lamination_a3"]

    def test_garbage_quantity_deselects(self):
        cart = build_cart(computer(print_bw={"enabled": True, "quantity": "lots"}))

        assert cart.is_empty

    def test_unknown_service_rejected(self):
        with pytest.raises(ValidationException):
            build_cart(computer(fax={"enabled": True, "quantity": 1}))


@pytest.mark.unit
def test_selection_union_dispatches_on_category():
    adapter = TypeAdapter(ServiceSelection)

    selection = adapter.validate_python({"category": "charging", "devices": ["other"], "port_number": 2})

    assert isinstance(selection, ChargingSelection)
    assert get_cart_builder(selection.category).category is ServiceCategory.CHARGING


@pytest.mark.unit
def test_selection_union_rejects_unknown_category():
    adapter = TypeAdapter(ServiceSelection)

    with pytest.raises(ValidationError):
        adapter.validate_python({"category": "laundry"})


@pytest.mark.unit
def test_details_rebuild_the_same_cart():
    cart = build_cart(computer(
        print_bw={"enabled": True, "quantity": 10},
        binding_wire={"enabled": True, "quantity": 25},
    ))

    details = cart.to_details()
    rebuilt = Cart.from_details(details)

    assert details["category"] == "computer"
    assert details["total"] == 700
    assert details["items"][0]["type"] == "printing"
    assert rebuilt.items == cart.items
    assert rebuilt.total == cart.total
    assert rebuilt.extras == {"total_services": 2}
