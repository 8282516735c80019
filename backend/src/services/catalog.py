"""Pricing catalog for every service the shop sells.

Three pricing shapes are in use:

* per-unit: ``unit_price * quantity`` (printing, copying, scanning, lamination)
* base + per-unit: ``base_price + unit_price * quantity`` (binding)
* fixed: ``base_price`` whatever the quantity (barbing, device charging)

All prices are whole naira. Looking up an unknown code is a programming error
and raises ``KeyError``.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List

from src.models.transactions import ServiceCategory


class PricingShape(str, Enum):
    PER_UNIT = "per_unit"
    BASE_PLUS_PER_UNIT = "base_plus_per_unit"
    FIXED = "fixed"


@dataclass(frozen=True)
class PriceRule:
    """How one service code is priced."""
    code: str
    label: str
    category: ServiceCategory
    item_type: str
    shape: PricingShape
    unit_price: Decimal = Decimal("0")
    base_price: Decimal = Decimal("0")
    unit_name: str = "item"

    def price(self, quantity: int = 1) -> Decimal:
        if self.shape is PricingShape.FIXED:
            return self.base_price
        if self.shape is PricingShape.BASE_PLUS_PER_UNIT:
            return self.base_price + self.unit_price * quantity
        return self.unit_price * quantity


def _fixed(code, label, category, item_type, price) -> PriceRule:
    return PriceRule(
        code=code,
        label=label,
        category=category,
        item_type=item_type,
        shape=PricingShape.FIXED,
        base_price=Decimal(price),
    )


def _per_unit(code, label, item_type, unit_price, unit_name="page") -> PriceRule:
    return PriceRule(
        code=code,
        label=label,
        category=ServiceCategory.COMPUTER,
        item_type=item_type,
        shape=PricingShape.PER_UNIT,
        unit_price=Decimal(unit_price),
        unit_name=unit_name,
    )


# Binding is a base fee plus this much per page
BINDING_PER_PAGE = Decimal("2")


BARBING_SERVICES: Dict[str, PriceRule] = {
    rule.code: rule
    for rule in (
        _fixed("adult_male_cut", "Adult Male Cut", ServiceCategory.BARBING, "barbing", 1000),
        _fixed("adult_female_cut", "Adult Female Cut", ServiceCategory.BARBING, "barbing", 1000),
        _fixed("children_cut", "Children's Cut", ServiceCategory.BARBING, "barbing", 500),
        _fixed("toddler_cut", "Toddler's Cut", ServiceCategory.BARBING, "barbing", 500),
    )
}

DEVICE_TYPES: Dict[str, PriceRule] = {
    rule.code: rule
    for rule in (
        _fixed("iphone", "iPhone", ServiceCategory.CHARGING, "charging", 200),
        _fixed("android", "Android", ServiceCategory.CHARGING, "charging", 150),
        _fixed("power_bank", "Power Bank", ServiceCategory.CHARGING, "charging", 300),
        _fixed("laptop", "Laptop", ServiceCategory.CHARGING, "charging", 500),
        _fixed("other", "Other", ServiceCategory.CHARGING, "charging", 200),
    )
}

# Order matters: it is the order line items appear on the receipt
COMPUTER_SERVICES: Dict[str, PriceRule] = {
    rule.code: rule
    for rule in (
        _per_unit("print_bw", "B&W Printing", "printing", 50),
        _per_unit("print_color", "Color Printing", "printing", 100),
        _per_unit("copy_bw_single", "B&W Single-sided", "copying", 20),
        _per_unit("copy_bw_double", "B&W Double-sided", "copying", 30),
        _per_unit("copy_color_single", "Color Single-sided", "copying", 50),
        _per_unit("copy_color_double", "Color Double-sided", "copying", 70),
        _per_unit("scan_standard", "Scanning", "scanning", 30),
        PriceRule(
            code="binding_comb",
            label="Comb Binding",
            category=ServiceCategory.COMPUTER,
            item_type="binding",
            shape=PricingShape.BASE_PLUS_PER_UNIT,
            base_price=Decimal("100"),
            unit_price=BINDING_PER_PAGE,
            unit_name="page",
        ),
        PriceRule(
            code="binding_wire",
            label="Wire Binding",
            category=ServiceCategory.COMPUTER,
            item_type="binding",
            shape=PricingShape.BASE_PLUS_PER_UNIT,
            base_price=Decimal("150"),
            unit_price=BINDING_PER_PAGE,
            unit_name="page",
        ),
        _per_unit("lamination_a4", "A4 Lamination", "lamination", 200, unit_name="item"),
        _per_unit("lamination_a3", "A3 Lamination", "lamination", 300, unit_name="item"),
    )
}

_ALL_RULES: Dict[str, PriceRule] = {**BARBING_SERVICES, **DEVICE_TYPES, **COMPUTER_SERVICES}


def get_rule(code: str) -> PriceRule:
    """Look up the pricing rule for a service code."""
    return _ALL_RULES[code]


def price_for(code: str, quantity: int = 1) -> Decimal:
    """Price `quantity` units of `code`."""
    return get_rule(code).price(quantity)


def list_catalog(category: ServiceCategory | None = None) -> List[PriceRule]:
    """All rules, optionally limited to one category, in display order."""
    return [
        rule for rule in _ALL_RULES.values()
        if category is None or rule.category == category
    ]
