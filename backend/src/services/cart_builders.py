"""Cart construction for each service category.

A cart builder turns what the attendant ticked on the form (a *selection*)
into an ordered list of priced line items and a total. Builders are pure:
no database, no clock, same input gives the same cart.

Selections arrive as a tagged union keyed by ``category``:

    {"category": "barbing", "service_type": "adult_male_cut"}
    {"category": "charging", "devices": ["android"], "port_number": 3}
    {"category": "computer", "services": {"print_bw": {"enabled": true, "quantity": 10}}}

The priced cart is stored on the transaction as ``service_details`` and can be
rebuilt from there with ``Cart.from_details``.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from src.api.middleware.error_handler import ValidationException
from src.models.transactions import ServiceCategory
from src.services.catalog import (
    BARBING_SERVICES,
    COMPUTER_SERVICES,
    DEVICE_TYPES,
    PriceRule,
)


CHARGING_PORTS = range(1, 11)

# ASCII digits only, optionally with a decimal part
_QUANTITY_TEXT = re.compile(r"[0-9]+(\.[0-9]+)?")


# ===== Selections (builder input) =====

class BarbingSelection(BaseModel):
    """One haircut per transaction."""
    category: Literal["barbing"] = "barbing"
    service_type: Optional[str] = Field(None, description="Barbing service code, e.g. adult_male_cut")


class ChargingSelection(BaseModel):
    """Devices left on one charging port."""
    category: Literal["charging"] = "charging"
    devices: List[str] = Field(default_factory=list, description="Device type codes")
    port_number: Optional[int] = Field(None, description="Charging port (1-10)")


class ServiceToggle(BaseModel):
    """Checkbox plus quantity box for one computer service.

    Quantity is kept loose on purpose: whatever the form sent is coerced later
    and anything that is not a positive whole number deselects the service.
    """
    enabled: bool = False
    quantity: Any = 0


class ComputerSelection(BaseModel):
    """Any mix of printing, copying, scanning, binding and lamination."""
    category: Literal["computer"] = "computer"
    services: Dict[str, ServiceToggle] = Field(default_factory=dict)


ServiceSelection = Annotated[
    Union[BarbingSelection, ChargingSelection, ComputerSelection],
    Field(discriminator="category"),
]


# ===== Cart =====

def _json_number(value: Decimal) -> Union[int, float]:
    return int(value) if value == value.to_integral_value() else float(value)


@dataclass(frozen=True)
class LineItem:
    """One priced unit of work within a cart."""
    code: str
    name: str
    quantity: int
    unit_price: Decimal
    price: Decimal
    item_type: str

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": _json_number(self.unit_price),
            "price": _json_number(self.price),
            "type": self.item_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(
            code=data["code"],
            name=data["name"],
            quantity=int(data["quantity"]),
            unit_price=Decimal(str(data["unit_price"])),
            price=Decimal(str(data["price"])),
            item_type=data["type"],
        )


@dataclass
class Cart:
    """Priced line items for one category plus category-specific extras."""
    category: ServiceCategory
    items: List[LineItem] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_details(self) -> dict:
        """JSON payload stored as transactions.service_details."""
        return {
            "category": self.category.value,
            "items": [item.to_dict() for item in self.items],
            "total": _json_number(self.total),
            **self.extras,
        }

    @classmethod
    def from_details(cls, details: dict) -> "Cart":
        extras = {
            key: value for key, value in details.items()
            if key not in ("category", "items", "total")
        }
        return cls(
            category=ServiceCategory(details["category"]),
            items=[LineItem.from_dict(item) for item in details.get("items", [])],
            extras=extras,
        )


def coerce_quantity(value: Any) -> int:
    """Positive whole quantity, or 0 meaning "not selected".

    Numbers and numeric strings are treated alike: ``10``, ``10.0`` and
    ``"10.0"`` all give 10, while ``"2.5"`` and ``2.5`` both give 0.

    >>> coerce_quantity("12"), coerce_quantity("3.0"), coerce_quantity(-1), coerce_quantity("abc")
    (12, 3, 0, 0)
    """
    if isinstance(value, str):
        text = value.strip()
        if not _QUANTITY_TEXT.fullmatch(text):
            return 0
        value = Decimal(text)

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float):
        if not value.is_integer():  # also false for nan and inf
            return 0
        quantity = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            return 0
        quantity = int(value)
    else:
        return 0
    return quantity if quantity > 0 else 0


def _unit_word(rule: PriceRule, quantity: int) -> str:
    return rule.unit_name if quantity == 1 else f"{rule.unit_name}s"


# ===== Builders =====

class CartBuilder(ABC):
    """Turns a category's form selection into a priced cart."""

    category: ServiceCategory

    @abstractmethod
    def validate(self, selection) -> None:
        """Reject structurally invalid selections with ValidationException."""

    @abstractmethod
    def compute_line_items(self, selection) -> List[LineItem]:
        """Priced items for everything selected, in display order."""

    def extras(self, selection) -> Dict[str, Any]:
        return {}

    def build(self, selection) -> Cart:
        self.validate(selection)
        return Cart(
            category=self.category,
            items=self.compute_line_items(selection),
            extras=self.extras(selection),
        )


class BarbingCartBuilder(CartBuilder):
    category = ServiceCategory.BARBING

    def validate(self, selection: BarbingSelection) -> None:
        if selection.service_type and selection.service_type not in BARBING_SERVICES:
            raise ValidationException(
                "Unknown barbing service",
                errors={"service_type": selection.service_type},
            )

    def compute_line_items(self, selection: BarbingSelection) -> List[LineItem]:
        if not selection.service_type:
            return []
        rule = BARBING_SERVICES[selection.service_type]
        return [
            LineItem(
                code=rule.code,
                name=rule.label,
                quantity=1,
                unit_price=rule.base_price,
                price=rule.price(),
                item_type=rule.item_type,
            )
        ]

    def extras(self, selection: BarbingSelection) -> Dict[str, Any]:
        if not selection.service_type:
            return {}
        return {"service_type": BARBING_SERVICES[selection.service_type].label}


class ChargingCartBuilder(CartBuilder):
    category = ServiceCategory.CHARGING

    def validate(self, selection: ChargingSelection) -> None:
        unknown = [code for code in selection.devices if code not in DEVICE_TYPES]
        if unknown:
            raise ValidationException("Unknown device type", errors={"devices": unknown})
        if len(set(selection.devices)) != len(selection.devices):
            raise ValidationException(
                "Each device type can be selected once",
                errors={"devices": selection.devices},
            )
        if selection.devices and selection.port_number not in CHARGING_PORTS:
            raise ValidationException(
                "Select a charging port between 1 and 10",
                errors={"port_number": selection.port_number},
            )

    def compute_line_items(self, selection: ChargingSelection) -> List[LineItem]:
        items = []
        for code in selection.devices:
            rule = DEVICE_TYPES[code]
            items.append(
                LineItem(
                    code=rule.code,
                    name=rule.label,
                    quantity=1,
                    unit_price=rule.base_price,
                    price=rule.price(),
                    item_type=rule.item_type,
                )
            )
        return items

    def extras(self, selection: ChargingSelection) -> Dict[str, Any]:
        if not selection.devices:
            return {}
        return {"port_number": selection.port_number}


class ComputerCartBuilder(CartBuilder):
    category = ServiceCategory.COMPUTER

    def validate(self, selection: ComputerSelection) -> None:
        unknown = sorted(code for code in selection.services if code not in COMPUTER_SERVICES)
        if unknown:
            raise ValidationException("Unknown computer service", errors={"services": unknown})

    def compute_line_items(self, selection: ComputerSelection) -> List[LineItem]:
        items = []
        # Catalog order, not request order, so identical selections give identical carts
        for code, rule in COMPUTER_SERVICES.items():
            toggle = selection.services.get(code)
            if toggle is None or not toggle.enabled:
                continue
            quantity = coerce_quantity(toggle.quantity)
            if quantity == 0:
                continue
            items.append(
                LineItem(
                    code=code,
                    name=f"{rule.label} ({quantity} {_unit_word(rule, quantity)})",
                    quantity=quantity,
                    unit_price=rule.unit_price,
                    price=rule.price(quantity),
                    item_type=rule.item_type,
                )
            )
        return items

    def extras(self, selection: ComputerSelection) -> Dict[str, Any]:
        return {"total_services": len(self.compute_line_items(selection))}


_BUILDERS: Dict[ServiceCategory, CartBuilder] = {
    builder.category: builder
    for builder in (BarbingCartBuilder(), ChargingCartBuilder(), ComputerCartBuilder())
}


def get_cart_builder(category: ServiceCategory) -> CartBuilder:
    """Builder registered for a category."""
    return _BUILDERS[ServiceCategory(category)]


def build_cart(selection) -> Cart:
    """Build the cart for a selection using its category's builder."""
    return get_cart_builder(ServiceCategory(selection.category)).build(selection)
