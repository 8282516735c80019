"""Tests for naira formatting."""
from decimal import Decimal

import pytest

from src.lib.currency import format_naira


@pytest.mark.unit
@pytest.mark.parametrize(
    "amount,expected",
    [
        (0, "₦0"),
        (50, "₦50"),
        (1000, "₦1,000"),
        (Decimal("1000.00"), "₦1,000"),
        (Decimal("1250.5"), "₦1,250.5"),
        (Decimal("1250.50"), "₦1,250.5"),
        (Decimal("1250.75"), "₦1,250.75"),
        (Decimal("99.995"), "₦100"),
        (1234567, "₦1,234,567"),
        (-150, "-₦150"),
    ],
)
def test_format_naira(amount, expected):
    assert format_naira(amount) == expected
