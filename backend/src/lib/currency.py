"""Naira formatting helpers."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union


NAIRA_SIGN = "₦"


def format_naira(amount: Union[int, float, Decimal]) -> str:
    """
    Format an amount with the naira sign and thousands separators.

    At most two decimal places are shown and trailing zeros are dropped.

    >>> format_naira(1000)
    '₦1,000'
    >>> format_naira(Decimal("1250.50"))
    '₦1,250.5'
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}".rstrip("0").rstrip(".")
    return f"{sign}{NAIRA_SIGN}{digits}"
