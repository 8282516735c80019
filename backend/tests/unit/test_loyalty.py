"""Tests for the cashback rule."""
from decimal import Decimal

import pytest

from src.models.transactions import PaymentMode
from src.services.loyalty import calculate_cashback, can_redeem, settle


@pytest.mark.unit
@pytest.mark.parametrize(
    "amount,expected",
    [
        (1000, 50),
        (150, 8),     # 7.5 rounds half up
        (10, 1),      # 0.5 rounds half up
        (9, 0),       # 0.45 rounds down
        (30, 2),      # 1.5 rounds half up
        (1010, 51),   # 50.5 rounds half up
        (0, 0),
    ],
)
def test_calculate_cashback_rounds_half_up(amount, expected):
    assert calculate_cashback(amount) == Decimal(expected)


@pytest.mark.unit
@pytest.mark.parametrize("mode", [PaymentMode.CASH, PaymentMode.TRANSFER, PaymentMode.POS])
def test_paid_sale_earns_cashback(mode):
    result = settle(Decimal("1000"), mode, Decimal("20"))

    assert result.amount_charged == Decimal("1000")
    assert result.cashback_consumed == Decimal("0")
    assert result.cashback_earned == Decimal("50")
    assert result.new_balance == Decimal("70")


@pytest.mark.unit
def test_cashback_payment_consumes_balance_and_earns_nothing():
    result = settle(Decimal("150"), PaymentMode.CASHBACK, Decimal("200"))

    assert result.amount_charged == Decimal("0")
    assert result.cashback_consumed == Decimal("150")
    assert result.cashback_earned == Decimal("0")
    assert result.new_balance == Decimal("50")


@pytest.mark.unit
def test_first_time_customer_starts_from_zero():
    result = settle(500, PaymentMode.CASH)

    assert result.new_balance == Decimal("25")


@pytest.mark.unit
@pytest.mark.parametrize(
    "exists,balance,total,expected",
    [
        (True, 200, 150, True),
        (True, 150, 150, True),
        (True, 100, 150, False),
        (False, 500, 150, False),
        (True, 100, 0, False),
    ],
)
def test_can_redeem(exists, balance, total, expected):
    assert can_redeem(exists, Decimal(balance), Decimal(total)) is expected
