"""Cashback loyalty rule.

Non-cashback purchases earn 5% back, rounded half up to the whole naira.
Paying with cashback consumes the full total from the balance and earns
nothing. The rule never clamps: callers must check `can_redeem` first.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from src.lib.settings import settings
from src.models.transactions import PaymentMode


Amount = Union[int, Decimal]

CASHBACK_RATE: Decimal = Decimal(str(settings.cashback_rate))

_WHOLE_NAIRA = Decimal("1")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class SettlementResult:
    """Amounts derived for one sale."""
    amount_charged: Decimal
    cashback_consumed: Decimal
    cashback_earned: Decimal
    new_balance: Decimal


def calculate_cashback(amount: Amount, rate: Decimal = CASHBACK_RATE) -> Decimal:
    """Cashback earned on `amount`, rounded half up to the whole naira.

    >>> calculate_cashback(1000), calculate_cashback(10), calculate_cashback(1010)
    (Decimal('50'), Decimal('1'), Decimal('51'))
    """
    return (Decimal(amount) * rate).quantize(_WHOLE_NAIRA, rounding=ROUND_HALF_UP)


def can_redeem(customer_exists: bool, prior_balance: Amount, total: Amount) -> bool:
    """Whether a known customer's balance covers a positive total."""
    return bool(customer_exists) and Decimal(total) > _ZERO and Decimal(prior_balance) >= Decimal(total)


def settle(total: Amount, payment_mode: PaymentMode, prior_balance: Amount = _ZERO) -> SettlementResult:
    """Derive the charged amount and balance movement for one sale."""
    total = Decimal(total)
    prior_balance = Decimal(prior_balance)

    if PaymentMode(payment_mode) is PaymentMode.CASHBACK:
        charged, consumed, earned = _ZERO, total, _ZERO
    else:
        charged, consumed, earned = total, _ZERO, calculate_cashback(total)

    return SettlementResult(
        amount_charged=charged,
        cashback_consumed=consumed,
        cashback_earned=earned,
        new_balance=prior_balance - consumed + earned,
    )
