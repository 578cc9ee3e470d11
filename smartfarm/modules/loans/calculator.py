"""
Fixed-rate amortization.

    r = annual_rate / 100 / 12
    monthly = P * r * (1 + r)^n / ((1 + r)^n - 1)
    total = monthly * n

A zero rate degenerates to equal principal-only installments, P / n.
Results keep full Decimal precision; use ``to_cents`` when presenting or
storing them.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Union

from smartfarm.core.exceptions import ValidationError
from smartfarm.modules.loans.models import LoanType

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")

DEFAULT_INTEREST_RATE = Decimal("8.5")

INTEREST_RATES = {
    LoanType.SEASONAL: Decimal("7.5"),
    LoanType.EQUIPMENT: Decimal("8.5"),
    LoanType.LAND: Decimal("6.5"),
    LoanType.EMERGENCY: Decimal("9.5"),
}


@dataclass(frozen=True)
class Schedule:
    monthly_payment: Decimal
    total_payment: Decimal


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary float expansion
    return Decimal(str(value))


def to_cents(value: Number) -> Decimal:
    """Round half-up to two decimal places"""
    return _to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def interest_rate_for(loan_type) -> Decimal:
    """Annual rate (percent) for a loan category, 8.5 for anything unknown"""
    try:
        return INTEREST_RATES[LoanType(loan_type)]
    except ValueError:
        return DEFAULT_INTEREST_RATE


def compute_schedule(principal: Number, annual_rate_percent: Number, months: int) -> Schedule:
    """Monthly installment and total repayment for a fixed-rate loan"""
    principal = _to_decimal(principal)
    annual_rate_percent = _to_decimal(annual_rate_percent)

    if principal <= 0:
        raise ValidationError("amount", "Principal must be greater than zero")
    if annual_rate_percent < 0:
        raise ValidationError("interest_rate", "Interest rate cannot be negative")
    if isinstance(months, bool) or not isinstance(months, int) or months < 1:
        raise ValidationError("duration_months", "Duration must be at least one month")

    with localcontext() as ctx:
        ctx.prec = 34

        if annual_rate_percent == 0:
            monthly_payment = principal / months
        else:
            monthly_rate = annual_rate_percent / 100 / 12
            growth = (1 + monthly_rate) ** months
            monthly_payment = principal * monthly_rate * growth / (growth - 1)

        total_payment = monthly_payment * months

    return Schedule(monthly_payment=monthly_payment, total_payment=total_payment)
