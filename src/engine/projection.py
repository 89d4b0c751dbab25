"""Month-by-month hold projection after refinance.

Pure functions: Decimal in, dataclass out. No I/O.
"""

from dataclasses import dataclass, field
from decimal import Decimal

HOLD_MONTHS = 24

ZERO = Decimal("0")
ONE = Decimal("1")
MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class MonthlyCashflow:
    month: int
    rent: Decimal
    opex: Decimal
    btl_interest: Decimal

    @property
    def net(self) -> Decimal:
        return self.rent - self.opex - self.btl_interest


@dataclass(frozen=True)
class HoldProjection:
    months: list[MonthlyCashflow] = field(default_factory=list)
    total_rent: Decimal = ZERO
    total_opex: Decimal = ZERO
    total_btl_interest: Decimal = ZERO

    @property
    def net_cashflow(self) -> Decimal:
        return self.total_rent - self.total_opex - self.total_btl_interest


def growth_factor(annual_growth: Decimal, month: int) -> Decimal:
    """(1 + g) ** (month / 12), by fraction of year rather than a monthly rate.

    Zero growth is exactly 1. A base at or below zero (growth of -100% or
    worse) has no real fractional power and is treated as 0.
    """
    if annual_growth == 0:
        return ONE
    base = ONE + annual_growth
    if base <= 0:
        return ZERO
    return base ** (Decimal(month) / MONTHS_PER_YEAR)


def project_hold(
    monthly_rent: Decimal,
    monthly_opex: Decimal,
    btl_payment: Decimal,
    rent_growth_annual: Decimal = ZERO,
    expense_growth_annual: Decimal = ZERO,
    months: int = HOLD_MONTHS,
) -> HoldProjection:
    """Project rent, opex and BTL interest for months 1..months.

    Rent and opex grow independently; interest-only BTL payment is constant.
    """
    rows: list[MonthlyCashflow] = []
    total_rent = ZERO
    total_opex = ZERO

    for month in range(1, months + 1):
        rent = monthly_rent * growth_factor(rent_growth_annual, month)
        opex = monthly_opex * growth_factor(expense_growth_annual, month)
        total_rent += rent
        total_opex += opex
        rows.append(MonthlyCashflow(month=month, rent=rent, opex=opex, btl_interest=btl_payment))

    return HoldProjection(
        months=rows,
        total_rent=total_rent,
        total_opex=total_opex,
        total_btl_interest=btl_payment * months,
    )
