"""Buy-to-let refinance sizing: interest-only payment and DSCR-capped loan.

Pure functions: Decimal in, dataclass out. No I/O.
"""

from dataclasses import dataclass
from decimal import Decimal

DSCR_TARGET = Decimal("1.20")
MAX_FEE_ITERATIONS = 10
CONVERGENCE_GBP = Decimal("1")

MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class RefinanceSizing:
    final_loan_gbp: Decimal
    final_fee_gbp: Decimal
    capped: bool  # True when the DSCR ceiling reduced the loan
    iterations: int = 0  # Fixed-point steps used when the fee is added to the loan


def btl_monthly_payment(loan: Decimal, annual_rate: Decimal) -> Decimal:
    """Interest-only monthly payment."""
    return loan * annual_rate / MONTHS_PER_YEAR


def dscr_max_loan(
    rent_after_opex: Decimal,
    annual_rate: Decimal,
    dscr_target: Decimal = DSCR_TARGET,
) -> Decimal | None:
    """Largest loan whose month-1 payment keeps DSCR at the target.

    Zero or negative rent after opex supports no debt at all, so the ceiling is 0.
    A zero or negative rate imposes no payment, so there is no ceiling (None).
    """
    if rent_after_opex <= 0:
        return Decimal("0")
    if annual_rate <= 0 or dscr_target <= 0:
        return None
    max_payment = rent_after_opex / dscr_target
    return max_payment * MONTHS_PER_YEAR / annual_rate


def _cap(amount: Decimal, ceiling: Decimal | None) -> Decimal:
    return amount if ceiling is None else min(amount, ceiling)


def dscr_capped_loan(
    planned_loan: Decimal,
    rent_after_opex: Decimal,
    annual_rate: Decimal,
    product_fee: Decimal,
    fee_added_to_loan: bool,
    dscr_target: Decimal = DSCR_TARGET,
) -> RefinanceSizing:
    """Size the refinance loan subject to the DSCR target.

    Fee paid separately: min(planned, ceiling).

    Fee added to loan: the product fee is a flat amount, solved by fixed-point
    iteration (at most MAX_FEE_ITERATIONS, converged when the fee-inclusive
    candidate moves by less than CONVERGENCE_GBP). Each step adds the fee to the
    candidate principal, caps the gross amount at the ceiling, then backs the fee
    out for the next step. Without convergence, falls back to
    min(planned + fee, ceiling).
    """
    ceiling = dscr_max_loan(rent_after_opex, annual_rate, dscr_target)

    if not fee_added_to_loan:
        final = _cap(planned_loan, ceiling)
        return RefinanceSizing(final, product_fee, capped=final < planned_loan)

    gross_planned = planned_loan + product_fee
    principal = planned_loan
    for i in range(MAX_FEE_ITERATIONS):
        with_fee = principal + product_fee
        candidate = _cap(with_fee, ceiling)
        if abs(candidate - with_fee) < CONVERGENCE_GBP:
            return RefinanceSizing(
                candidate, product_fee, capped=candidate < gross_planned, iterations=i + 1
            )
        principal = candidate - product_fee

    final = _cap(gross_planned, ceiling)
    return RefinanceSizing(
        final, product_fee, capped=final < gross_planned, iterations=MAX_FEE_ITERATIONS
    )
