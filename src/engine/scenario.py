"""Scenario KPI orchestrator: baseline + overrides → bridge, sell and refinance KPIs.

Pure computation. No I/O, no retained state: every call recomputes from scratch.
"""

import functools
from decimal import Decimal, DivisionByZero, InvalidOperation, Overflow, localcontext

from src.engine.opex import monthly_opex
from src.engine.overrides import merge_overrides
from src.engine.payload import is_number
from src.engine.projection import HOLD_MONTHS, project_hold
from src.engine.refinance import DSCR_TARGET, btl_monthly_payment, dscr_capped_loan
from src.models.scenario import (
    ComputedKPIs,
    SalePriceMethod,
    ScenarioBaseline,
    ScenarioOverrides,
    ScenarioResult,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")


def nonfinite_arithmetic(func):
    """Run func with Decimal traps off, so x/0 gives a signed Infinity, 0/0 gives
    NaN and overflow gives Infinity instead of raising.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext() as ctx:
            ctx.traps[InvalidOperation] = False
            ctx.traps[DivisionByZero] = False
            ctx.traps[Overflow] = False
            return func(*args, **kwargs)

    return wrapper


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Plain division: a zero denominator yields a signed Infinity, or NaN for 0/0."""
    return numerator / denominator


def _sale_price(baseline: ScenarioBaseline) -> Decimal:
    custom = baseline.sale_price_gbp
    if (
        baseline.sale_price_method is SalePriceMethod.CUSTOM
        and is_number(custom)
        and custom != 0
    ):
        return custom
    return baseline.refi_value_gbp


@nonfinite_arithmetic
def recompute_kpis(
    baseline: ScenarioBaseline,
    overrides: ScenarioOverrides | None = None,
) -> ComputedKPIs:
    """Recompute every KPI for a baseline with optional user overrides."""
    merged = merge_overrides(baseline, overrides)
    b = merged.baseline
    refurb_total = merged.refurb_total_gbp

    # ------------------------------------------------------------------
    # Bridge period
    # ------------------------------------------------------------------
    purchase_price = b.purchase_price_gbp
    deposit = purchase_price - b.bridge_loan_gbp
    refurb_cash = ZERO if b.funds_refurb else refurb_total
    bridge_principal = b.bridge_loan_gbp + refurb_total if b.funds_refurb else b.bridge_loan_gbp

    # Simple interest-only over the full term
    bridge_term = b.bridge_term_months
    bridge_interest = bridge_principal * (b.bridge_rate_annual / MONTHS_PER_YEAR) * bridge_term

    exit_fee = bridge_principal * b.bridge_exit_fee_pct
    bridge_fees = b.bridge_arrangement_fee_gbp + exit_fee

    months_rented = max(ZERO, bridge_term - b.refurb_months)

    total_cash_in = deposit + refurb_cash + b.sdlt_gbp + b.legal_fees_gbp + bridge_fees

    annual_rent = merged.monthly_rent_gbp * MONTHS_PER_YEAR
    yield_on_cost = _ratio(annual_rent, purchase_price + refurb_total) * HUNDRED

    # ------------------------------------------------------------------
    # Exit A: sell
    # ------------------------------------------------------------------
    sale_price = _sale_price(b)
    selling_costs = sale_price * b.selling_costs_pct

    # Arrangement fee was paid upfront; only the exit fee is repaid at exit
    repay_bridge = bridge_principal + bridge_interest + exit_fee

    # bridge_fees is added back: the exit fee sits in both total_cash_in and repay_bridge
    net_profit = sale_price - selling_costs - repay_bridge - total_cash_in + bridge_fees
    roi = _ratio(net_profit, total_cash_in) * HUNDRED

    # ------------------------------------------------------------------
    # Exit B: refinance and hold
    # ------------------------------------------------------------------
    refi_value = b.refi_value_gbp
    btl_rate = b.btl_rate_annual
    btl_loan_planned = refi_value * b.btl_ltv_max

    opex = monthly_opex(
        monthly_rent=merged.monthly_rent_gbp,
        management_pct=merged.management_pct,
        voids_pct=merged.voids_pct,
        maintenance_mode=merged.maintenance_mode,
        maintenance_pct_of_value_pa=merged.maintenance_pct_of_value_pa,
        maintenance_gbp_per_month=merged.maintenance_gbp_per_month,
        property_value=refi_value,
        insurance_pa=merged.insurance_gbp_pa,
        safety_certs_pa=merged.safety_certs_gbp_pa,
        ground_rent_pa=merged.ground_rent_gbp_pa,
        service_charge_pa=merged.service_charge_gbp_pa,
    )
    rent_after_opex = merged.monthly_rent_gbp - opex

    sizing = dscr_capped_loan(
        planned_loan=btl_loan_planned,
        rent_after_opex=rent_after_opex,
        annual_rate=btl_rate,
        product_fee=b.btl_product_fee_gbp,
        fee_added_to_loan=b.btl_product_fee_added_to_loan,
        dscr_target=DSCR_TARGET,
    )

    cash_from_refi = sizing.final_loan_gbp - repay_bridge
    net_cash_left_in = total_cash_in - cash_from_refi  # Negative: more cash out than in

    btl_payment = btl_monthly_payment(sizing.final_loan_gbp, btl_rate)
    dscr_month1 = _ratio(rent_after_opex, btl_payment)

    # ------------------------------------------------------------------
    # 24-month projection
    # ------------------------------------------------------------------
    hold = project_hold(
        monthly_rent=merged.monthly_rent_gbp,
        monthly_opex=opex,
        btl_payment=btl_payment,
        rent_growth_annual=b.rent_growth_annual,
        expense_growth_annual=b.expense_growth_annual,
        months=HOLD_MONTHS,
    )
    net_cashflow = hold.net_cashflow
    # Only meaningful while net_cash_left_in > 0
    roi_cash_on_cash = _ratio(net_cashflow, net_cash_left_in) * HUNDRED

    return ComputedKPIs(
        refurb_total_gbp=refurb_total,
        deposit_gbp=deposit,
        refurb_cash_gbp=refurb_cash,
        bridge_interest_gbp=bridge_interest,
        bridge_fees_gbp=bridge_fees,
        months_on_bridge=bridge_term,
        months_refurb=b.refurb_months,
        months_rented=months_rented,
        total_cash_in_gbp=total_cash_in,
        yield_on_cost_percent=yield_on_cost,
        sell_price_gbp=sale_price,
        selling_costs_gbp=selling_costs,
        repay_bridge_gbp=repay_bridge,
        net_profit_gbp=net_profit,
        roi_percent=roi,
        btl_loan_planned_gbp=btl_loan_planned,
        btl_loan_final_gbp=sizing.final_loan_gbp,
        btl_product_fee_actual_gbp=sizing.final_fee_gbp,
        cash_from_refi_gbp=cash_from_refi,
        net_cash_left_in_gbp=net_cash_left_in,
        monthly_rent_after_opex_gbp=rent_after_opex,
        monthly_opex_gbp=opex,
        monthly_btl_payment_gbp=btl_payment,
        dscr_month1=dscr_month1,
        total_rent_24m_gbp=hold.total_rent,
        total_opex_24m_gbp=hold.total_opex,
        total_btl_interest_24m_gbp=hold.total_btl_interest,
        net_cashflow_24m_gbp=net_cashflow,
        roi_cash_on_cash_percent_24m=roi_cash_on_cash,
    )


@nonfinite_arithmetic
def compare_kpis(current: ComputedKPIs, baseline: ComputedKPIs) -> dict[str, Decimal]:
    """Per-KPI delta (current - baseline)."""
    before = baseline.as_dict()
    return {name: value - before[name] for name, value in current.as_dict().items()}


def run_scenario(
    baseline: ScenarioBaseline,
    overrides: ScenarioOverrides | None = None,
) -> ScenarioResult:
    """KPIs with overrides, KPIs without, and the deltas between them."""
    kpis = recompute_kpis(baseline, overrides)
    baseline_kpis = recompute_kpis(baseline)
    return ScenarioResult(
        kpis=kpis,
        baseline_kpis=baseline_kpis,
        deltas=compare_kpis(kpis, baseline_kpis),
    )
