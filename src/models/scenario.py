"""Scenario model data types: baseline inputs, user overrides, computed KPIs.

Units: GBP for money, decimal fractions for rates (Decimal("0.10") = 10%).
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum
from typing import Optional


class MaintenanceMode(Enum):
    VALUE_PCT_PA = "value_pct_pa"
    GBP_PER_MONTH = "gbp_per_month"


class SalePriceMethod(Enum):
    REFI_VALUE = "refi_value"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ScenarioBaseline:
    # Acquisition
    purchase_price_gbp: Decimal

    # Refurb (refurb_total_gbp is advisory; rooms + EPC are authoritative)
    refurb_total_gbp: Decimal = Decimal("0")
    rooms_baseline: dict[str, Decimal] = field(default_factory=dict)
    epc_total_gbp: Decimal = Decimal("0")

    # Income
    monthly_rent_gbp: Decimal = Decimal("0")

    # Bridge financing
    bridge_loan_gbp: Decimal = Decimal("0")
    bridge_rate_annual: Decimal = Decimal("0.089")
    bridge_term_months: Decimal = Decimal("12")
    bridge_arrangement_fee_gbp: Decimal = Decimal("0")
    bridge_exit_fee_pct: Decimal = Decimal("0")
    funds_refurb: bool = True
    refurb_months: Decimal = Decimal("3")

    # Acquisition costs
    sdlt_gbp: Decimal = Decimal("0")
    legal_fees_gbp: Decimal = Decimal("0")

    # Refinance
    refi_value_gbp: Decimal = Decimal("0")  # Post-works valuation
    btl_rate_annual: Decimal = Decimal("0.055")
    btl_ltv_max: Decimal = Decimal("0.75")
    btl_product_fee_gbp: Decimal = Decimal("0")
    btl_product_fee_added_to_loan: bool = False

    # Overheads
    management_pct: Decimal = Decimal("0.10")  # % of rent
    voids_pct: Decimal = Decimal("0.05")  # % of rent
    maintenance_mode: MaintenanceMode = MaintenanceMode.VALUE_PCT_PA
    maintenance_pct_of_value_pa: Decimal = Decimal("0.01")
    maintenance_gbp_per_month: Decimal = Decimal("0")
    insurance_gbp_pa: Decimal = Decimal("300")
    safety_certs_gbp_pa: Decimal = Decimal("150")
    ground_rent_gbp_pa: Decimal = Decimal("0")
    service_charge_gbp_pa: Decimal = Decimal("0")

    # Growth
    rent_growth_annual: Decimal = Decimal("0")
    expense_growth_annual: Decimal = Decimal("0")

    # Sale
    sale_price_method: SalePriceMethod = SalePriceMethod.REFI_VALUE
    sale_price_gbp: Optional[Decimal] = None  # Used when method is CUSTOM
    selling_costs_pct: Decimal = Decimal("0.02")


@dataclass(frozen=True)
class ScenarioOverrides:
    """Sparse user adjustments. None (or any non-numeric value) means "use baseline"."""

    rooms: dict[str, object] = field(default_factory=dict)
    epc_total_gbp: object = None

    monthly_rent_gbp: object = None

    management_pct: object = None
    voids_pct: object = None
    maintenance_mode: object = None
    maintenance_pct_of_value_pa: object = None
    maintenance_gbp_per_month: object = None
    insurance_gbp_pa: object = None
    safety_certs_gbp_pa: object = None
    ground_rent_gbp_pa: object = None
    service_charge_gbp_pa: object = None


@dataclass(frozen=True)
class ResolvedScenario:
    """Baseline with overrides applied; every input concrete."""

    baseline: ScenarioBaseline
    rooms: dict[str, Decimal]
    epc_total_gbp: Decimal
    refurb_total_gbp: Decimal
    monthly_rent_gbp: Decimal
    management_pct: Decimal
    voids_pct: Decimal
    maintenance_mode: MaintenanceMode
    maintenance_pct_of_value_pa: Decimal
    maintenance_gbp_per_month: Decimal
    insurance_gbp_pa: Decimal
    safety_certs_gbp_pa: Decimal
    ground_rent_gbp_pa: Decimal
    service_charge_gbp_pa: Decimal


@dataclass(frozen=True)
class ComputedKPIs:
    # Refurb
    refurb_total_gbp: Decimal

    # Bridge period
    deposit_gbp: Decimal
    refurb_cash_gbp: Decimal  # Cash paid for refurb when not bridge-funded
    bridge_interest_gbp: Decimal
    bridge_fees_gbp: Decimal
    months_on_bridge: Decimal
    months_refurb: Decimal
    months_rented: Decimal
    total_cash_in_gbp: Decimal
    yield_on_cost_percent: Decimal

    # Exit A: sell
    sell_price_gbp: Decimal
    selling_costs_gbp: Decimal
    repay_bridge_gbp: Decimal
    net_profit_gbp: Decimal
    roi_percent: Decimal

    # Exit B: refinance and hold 24 months
    btl_loan_planned_gbp: Decimal
    btl_loan_final_gbp: Decimal
    btl_product_fee_actual_gbp: Decimal
    cash_from_refi_gbp: Decimal
    net_cash_left_in_gbp: Decimal

    # Month 1
    monthly_rent_after_opex_gbp: Decimal
    monthly_opex_gbp: Decimal
    monthly_btl_payment_gbp: Decimal
    dscr_month1: Decimal

    # 24-month totals
    total_rent_24m_gbp: Decimal
    total_opex_24m_gbp: Decimal
    total_btl_interest_24m_gbp: Decimal
    net_cashflow_24m_gbp: Decimal
    roi_cash_on_cash_percent_24m: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ScenarioResult:
    kpis: ComputedKPIs
    baseline_kpis: ComputedKPIs
    deltas: dict[str, Decimal]
