"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---- Shared ----

class ScenarioBaselineSchema(BaseModel):
    purchase_price_gbp: Decimal
    refurb_total_gbp: Decimal = Decimal("0")
    rooms_baseline: dict[str, Decimal] = {}
    epc_total_gbp: Decimal = Decimal("0")
    monthly_rent_gbp: Decimal = Decimal("0")

    bridge_loan_gbp: Decimal = Decimal("0")
    bridge_rate_annual: Decimal = Decimal("0.089")
    bridge_term_months: Decimal = Decimal("12")
    bridge_arrangement_fee_gbp: Decimal = Decimal("0")
    bridge_exit_fee_pct: Decimal = Decimal("0")
    funds_refurb: bool = True
    refurb_months: Decimal = Decimal("3")

    sdlt_gbp: Decimal = Decimal("0")
    legal_fees_gbp: Decimal = Decimal("0")

    refi_value_gbp: Decimal = Decimal("0")
    btl_rate_annual: Decimal = Decimal("0.055")
    btl_ltv_max: Decimal = Decimal("0.75")
    btl_product_fee_gbp: Decimal = Decimal("0")
    btl_product_fee_added_to_loan: bool = False

    management_pct: Decimal = Decimal("0.10")
    voids_pct: Decimal = Decimal("0.05")
    maintenance_mode: Literal["value_pct_pa", "gbp_per_month"] = "value_pct_pa"
    maintenance_pct_of_value_pa: Decimal = Decimal("0.01")
    maintenance_gbp_per_month: Decimal = Decimal("0")
    insurance_gbp_pa: Decimal = Decimal("300")
    safety_certs_gbp_pa: Decimal = Decimal("150")
    ground_rent_gbp_pa: Decimal = Decimal("0")
    service_charge_gbp_pa: Decimal = Decimal("0")

    rent_growth_annual: Decimal = Decimal("0")
    expense_growth_annual: Decimal = Decimal("0")

    sale_price_method: Literal["refi_value", "custom"] = "refi_value"
    sale_price_gbp: Decimal | None = None
    selling_costs_pct: Decimal = Decimal("0.02")


class ScenarioOverridesSchema(BaseModel):
    """Sparse overrides; omitted fields keep the baseline value."""

    rooms: dict[str, Decimal] = {}
    epc_total_gbp: Decimal | None = None
    monthly_rent_gbp: Decimal | None = None
    management_pct: Decimal | None = None
    voids_pct: Decimal | None = None
    maintenance_mode: Literal["value_pct_pa", "gbp_per_month"] | None = None
    maintenance_pct_of_value_pa: Decimal | None = None
    maintenance_gbp_per_month: Decimal | None = None
    insurance_gbp_pa: Decimal | None = None
    safety_certs_gbp_pa: Decimal | None = None
    ground_rent_gbp_pa: Decimal | None = None
    service_charge_gbp_pa: Decimal | None = None


# ---- Request schemas ----

class RecomputeRequest(BaseModel):
    payload: dict[str, Any] | None = Field(None, description="Raw analysis payload")
    baseline: ScenarioBaselineSchema | None = Field(None, description="Explicit baseline")
    overrides: ScenarioOverridesSchema = ScenarioOverridesSchema()


class StartAnalysisRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Property listing URL")


class SaveScenarioRequest(BaseModel):
    name: str | None = Field(None, max_length=100)
    overrides: ScenarioOverridesSchema = ScenarioOverridesSchema()


# ---- Response schemas ----

class KPIResponse(BaseModel):
    # Zero denominators surface as Infinity or NaN
    model_config = ConfigDict(allow_inf_nan=True)

    refurb_total_gbp: Decimal

    deposit_gbp: Decimal
    refurb_cash_gbp: Decimal
    bridge_interest_gbp: Decimal
    bridge_fees_gbp: Decimal
    months_on_bridge: Decimal
    months_refurb: Decimal
    months_rented: Decimal
    total_cash_in_gbp: Decimal
    yield_on_cost_percent: Decimal

    sell_price_gbp: Decimal
    selling_costs_gbp: Decimal
    repay_bridge_gbp: Decimal
    net_profit_gbp: Decimal
    roi_percent: Decimal

    btl_loan_planned_gbp: Decimal
    btl_loan_final_gbp: Decimal
    btl_product_fee_actual_gbp: Decimal
    cash_from_refi_gbp: Decimal
    net_cash_left_in_gbp: Decimal

    monthly_rent_after_opex_gbp: Decimal
    monthly_opex_gbp: Decimal
    monthly_btl_payment_gbp: Decimal
    dscr_month1: Decimal

    total_rent_24m_gbp: Decimal
    total_opex_24m_gbp: Decimal
    total_btl_interest_24m_gbp: Decimal
    net_cashflow_24m_gbp: Decimal
    roi_cash_on_cash_percent_24m: Decimal


class RecomputeResponse(BaseModel):
    model_config = ConfigDict(allow_inf_nan=True)

    kpis: KPIResponse
    baseline_kpis: KPIResponse
    deltas: dict[str, Decimal]


class SaveScenarioResponse(BaseModel):
    id: UUID
    run_id: UUID
    name: str
    kpis: KPIResponse


class AnalysisJobResponse(BaseModel):
    run_id: str
    execution_id: str | None = None
    runs_remaining: int | None = None


class SavedScenarioResponse(BaseModel):
    model_config = ConfigDict(allow_inf_nan=True)

    id: UUID
    run_id: UUID
    name: str
    created_at: datetime | None = None
    overrides: ScenarioOverridesSchema
    kpis: dict[str, Decimal]
