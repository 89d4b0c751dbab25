"""Scenario routes: baseline extraction, KPI recomputation, saved scenarios."""

from dataclasses import fields
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import enforce_rate_limit, get_analysis_client, get_db
from src.api.schemas import (
    AnalysisJobResponse,
    KPIResponse,
    RecomputeRequest,
    RecomputeResponse,
    SaveScenarioRequest,
    SaveScenarioResponse,
    SavedScenarioResponse,
    ScenarioBaselineSchema,
    ScenarioOverridesSchema,
    StartAnalysisRequest,
)
from src.data.analysis_client import (
    AnalysisClient,
    AnalysisFailed,
    AnalysisNotFound,
    AnalysisRateLimited,
    AnalysisServiceError,
)
from src.data.scenario_store import list_scenarios, overrides_from_dict, save_scenario
from src.engine.payload import build_baseline_from_payload, is_number
from src.engine.scenario import recompute_kpis, run_scenario
from src.models.scenario import (
    ComputedKPIs,
    MaintenanceMode,
    SalePriceMethod,
    ScenarioBaseline,
    ScenarioOverrides,
)

router = APIRouter(
    prefix="/api/v1/scenarios",
    tags=["scenarios"],
    dependencies=[Depends(enforce_rate_limit)],
)


def _baseline_from_schema(schema: ScenarioBaselineSchema) -> ScenarioBaseline:
    data = schema.model_dump()
    data["maintenance_mode"] = MaintenanceMode(data["maintenance_mode"])
    data["sale_price_method"] = SalePriceMethod(data["sale_price_method"])
    return ScenarioBaseline(**data)


def _baseline_to_schema(baseline: ScenarioBaseline) -> ScenarioBaselineSchema:
    return ScenarioBaselineSchema(
        purchase_price_gbp=baseline.purchase_price_gbp,
        refurb_total_gbp=baseline.refurb_total_gbp,
        rooms_baseline=baseline.rooms_baseline,
        epc_total_gbp=baseline.epc_total_gbp,
        monthly_rent_gbp=baseline.monthly_rent_gbp,
        bridge_loan_gbp=baseline.bridge_loan_gbp,
        bridge_rate_annual=baseline.bridge_rate_annual,
        bridge_term_months=baseline.bridge_term_months,
        bridge_arrangement_fee_gbp=baseline.bridge_arrangement_fee_gbp,
        bridge_exit_fee_pct=baseline.bridge_exit_fee_pct,
        funds_refurb=baseline.funds_refurb,
        refurb_months=baseline.refurb_months,
        sdlt_gbp=baseline.sdlt_gbp,
        legal_fees_gbp=baseline.legal_fees_gbp,
        refi_value_gbp=baseline.refi_value_gbp,
        btl_rate_annual=baseline.btl_rate_annual,
        btl_ltv_max=baseline.btl_ltv_max,
        btl_product_fee_gbp=baseline.btl_product_fee_gbp,
        btl_product_fee_added_to_loan=baseline.btl_product_fee_added_to_loan,
        management_pct=baseline.management_pct,
        voids_pct=baseline.voids_pct,
        maintenance_mode=baseline.maintenance_mode.value,
        maintenance_pct_of_value_pa=baseline.maintenance_pct_of_value_pa,
        maintenance_gbp_per_month=baseline.maintenance_gbp_per_month,
        insurance_gbp_pa=baseline.insurance_gbp_pa,
        safety_certs_gbp_pa=baseline.safety_certs_gbp_pa,
        ground_rent_gbp_pa=baseline.ground_rent_gbp_pa,
        service_charge_gbp_pa=baseline.service_charge_gbp_pa,
        rent_growth_annual=baseline.rent_growth_annual,
        expense_growth_annual=baseline.expense_growth_annual,
        sale_price_method=baseline.sale_price_method.value,
        sale_price_gbp=baseline.sale_price_gbp,
        selling_costs_pct=baseline.selling_costs_pct,
    )


def _overrides_from_schema(schema: ScenarioOverridesSchema) -> ScenarioOverrides:
    return ScenarioOverrides(**schema.model_dump())


def _kpis_to_response(kpis: ComputedKPIs) -> KPIResponse:
    return KPIResponse(**kpis.as_dict())


def _overrides_to_schema(overrides: ScenarioOverrides) -> ScenarioOverridesSchema:
    """Schema view of stored overrides. Values the engine would ignore are dropped."""
    data: dict[str, Any] = {}
    for f in fields(overrides):
        value = getattr(overrides, f.name)
        if f.name == "rooms":
            data["rooms"] = {k: v for k, v in value.items() if is_number(v)}
        elif f.name == "maintenance_mode":
            if isinstance(value, MaintenanceMode):
                value = value.value
            if value in [m.value for m in MaintenanceMode]:
                data[f.name] = value
        elif is_number(value):
            data[f.name] = value
    return ScenarioOverridesSchema(**data)


async def _fetch_run_baseline(run_id: UUID, client: AnalysisClient) -> ScenarioBaseline:
    try:
        return await client.fetch_baseline(str(run_id))
    except AnalysisNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AnalysisFailed as e:
        raise HTTPException(status_code=409, detail=f"Analysis failed: {e}")
    except AnalysisServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/baseline", response_model=ScenarioBaselineSchema)
async def baseline_from_payload(payload: dict[str, Any] = Body(...)):
    """Normalise a raw analysis payload into a scenario baseline."""
    return _baseline_to_schema(build_baseline_from_payload(payload))


@router.post("/recompute", response_model=RecomputeResponse)
async def recompute(req: RecomputeRequest):
    """Recompute KPIs for a baseline (explicit or from a payload) plus overrides."""
    if req.baseline is not None:
        baseline = _baseline_from_schema(req.baseline)
    elif req.payload is not None:
        baseline = build_baseline_from_payload(req.payload)
    else:
        raise HTTPException(status_code=400, detail="Provide either baseline or payload")

    result = run_scenario(baseline, _overrides_from_schema(req.overrides))
    return RecomputeResponse(
        kpis=_kpis_to_response(result.kpis),
        baseline_kpis=_kpis_to_response(result.baseline_kpis),
        deltas=result.deltas,
    )


@router.get("/runs/{run_id}/baseline", response_model=ScenarioBaselineSchema)
async def run_baseline(
    run_id: UUID,
    client: AnalysisClient = Depends(get_analysis_client),
):
    """Baseline for a completed analysis run."""
    return _baseline_to_schema(await _fetch_run_baseline(run_id, client))


@router.post("/runs/{run_id}/save", response_model=SaveScenarioResponse)
async def save_run_scenario(
    run_id: UUID,
    req: SaveScenarioRequest,
    client: AnalysisClient = Depends(get_analysis_client),
    db: AsyncSession = Depends(get_db),
):
    """Persist a user's overrides for a run together with the KPIs they produce."""
    baseline = await _fetch_run_baseline(run_id, client)
    overrides = _overrides_from_schema(req.overrides)
    kpis = recompute_kpis(baseline, overrides)
    record = await save_scenario(db, str(run_id), overrides, kpis, name=req.name)
    return SaveScenarioResponse(
        id=record.id,
        run_id=run_id,
        name=record.name,
        kpis=_kpis_to_response(kpis),
    )


@router.post("/runs", response_model=AnalysisJobResponse)
async def start_run(
    req: StartAnalysisRequest,
    client: AnalysisClient = Depends(get_analysis_client),
):
    """Kick off an analysis run for a listing; poll its baseline once completed."""
    try:
        job = await client.start_analysis(req.url)
    except AnalysisRateLimited as e:
        detail = str(e) if e.reset_at is None else f"{e} (resets at {e.reset_at})"
        raise HTTPException(status_code=429, detail=detail)
    except AnalysisServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return AnalysisJobResponse(
        run_id=job.run_id,
        execution_id=job.execution_id,
        runs_remaining=job.runs_remaining,
    )


@router.get("/runs/{run_id}/scenarios", response_model=list[SavedScenarioResponse])
async def list_run_scenarios(
    run_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Saved scenarios for a run, newest first."""
    records = await list_scenarios(db, str(run_id))
    return [
        SavedScenarioResponse(
            id=record.id,
            run_id=record.run_id,
            name=record.name,
            created_at=record.created_at,
            overrides=_overrides_to_schema(overrides_from_dict(record.overrides)),
            kpis=record.kpis,
        )
        for record in records
    ]
