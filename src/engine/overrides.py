"""Merge sparse user overrides onto a scenario baseline.

Pure functions. No I/O.
"""

from decimal import Decimal

from src.engine.payload import is_number, to_number
from src.models.scenario import (
    MaintenanceMode,
    ResolvedScenario,
    ScenarioBaseline,
    ScenarioOverrides,
)

# Fields a user may override with a plain number
NUMERIC_OVERRIDES = (
    "monthly_rent_gbp",
    "management_pct",
    "voids_pct",
    "maintenance_pct_of_value_pa",
    "maintenance_gbp_per_month",
    "insurance_gbp_pa",
    "safety_certs_gbp_pa",
    "ground_rent_gbp_pa",
    "service_charge_gbp_pa",
)


def _numeric_or(override: object, baseline_value: Decimal) -> Decimal:
    """Override if it is a finite number, otherwise the baseline value."""
    return to_number(override) if is_number(override) else baseline_value


def _resolve_mode(override: object, baseline_mode: MaintenanceMode) -> MaintenanceMode:
    if isinstance(override, MaintenanceMode):
        return override
    if isinstance(override, str):
        try:
            return MaintenanceMode(override)
        except ValueError:
            return baseline_mode
    return baseline_mode


def merge_rooms(rooms_baseline: dict[str, Decimal], room_overrides: dict[str, object]) -> dict[str, Decimal]:
    """Per-room totals: numeric override where given, else baseline.

    Only baseline room keys are considered; override keys unknown to the
    baseline are ignored.
    """
    overrides = room_overrides if isinstance(room_overrides, dict) else {}
    return {
        key: _numeric_or(overrides.get(key), value)
        for key, value in rooms_baseline.items()
    }


def merge_overrides(
    baseline: ScenarioBaseline,
    overrides: ScenarioOverrides | None = None,
) -> ResolvedScenario:
    """Resolve every overridable input.

    refurb_total_gbp is always recomputed from the resolved rooms and EPC total;
    the baseline's stored refurb_total_gbp is never used.
    """
    ov = overrides or ScenarioOverrides()

    rooms = merge_rooms(baseline.rooms_baseline, ov.rooms)
    epc_total = _numeric_or(ov.epc_total_gbp, baseline.epc_total_gbp)
    refurb_total = sum(rooms.values(), Decimal("0")) + epc_total

    numeric = {
        name: _numeric_or(getattr(ov, name), getattr(baseline, name))
        for name in NUMERIC_OVERRIDES
    }

    return ResolvedScenario(
        baseline=baseline,
        rooms=rooms,
        epc_total_gbp=epc_total,
        refurb_total_gbp=refurb_total,
        maintenance_mode=_resolve_mode(ov.maintenance_mode, baseline.maintenance_mode),
        **numeric,
    )
