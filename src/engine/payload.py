"""Analysis payload → ScenarioBaseline normalisation.

The analysis payload is loosely structured JSON produced by the external
analysis workflow. Every accepted field location is listed in PAYLOAD_PATHS so
the full set of input shapes can be audited in one place. This is the only
boundary between untrusted payload data and the typed engine model: it never
raises, and missing or malformed values degrade to DEFAULTS.

Room-total records:

- Every EPC-type record adds to the EPC total, so a payload carrying several
  EPC records is summed rather than last-wins.
- The room key is the first of ROOM_KEY_FIELDS that is present and non-blank.
  A room_index of 0 is a valid key, while an empty or whitespace-only id falls
  through to the next field.
- A later record with the same key replaces the earlier one.
"""

import math
from decimal import Decimal
from typing import Any

from src.models.scenario import MaintenanceMode, SalePriceMethod, ScenarioBaseline

ZERO = Decimal("0")

# Field → ordered (section, key) lookups. First non-zero number wins.
PAYLOAD_PATHS: dict[str, tuple[tuple[str, str], ...]] = {
    "purchase_price_gbp": (
        ("inputs", "purchase_price_gbp"),
        ("property", "purchase_price_gbp"),
        ("property", "guide_price_gbp"),
    ),
    "monthly_rent_gbp": (
        ("inputs", "monthly_rent_gbp"),
        ("property", "monthly_rent_gbp"),
        ("financials", "monthly_rent_gbp"),
    ),
    "bridge_loan_gbp": (
        ("inputs", "loan_on_purchase_gbp"),
        ("period", "loan_on_purchase_gbp"),
    ),
    "bridge_rate_annual": (
        ("inputs", "rate_bridge_annual"),
        ("period", "rate_bridge_annual"),
    ),
    "bridge_term_months": (
        ("inputs", "bridge_term_months"),
        ("period", "term_months"),
    ),
    "bridge_arrangement_fee_gbp": (("inputs", "bridge_arrangement_fee_gbp"),),
    "bridge_exit_fee_pct": (("inputs", "bridge_exit_fee_pct"),),
    "refurb_months": (
        ("inputs", "refurb_months"),
        ("period", "refurb_months"),
    ),
    "sdlt_gbp": (
        ("inputs", "sdlt_gbp"),
        ("period", "sdlt_gbp"),
    ),
    "legal_fees_gbp": (
        ("inputs", "legal_fees_gbp"),
        ("period", "legal_fees_gbp"),
    ),
    "refi_value_gbp": (
        ("inputs", "refi_value_gbp"),
        ("exit_refi", "refi_value_gbp"),
        ("property", "post_refurb_valuation_gbp"),
    ),
    "btl_rate_annual": (
        ("inputs", "rate_btl_annual"),
        ("exit_refi", "rate_btl_annual"),
    ),
    "btl_ltv_max": (
        ("inputs", "ltv_btl_max"),
        ("exit_refi", "ltv_btl_max"),
    ),
    "btl_product_fee_gbp": (
        ("inputs", "product_fee_btl_gbp"),
        ("exit_refi", "product_fee_gbp"),
    ),
    "management_pct": (("inputs", "management_pct"),),
    "voids_pct": (("inputs", "voids_pct"),),
    "maintenance_pct_of_value_pa": (("inputs", "maintenance_pct_of_value_pa"),),
    "insurance_gbp_pa": (("inputs", "insurance_gbp_pa"),),
    "safety_certs_gbp_pa": (("inputs", "safety_certs_gbp_pa"),),
    "ground_rent_gbp_pa": (
        ("inputs", "ground_rent_gbp_pa"),
        ("property", "ground_rent_gbp_pa"),
    ),
    "service_charge_gbp_pa": (
        ("inputs", "service_charge_gbp_pa"),
        ("property", "service_charge_gbp_pa"),
    ),
    "rent_growth_annual": (("inputs", "rent_growth_annual"),),
    "expense_growth_annual": (("inputs", "expense_growth_annual"),),
}

# Boolean flags: first actual bool wins.
PAYLOAD_FLAGS: dict[str, tuple[tuple[str, str], ...]] = {
    "funds_refurb": (
        ("inputs", "funds_refurb"),
        ("period", "funds_refurb"),
    ),
    "btl_product_fee_added_to_loan": (
        ("inputs", "product_fee_added_to_loan"),
        ("exit_refi", "product_fee_added_to_loan"),
    ),
}

DEFAULTS: dict[str, Any] = {
    "bridge_rate_annual": Decimal("0.089"),
    "bridge_term_months": Decimal("12"),
    "refurb_months": Decimal("3"),
    "btl_rate_annual": Decimal("0.055"),
    "btl_ltv_max": Decimal("0.75"),
    "management_pct": Decimal("0.10"),
    "voids_pct": Decimal("0.05"),
    "maintenance_pct_of_value_pa": Decimal("0.01"),
    "insurance_gbp_pa": Decimal("300"),
    "safety_certs_gbp_pa": Decimal("150"),
    "funds_refurb": True,
    "btl_product_fee_added_to_loan": False,
}

# Room-total record handling
EPC_TYPES = frozenset({"epc_totals", "epc"})
SKIPPED_TYPES = frozenset({"rooms_totals", "overheads", "whole-house", "property_totals", "unmapped"})
ROOM_KEY_FIELDS = ("floorplan_room_id", "room_index", "room_name", "label")
ROOM_VALUE_FIELDS = ("room_total_with_vat_gbp", "room_total_with_vat", "total_with_vat", "total_gbp")
EPC_VALUE_FIELDS = ("epc_total_with_vat", "total_with_vat", "total_gbp")


def is_number(x: object) -> bool:
    """True for finite int/float/Decimal values. Bools are not numbers."""
    if isinstance(x, bool):
        return False
    if isinstance(x, int):
        return True
    if isinstance(x, float):
        return math.isfinite(x)
    if isinstance(x, Decimal):
        return x.is_finite()
    return False


def to_number(x: object, fallback: Decimal = ZERO) -> Decimal:
    """Coerce x to Decimal if it is a finite number, else return fallback."""
    if not is_number(x):
        return fallback
    if isinstance(x, Decimal):
        return x
    if isinstance(x, int):
        return Decimal(x)
    return Decimal(str(x))


def first_number(*candidates: object, default: Decimal = ZERO) -> Decimal:
    """First candidate that coerces to a non-zero number, else default."""
    for c in candidates:
        value = to_number(c)
        if value != 0:
            return value
    return default


def _as_dict(x: object) -> dict:
    return x if isinstance(x, dict) else {}


def _first_dict(*candidates: object) -> dict:
    for c in candidates:
        if isinstance(c, dict):
            return c
    return {}


def _sections(payload: object) -> dict[str, dict]:
    """Resolve the named payload sections that PAYLOAD_PATHS refers to."""
    root = _as_dict(payload)
    prop = _as_dict(root.get("property"))
    financials = _as_dict(root.get("financials"))
    scenarios = _first_dict(financials.get("scenarios"), prop.get("scenarios"))
    summary = _first_dict(financials.get("summary"), prop.get("summary"))
    return {
        "property": prop,
        "financials": financials,
        "inputs": _as_dict(scenarios.get("inputs")),
        "period": _as_dict(summary.get("period")),
        "exit_refi": _as_dict(summary.get("exit_refi_24m")),
    }


def _lookup(sections: dict[str, dict], paths: tuple[tuple[str, str], ...]) -> list[object]:
    return [sections[section].get(key) for section, key in paths]


def _room_key(record: dict) -> str | None:
    for name in ROOM_KEY_FIELDS:
        value = record.get(name)
        if value is None or isinstance(value, bool):
            continue
        key = str(value).strip()
        if key:
            return key
    return None


def aggregate_room_totals(records: object) -> tuple[dict[str, Decimal], Decimal]:
    """Split room-total records into per-room totals and the EPC works total.

    Returns (rooms_baseline, epc_total_gbp).
    """
    rooms: dict[str, Decimal] = {}
    epc_total = ZERO
    if not isinstance(records, list):
        return rooms, epc_total

    for record in records:
        if not isinstance(record, dict):
            continue
        record_type = str(record.get("type") or "").lower()
        if record_type in EPC_TYPES:
            epc_total += first_number(*(record.get(f) for f in EPC_VALUE_FIELDS))
        elif record_type not in SKIPPED_TYPES:
            key = _room_key(record)
            if key is not None:
                rooms[key] = first_number(*(record.get(f) for f in ROOM_VALUE_FIELDS))

    return rooms, epc_total


def build_baseline_from_payload(payload: object) -> ScenarioBaseline:
    """Build a ScenarioBaseline from an analysis payload.

    Each numeric field is: first non-zero value along its PAYLOAD_PATHS entry →
    DEFAULTS entry → 0. Never raises.
    """
    sections = _sections(payload)

    values: dict[str, Any] = {}
    for name, paths in PAYLOAD_PATHS.items():
        values[name] = first_number(*_lookup(sections, paths), default=DEFAULTS.get(name, ZERO))

    for name, paths in PAYLOAD_FLAGS.items():
        flag = next((v for v in _lookup(sections, paths) if isinstance(v, bool)), None)
        values[name] = DEFAULTS[name] if flag is None else flag

    rooms, epc_total = aggregate_room_totals(sections["property"].get("room_totals"))
    refurb_total = sum(rooms.values(), ZERO) + epc_total

    return ScenarioBaseline(
        refurb_total_gbp=refurb_total,
        rooms_baseline=rooms,
        epc_total_gbp=epc_total,
        maintenance_mode=MaintenanceMode.VALUE_PCT_PA,
        sale_price_method=SalePriceMethod.REFI_VALUE,
        selling_costs_pct=Decimal("0.02"),
        **values,
    )
