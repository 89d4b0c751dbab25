"""Canonical scenario fixtures used across the engine tests.

Fixture: £200K purchase, £150K bridge at 8.9% over 12 months, refurb bridge-funded
(rooms £25K + EPC £5K), £1,000/month rent, refinance valuation £250K at 75% LTV.
At that rent the DSCR ceiling binds and the refinance loan is cut back.

High-rent fixture: £2,000/month with lean overheads, so the planned loan
clears the DSCR target and nothing is capped.
"""

import pytest
from decimal import Decimal

from src.models.scenario import MaintenanceMode, SalePriceMethod, ScenarioBaseline


def make_baseline(**changes) -> ScenarioBaseline:
    values = dict(
        purchase_price_gbp=Decimal("200000"),
        refurb_total_gbp=Decimal("30000"),
        rooms_baseline={
            "kitchen": Decimal("10000"),
            "bedroom_1": Decimal("8000"),
            "bathroom": Decimal("7000"),
        },
        epc_total_gbp=Decimal("5000"),
        monthly_rent_gbp=Decimal("1000"),
        bridge_loan_gbp=Decimal("150000"),
        bridge_rate_annual=Decimal("0.089"),
        bridge_term_months=Decimal("12"),
        bridge_arrangement_fee_gbp=Decimal("1500"),
        bridge_exit_fee_pct=Decimal("0.01"),
        funds_refurb=True,
        refurb_months=Decimal("3"),
        sdlt_gbp=Decimal("1500"),
        legal_fees_gbp=Decimal("1000"),
        refi_value_gbp=Decimal("250000"),
        btl_rate_annual=Decimal("0.055"),
        btl_ltv_max=Decimal("0.75"),
        btl_product_fee_gbp=Decimal("999"),
        btl_product_fee_added_to_loan=False,
        management_pct=Decimal("0.10"),
        voids_pct=Decimal("0.05"),
        maintenance_mode=MaintenanceMode.VALUE_PCT_PA,
        maintenance_pct_of_value_pa=Decimal("0.01"),
        maintenance_gbp_per_month=Decimal("0"),
        insurance_gbp_pa=Decimal("300"),
        safety_certs_gbp_pa=Decimal("150"),
        ground_rent_gbp_pa=Decimal("100"),
        service_charge_gbp_pa=Decimal("200"),
        rent_growth_annual=Decimal("0"),
        expense_growth_annual=Decimal("0"),
        sale_price_method=SalePriceMethod.REFI_VALUE,
        sale_price_gbp=None,
        selling_costs_pct=Decimal("0.02"),
    )
    values.update(changes)
    return ScenarioBaseline(**values)


@pytest.fixture
def baseline_factory():
    """make_baseline, for tests that vary individual inputs."""
    return make_baseline


@pytest.fixture
def canonical_baseline() -> ScenarioBaseline:
    """Mid-rent deal where the DSCR ceiling binds."""
    return make_baseline()


@pytest.fixture
def high_rent_baseline() -> ScenarioBaseline:
    """Strong-rent deal; the planned refinance loan is affordable."""
    return make_baseline(
        monthly_rent_gbp=Decimal("2000"),
        management_pct=Decimal("0.05"),
        voids_pct=Decimal("0.02"),
        maintenance_pct_of_value_pa=Decimal("0.005"),
        btl_rate_annual=Decimal("0.05"),
    )


@pytest.fixture
def sample_payload() -> dict:
    """Analysis payload in the nested shape the analysis service returns."""
    return {
        "property": {
            "purchase_price_gbp": 180000,
            "guide_price_gbp": 170000,
            "post_refurb_valuation_gbp": 240000,
            "ground_rent_gbp_pa": 250,
            "room_totals": [
                {"type": "room", "floorplan_room_id": "kitchen", "room_total_with_vat_gbp": 12000},
                {"type": "room", "room_index": 2, "total_with_vat": 6500.5},
                {"type": "room", "room_name": "Bathroom", "room_total_with_vat": 0, "total_gbp": 4000},
                {"type": "EPC_totals", "epc_total_with_vat": 3500},
                {"type": "rooms_totals", "total_with_vat": 22500},
                {"type": "overheads", "label": "contingency", "total_gbp": 900},
                {"type": "room", "total_gbp": 100},
                "not-a-record",
            ],
        },
        "financials": {
            "scenarios": {
                "inputs": {
                    "monthly_rent_gbp": 1100,
                    "loan_on_purchase_gbp": 135000,
                    "rate_btl_annual": 0.06,
                    "funds_refurb": False,
                    "management_pct": 0.12,
                },
            },
            "summary": {
                "period": {
                    "term_months": 9,
                    "sdlt_gbp": 1400,
                    "legal_fees_gbp": 1200,
                    "refurb_months": 0,
                },
                "exit_refi_24m": {
                    "ltv_btl_max": 0.7,
                    "product_fee_gbp": 1995,
                    "product_fee_added_to_loan": True,
                },
            },
        },
    }
