from decimal import Decimal

import pytest

from src.engine.payload import (
    aggregate_room_totals,
    build_baseline_from_payload,
    first_number,
    is_number,
    to_number,
)
from src.models.scenario import MaintenanceMode, SalePriceMethod


class TestNumberCoercion:
    @pytest.mark.parametrize("value", [0, 12, -3.5, Decimal("7.25")])
    def test_finite_numbers(self, value):
        assert is_number(value)

    @pytest.mark.parametrize(
        "value",
        [None, True, False, "1200", float("nan"), float("inf"), Decimal("NaN"), [], {}],
    )
    def test_not_numbers(self, value):
        assert not is_number(value)

    def test_float_goes_through_str(self):
        assert to_number(0.1) == Decimal("0.1")

    def test_large_int_is_exact(self):
        assert to_number(10**5000) == Decimal(10) ** 5000
        assert to_number(123456789012345678901234567890) == Decimal("123456789012345678901234567890")

    def test_fallback(self):
        assert to_number("abc", Decimal("5")) == Decimal("5")

    def test_first_non_zero_wins(self):
        assert first_number(None, 0, "x", 42, 7) == Decimal("42")

    def test_all_zero_uses_default(self):
        assert first_number(0, None, default=Decimal("3")) == Decimal("3")


class TestRoomTotals:
    def test_rooms_and_epc(self, sample_payload):
        rooms, epc = aggregate_room_totals(sample_payload["property"]["room_totals"])
        assert rooms == {
            "kitchen": Decimal("12000"),
            "2": Decimal("6500.5"),
            "Bathroom": Decimal("4000"),
        }
        assert epc == Decimal("3500")

    def test_zero_room_index_is_a_key(self):
        rooms, _ = aggregate_room_totals([{"type": "room", "room_index": 0, "total_gbp": 900}])
        assert rooms == {"0": Decimal("900")}

    def test_multiple_epc_records_sum(self):
        _, epc = aggregate_room_totals([
            {"type": "epc", "total_gbp": 1000},
            {"type": "EPC_totals", "epc_total_with_vat": 2500},
        ])
        assert epc == Decimal("3500")

    @pytest.mark.parametrize("kind", ["rooms_totals", "overheads", "whole-house", "property_totals", "unmapped"])
    def test_summary_records_skipped(self, kind):
        rooms, epc = aggregate_room_totals([{"type": kind, "label": "x", "total_gbp": 500}])
        assert rooms == {}
        assert epc == 0

    def test_record_without_key_ignored(self):
        rooms, _ = aggregate_room_totals([{"type": "room", "room_name": "  ", "total_gbp": 500}])
        assert rooms == {}

    def test_blank_id_falls_through_to_next_field(self):
        rooms, _ = aggregate_room_totals([
            {"type": "room", "floorplan_room_id": "", "room_index": None, "room_name": "Lounge", "total_gbp": 700},
        ])
        assert rooms == {"Lounge": Decimal("700")}

    def test_repeated_key_last_wins(self):
        rooms, _ = aggregate_room_totals([
            {"type": "room", "label": "Hall", "total_gbp": 100},
            {"type": "room", "label": "Hall", "total_gbp": 250},
        ])
        assert rooms == {"Hall": Decimal("250")}

    def test_room_with_no_value_is_zero(self):
        rooms, _ = aggregate_room_totals([{"type": "room", "label": "Hall"}])
        assert rooms == {"Hall": Decimal("0")}

    @pytest.mark.parametrize("records", [None, {}, "rooms", 5])
    def test_not_a_list(self, records):
        assert aggregate_room_totals(records) == ({}, Decimal("0"))


class TestBuildBaseline:
    def test_full_payload(self, sample_payload):
        b = build_baseline_from_payload(sample_payload)
        assert b.purchase_price_gbp == Decimal("180000")
        assert b.monthly_rent_gbp == Decimal("1100")
        assert b.bridge_loan_gbp == Decimal("135000")
        assert b.bridge_term_months == Decimal("9")
        assert b.sdlt_gbp == Decimal("1400")
        assert b.legal_fees_gbp == Decimal("1200")
        assert b.refi_value_gbp == Decimal("240000")
        assert b.btl_rate_annual == Decimal("0.06")
        assert b.btl_ltv_max == Decimal("0.7")
        assert b.btl_product_fee_gbp == Decimal("1995")
        assert b.btl_product_fee_added_to_loan is True
        assert b.funds_refurb is False
        assert b.management_pct == Decimal("0.12")
        assert b.ground_rent_gbp_pa == Decimal("250")

    def test_refurb_total_from_rooms_and_epc(self, sample_payload):
        b = build_baseline_from_payload(sample_payload)
        assert b.epc_total_gbp == Decimal("3500")
        assert b.refurb_total_gbp == Decimal("26000.5")

    def test_defaults_where_missing(self, sample_payload):
        b = build_baseline_from_payload(sample_payload)
        assert b.bridge_rate_annual == Decimal("0.089")
        assert b.voids_pct == Decimal("0.05")
        assert b.maintenance_pct_of_value_pa == Decimal("0.01")
        assert b.insurance_gbp_pa == Decimal("300")
        assert b.safety_certs_gbp_pa == Decimal("150")
        assert b.service_charge_gbp_pa == Decimal("0")
        assert b.maintenance_mode is MaintenanceMode.VALUE_PCT_PA
        assert b.sale_price_method is SalePriceMethod.REFI_VALUE
        assert b.selling_costs_pct == Decimal("0.02")

    def test_zero_falls_through_to_default(self, sample_payload):
        # period.refurb_months is 0
        b = build_baseline_from_payload(sample_payload)
        assert b.refurb_months == Decimal("3")

    def test_inputs_take_precedence(self, sample_payload):
        sample_payload["financials"]["scenarios"]["inputs"]["purchase_price_gbp"] = 175000
        sample_payload["financials"]["scenarios"]["inputs"]["bridge_term_months"] = 15
        b = build_baseline_from_payload(sample_payload)
        assert b.purchase_price_gbp == Decimal("175000")
        assert b.bridge_term_months == Decimal("15")

    def test_guide_price_fallback(self):
        b = build_baseline_from_payload({"property": {"guide_price_gbp": 95000}})
        assert b.purchase_price_gbp == Decimal("95000")

    def test_sections_under_property(self):
        payload = {
            "property": {
                "scenarios": {"inputs": {"monthly_rent_gbp": 850}},
                "summary": {"exit_refi_24m": {"rate_btl_annual": 0.049}},
            }
        }
        b = build_baseline_from_payload(payload)
        assert b.monthly_rent_gbp == Decimal("850")
        assert b.btl_rate_annual == Decimal("0.049")

    def test_flag_false_is_kept(self):
        payload = {"financials": {"summary": {"period": {"funds_refurb": False}}}}
        assert build_baseline_from_payload(payload).funds_refurb is False

    def test_non_bool_flag_ignored(self):
        payload = {"financials": {"scenarios": {"inputs": {"funds_refurb": "no"}}}}
        assert build_baseline_from_payload(payload).funds_refurb is True

    def test_malformed_values_degrade(self):
        payload = {
            "property": {"guide_price_gbp": float("inf")},
            "financials": {
                "scenarios": {
                    "inputs": {
                        "purchase_price_gbp": float("nan"),
                        "monthly_rent_gbp": "1200",
                        "bridge_term_months": True,
                    }
                }
            },
        }
        b = build_baseline_from_payload(payload)
        assert b.purchase_price_gbp == Decimal("0")
        assert b.monthly_rent_gbp == Decimal("0")
        assert b.bridge_term_months == Decimal("12")

    def test_huge_integer_price_is_kept(self):
        payload = {"property": {"purchase_price_gbp": 10**5000}}
        assert build_baseline_from_payload(payload).purchase_price_gbp == Decimal(10) ** 5000

    @pytest.mark.parametrize(
        "payload",
        [None, [], "payload", 3, {}, {"property": "nope"}, {"financials": {"scenarios": []}}],
    )
    def test_never_raises(self, payload):
        b = build_baseline_from_payload(payload)
        assert b.purchase_price_gbp == Decimal("0")
        assert b.rooms_baseline == {}
        assert b.refurb_total_gbp == Decimal("0")
        assert b.btl_ltv_max == Decimal("0.75")
        assert b.funds_refurb is True
        assert b.btl_product_fee_added_to_loan is False
