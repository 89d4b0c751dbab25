"""CLI for running a scenario against an analysis payload.

Usage:
    python -m src.engine.scenario_cli payload.json
    python -m src.engine.scenario_cli payload.json --rent 1350 --management-pct 0.08
    python -m src.engine.scenario_cli payload.json --room kitchen=12000 --epc 4500 --json
    python -m src.engine.scenario_cli --run-id 3f0c...  # fetch from the analysis service
    python -m src.engine.scenario_cli --url https://www.rightmove.co.uk/properties/123  # analyse, then run
"""

import argparse
import asyncio
import json
import sys
from decimal import Decimal, InvalidOperation

from src.data.analysis_client import AnalysisClient, AnalysisServiceError
from src.engine.payload import build_baseline_from_payload
from src.engine.scenario import run_scenario
from src.models.scenario import ScenarioBaseline, ScenarioOverrides, ScenarioResult


# ── Helpers ──────────────────────────────────────────────────────────────────

def _gbp(v) -> str:
    return f"£{float(v):,.0f}"


def _pct(v) -> str:
    """Format a value already expressed in percent."""
    return f"{float(v):.2f}%"


def _header(title: str) -> None:
    print(f"\n{'=' * 64}")
    print(f"  {title}")
    print(f"{'=' * 64}")


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")


def _room_arg(value: str) -> tuple[str, Decimal]:
    key, sep, amount = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=AMOUNT, got {value!r}")
    return key, _decimal_arg(amount)


# ── Report sections ──────────────────────────────────────────────────────────

def print_bridge(result: ScenarioResult) -> None:
    k = result.kpis
    _header("Bridge Period")
    print(f"  Refurb Total:       {_gbp(k.refurb_total_gbp)}")
    print(f"  Deposit:            {_gbp(k.deposit_gbp)}")
    print(f"  Refurb Cash:        {_gbp(k.refurb_cash_gbp)}")
    print(f"  Bridge Interest:    {_gbp(k.bridge_interest_gbp)}")
    print(f"  Bridge Fees:        {_gbp(k.bridge_fees_gbp)}")
    print(f"  Months (term/refurb/rented): {k.months_on_bridge} / {k.months_refurb} / {k.months_rented}")
    print(f"  Total Cash In:      {_gbp(k.total_cash_in_gbp)}")
    print(f"  Yield on Cost:      {_pct(k.yield_on_cost_percent)}")


def print_sell(result: ScenarioResult) -> None:
    k = result.kpis
    _header("Exit A: Sell")
    print(f"  Sale Price:         {_gbp(k.sell_price_gbp)}")
    print(f"  Selling Costs:      {_gbp(k.selling_costs_gbp)}")
    print(f"  Repay Bridge:       {_gbp(k.repay_bridge_gbp)}")
    print(f"  Net Profit:         {_gbp(k.net_profit_gbp)}")
    print(f"  ROI:                {_pct(k.roi_percent)}")


def print_refinance(result: ScenarioResult) -> None:
    k = result.kpis
    _header("Exit B: Refinance & Hold 24m")
    print(f"  BTL Loan Planned:   {_gbp(k.btl_loan_planned_gbp)}")
    print(f"  BTL Loan Final:     {_gbp(k.btl_loan_final_gbp)}")
    print(f"  Product Fee:        {_gbp(k.btl_product_fee_actual_gbp)}")
    print(f"  Cash From Refi:     {_gbp(k.cash_from_refi_gbp)}")
    print(f"  Net Cash Left In:   {_gbp(k.net_cash_left_in_gbp)}")
    print(f"  Monthly Opex:       {_gbp(k.monthly_opex_gbp)}")
    print(f"  Monthly BTL Pmt:    {_gbp(k.monthly_btl_payment_gbp)}")
    print(f"  DSCR (month 1):     {float(k.dscr_month1):.2f}x")
    print(f"  Net Cashflow 24m:   {_gbp(k.net_cashflow_24m_gbp)}")
    print(f"  Cash-on-Cash 24m:   {_pct(k.roi_cash_on_cash_percent_24m)}")
    if float(k.net_cash_left_in_gbp) <= 0:
        print("  Note: all cash recovered at refinance; cash-on-cash is not meaningful")


def print_changes(result: ScenarioResult) -> None:
    changed = {name: d for name, d in result.deltas.items() if d != 0}
    if not changed:
        return
    _header("Changes vs Baseline")
    for name, delta in changed.items():
        sign = "+" if float(delta) > 0 else ""
        print(f"  {name:<34} {sign}{float(delta):,.2f}")


# ── Main ─────────────────────────────────────────────────────────────────────

def build_overrides(args: argparse.Namespace) -> ScenarioOverrides:
    return ScenarioOverrides(
        rooms=dict(args.room or []),
        epc_total_gbp=args.epc,
        monthly_rent_gbp=args.rent,
        management_pct=args.management_pct,
        voids_pct=args.voids_pct,
        maintenance_mode=args.maintenance_mode,
        maintenance_pct_of_value_pa=args.maintenance_pct,
        maintenance_gbp_per_month=args.maintenance_gbp,
    )


async def load_baseline(args: argparse.Namespace) -> ScenarioBaseline:
    if args.url:
        client = AnalysisClient(base_url=args.api_url)
        job = await client.start_analysis(args.url)
        print(f"Started analysis run {job.run_id}", file=sys.stderr)
        status = await client.wait_for_completion(job.run_id)
        return build_baseline_from_payload(status.payload)
    if args.run_id:
        return await AnalysisClient(base_url=args.api_url).fetch_baseline(args.run_id)
    with open(args.payload) as f:
        return build_baseline_from_payload(json.load(f))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Property scenario KPI calculator")
    parser.add_argument("payload", nargs="?", help="Path to an analysis payload JSON file")
    parser.add_argument("--run-id", help="Fetch the payload for a completed analysis run")
    parser.add_argument("--url", help="Analyse a listing URL first, then run the scenario on the result")
    parser.add_argument("--api-url", default=None, help="Analysis service base URL")
    parser.add_argument("--rent", type=_decimal_arg, help="Monthly rent override (£)")
    parser.add_argument("--management-pct", type=_decimal_arg, help="Management fee (decimal, 0.10 = 10%%)")
    parser.add_argument("--voids-pct", type=_decimal_arg, help="Voids allowance (decimal)")
    parser.add_argument("--maintenance-mode", choices=["value_pct_pa", "gbp_per_month"])
    parser.add_argument("--maintenance-pct", type=_decimal_arg, help="Maintenance, decimal of value per year")
    parser.add_argument("--maintenance-gbp", type=_decimal_arg, help="Maintenance, £ per month")
    parser.add_argument("--epc", type=_decimal_arg, help="EPC works total override (£)")
    parser.add_argument("--room", type=_room_arg, action="append", help="Room override KEY=AMOUNT (repeatable)")
    parser.add_argument("--json", action="store_true", help="Print KPIs as JSON")

    args = parser.parse_args(argv)
    if not (args.payload or args.run_id or args.url):
        parser.error("payload file, --run-id or --url is required")
    return args


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        baseline = await load_baseline(args)
    except (OSError, json.JSONDecodeError, AnalysisServiceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = run_scenario(baseline, build_overrides(args))

    if args.json:
        print(json.dumps(result.kpis.as_dict(), default=str, indent=2))
        return 0

    print_bridge(result)
    print_sell(result)
    print_refinance(result)
    print_changes(result)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
