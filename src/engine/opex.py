"""Monthly operating expenses for a let property.

Pure functions: Decimal in, Decimal out. No I/O.
"""

from decimal import Decimal

from src.models.scenario import MaintenanceMode

MONTHS_PER_YEAR = Decimal("12")


def maintenance_per_month(
    mode: MaintenanceMode,
    pct_of_value_pa: Decimal,
    gbp_per_month: Decimal,
    property_value: Decimal,
) -> Decimal:
    """Maintenance for one month. The two modes are mutually exclusive."""
    if mode is MaintenanceMode.GBP_PER_MONTH:
        return gbp_per_month
    return property_value * pct_of_value_pa / MONTHS_PER_YEAR


def opex_breakdown(
    monthly_rent: Decimal,
    management_pct: Decimal,
    voids_pct: Decimal,
    maintenance_mode: MaintenanceMode,
    maintenance_pct_of_value_pa: Decimal,
    maintenance_gbp_per_month: Decimal,
    property_value: Decimal,
    insurance_pa: Decimal,
    safety_certs_pa: Decimal,
    ground_rent_pa: Decimal,
    service_charge_pa: Decimal,
) -> dict[str, Decimal]:
    """Itemised monthly opex.

    property_value is the maintenance base: the post-works refinance valuation,
    not the purchase price.
    """
    management_and_voids = monthly_rent * (management_pct + voids_pct)
    maintenance = maintenance_per_month(
        maintenance_mode, maintenance_pct_of_value_pa, maintenance_gbp_per_month, property_value
    )
    fixed = (insurance_pa + safety_certs_pa + ground_rent_pa + service_charge_pa) / MONTHS_PER_YEAR

    return {
        "management_and_voids": management_and_voids,
        "maintenance": maintenance,
        "fixed": fixed,
        "total": management_and_voids + maintenance + fixed,
    }


def monthly_opex(
    monthly_rent: Decimal,
    management_pct: Decimal,
    voids_pct: Decimal,
    maintenance_mode: MaintenanceMode,
    maintenance_pct_of_value_pa: Decimal,
    maintenance_gbp_per_month: Decimal,
    property_value: Decimal,
    insurance_pa: Decimal,
    safety_certs_pa: Decimal,
    ground_rent_pa: Decimal,
    service_charge_pa: Decimal,
) -> Decimal:
    """Total monthly operating expenses."""
    return opex_breakdown(
        monthly_rent,
        management_pct,
        voids_pct,
        maintenance_mode,
        maintenance_pct_of_value_pa,
        maintenance_gbp_per_month,
        property_value,
        insurance_pa,
        safety_certs_pa,
        ground_rent_pa,
        service_charge_pa,
    )["total"]
