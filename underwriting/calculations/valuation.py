"""
Property Valuation Calculations

Computes one property's current (T12) and stabilized (pro forma)
financials, valuation and renovation profile from raw property data,
deal assumptions and property overrides.

Configuration is merged in a fixed precedence order before any math runs:
global default <- property override <- unit override.
"""

import logging
import math
from typing import Dict, List, Optional

from underwriting.calculations.models import (
    EXPENSE_FIELDS,
    Assumptions,
    CalculatedProperty,
    ExpenseDetail,
    ExpenseOverrides,
    Financials,
    PropertyOverrides,
    PropertyRecord,
    RenovationProfile,
    ResolvedPropertyConfig,
    ResolvedRenovation,
    Unit,
    UnitStatus,
    Valuation,
)

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def resolve_expenses(
    per_unit_defaults: ExpenseDetail, overrides: ExpenseOverrides, rooms: int
) -> ExpenseDetail:
    """
    Build annual expense line items for a property.

    Each line starts at the global per-unit default times the room count;
    a property-specific override replaces the line entirely.
    """
    values = {}
    for name in EXPENSE_FIELDS:
        override = getattr(overrides, name)
        if override is not None:
            values[name] = override
        else:
            values[name] = getattr(per_unit_defaults, name) * rooms
    return ExpenseDetail(**values)


def _resolve_rent_roll(
    record: PropertyRecord, market_rent: float, overrides: PropertyOverrides
) -> List[Unit]:
    """Resolve unit status, tenant and current rent. Pro forma rent is set later."""
    units = []

    if record.units:
        for raw in record.units:
            unit_override = overrides.units.get(raw.unit_id)
            status = raw.status
            tenant_name = raw.tenant_name
            current_rent = raw.current_rent
            if unit_override is not None:
                if unit_override.status is not None:
                    status = unit_override.status
                if unit_override.tenant_name is not None:
                    tenant_name = unit_override.tenant_name
                if unit_override.current_rent is not None:
                    current_rent = unit_override.current_rent

            units.append(
                Unit(
                    unit_id=raw.unit_id,
                    status=status,
                    tenant_name=tenant_name,
                    current_rent=current_rent if status == UnitStatus.occupied else 0.0,
                    pro_forma_rent=raw.target_rent if raw.target_rent is not None else market_rent,
                )
            )
        return units

    # No rent roll: uniform occupied units at market rent
    for i in range(1, record.rooms + 1):
        unit_id = str(i)
        unit_override = overrides.units.get(unit_id)
        status = UnitStatus.occupied
        tenant_name = f"Tenant {i}"
        current_rent = market_rent
        if unit_override is not None:
            if unit_override.status is not None:
                status = unit_override.status
            if unit_override.tenant_name:
                tenant_name = unit_override.tenant_name
            if unit_override.current_rent is not None:
                current_rent = unit_override.current_rent

        units.append(
            Unit(
                unit_id=unit_id,
                status=status,
                tenant_name=tenant_name,
                current_rent=current_rent if status == UnitStatus.occupied else 0.0,
                pro_forma_rent=market_rent,
            )
        )
    return units


def resolve_property_config(
    record: PropertyRecord,
    assumptions: Assumptions,
    overrides: Optional[PropertyOverrides] = None,
    global_t12_per_unit: Optional[ExpenseDetail] = None,
    global_pro_forma_per_unit: Optional[ExpenseDetail] = None,
) -> ResolvedPropertyConfig:
    """
    Merge assumptions, property overrides and unit overrides into one config.

    Precedence, lowest first:
    1. Global defaults (assumptions, per-unit expense defaults x rooms)
    2. Property overrides (rent, occupancy, cap rate, expenses, renovation)
    3. Unit overrides (status, tenant, current rent, pro forma rent)

    The renovation scope defaults to the vacant unit count, or to every
    unit when nothing is vacant. Units with a pro forma rent override are
    left out of the renovation and the scope is filled from the rest.
    """
    overrides = overrides or PropertyOverrides()
    global_t12_per_unit = global_t12_per_unit or ExpenseDetail()
    global_pro_forma_per_unit = global_pro_forma_per_unit or ExpenseDetail()

    market_rent = overrides.rent if overrides.rent is not None else assumptions.market_rent
    stabilized_occupancy = (
        overrides.stabilized_occupancy
        if overrides.stabilized_occupancy is not None
        else assumptions.stabilized_occupancy
    )
    exit_cap_rate = overrides.cap_rate if overrides.cap_rate is not None else assumptions.cap_rate
    rent_lift = assumptions.rent_lift or 0.0

    units = _resolve_rent_roll(record, market_rent, overrides)

    # Units with an explicit pro forma rent keep it and are never renovated
    fixed_rent_ids = {
        unit_id
        for unit_id, unit_override in overrides.units.items()
        if unit_override.pro_forma_rent is not None
    }
    eligible = [u for u in units if u.unit_id not in fixed_rent_ids]

    # Renovation
    vacant_count = sum(1 for u in units if u.status == UnitStatus.vacant)
    reno = overrides.renovation
    enabled = reno.enabled if reno.enabled is not None else True
    units_to_renovate = (
        reno.units_to_renovate
        if reno.units_to_renovate is not None
        else (vacant_count if vacant_count > 0 else record.rooms)
    )
    units_to_renovate = min(max(int(units_to_renovate), 0), len(eligible))
    renovation = ResolvedRenovation(
        enabled=enabled,
        units_to_renovate=units_to_renovate,
        cost_per_unit=(
            reno.cost_per_unit
            if reno.cost_per_unit is not None
            else assumptions.renovation_cost_per_unit
        ),
        rent_premium_per_unit=(
            reno.rent_premium_per_unit
            if reno.rent_premium_per_unit is not None
            else assumptions.renovation_rent_premium
        ),
    )

    # Vacant units are renovated first, then occupied units in roll order
    renovated_ids = set()
    if renovation.enabled and renovation.units_to_renovate > 0:
        ordered = [u for u in eligible if u.status == UnitStatus.vacant] + [
            u for u in eligible if u.status != UnitStatus.vacant
        ]
        renovated_ids = {u.unit_id for u in ordered[: renovation.units_to_renovate]}

    lift_factor = 1 + rent_lift / 100
    for unit in units:
        unit_override = overrides.units.get(unit.unit_id)
        if unit_override is not None and unit_override.pro_forma_rent is not None:
            unit.pro_forma_rent = unit_override.pro_forma_rent * lift_factor
        elif unit.unit_id in renovated_ids:
            unit.pro_forma_rent = market_rent + renovation.rent_premium_per_unit
            unit.renovated = True
        else:
            unit.pro_forma_rent = unit.pro_forma_rent * lift_factor

    config = ResolvedPropertyConfig(
        market_rent=market_rent,
        stabilized_occupancy=stabilized_occupancy,
        exit_cap_rate=exit_cap_rate,
        rent_lift=rent_lift,
        current_occupancy=overrides.current_occupancy,
        t12_expenses=resolve_expenses(global_t12_per_unit, overrides.t12_expenses, record.rooms),
        pro_forma_expenses=resolve_expenses(
            global_pro_forma_per_unit, overrides.expenses, record.rooms
        ),
        renovation=renovation,
        units=units,
    )
    return config


def calculate_renovation(
    renovation: ResolvedRenovation,
    units: List[Unit],
    market_rent: float,
    exit_cap_rate: float,
) -> RenovationProfile:
    """
    Calculate renovation CapEx, value creation and ROI.

    Value creation capitalizes the monthly rent uplift over the average
    in-place rent of occupied units at the exit cap rate.
    ROI is a decimal (0.25 = 25%).
    """
    if not renovation.enabled:
        return RenovationProfile(
            enabled=False,
            units_to_renovate=renovation.units_to_renovate,
            cost_per_unit=renovation.cost_per_unit,
            rent_premium_per_unit=renovation.rent_premium_per_unit,
        )

    total_capex = renovation.units_to_renovate * renovation.cost_per_unit

    occupied_rents = [u.current_rent for u in units if u.status == UnitStatus.occupied]
    average_current_rent = sum(occupied_rents) / len(occupied_rents) if occupied_rents else 0.0

    uplift = max(0.0, (market_rent + renovation.rent_premium_per_unit) - average_current_rent)
    value_creation = (
        uplift * renovation.units_to_renovate * 12 / (exit_cap_rate / 100)
        if exit_cap_rate > 0
        else 0.0
    )
    roi = (value_creation - total_capex) / total_capex if total_capex > 0 else 0.0

    return RenovationProfile(
        enabled=True,
        units_to_renovate=renovation.units_to_renovate,
        cost_per_unit=renovation.cost_per_unit,
        rent_premium_per_unit=renovation.rent_premium_per_unit,
        total_capex=total_capex,
        value_creation=value_creation,
        roi=roi,
    )


def calculate_property(
    record: PropertyRecord,
    assumptions: Assumptions,
    overrides: Optional[PropertyOverrides] = None,
    allocated_price: float = 0.0,
    global_t12_per_unit: Optional[ExpenseDetail] = None,
    global_pro_forma_per_unit: Optional[ExpenseDetail] = None,
) -> CalculatedProperty:
    """
    Calculate current and stabilized financials for a single property.

    Args:
        record: Raw property data with optional rent roll
        assumptions: Deal-level market assumptions
        overrides: Property-specific overrides (take precedence over assumptions)
        allocated_price: Purchase price allocated to this property
        global_t12_per_unit: Current (T12) annual expenses per unit
        global_pro_forma_per_unit: Stabilized annual expenses per unit

    Returns:
        CalculatedProperty with financials, valuation and renovation profile
    """
    config = resolve_property_config(
        record, assumptions, overrides, global_t12_per_unit, global_pro_forma_per_unit
    )
    units = config.units

    occupied_count = sum(1 for u in units if u.status == UnitStatus.occupied)
    unit_count = len(units)

    # Annualized rent roll
    actual_current_gri = sum(u.current_rent for u in units) * 12
    potential_gross_income = sum(u.pro_forma_rent for u in units) * 12
    actual_occupancy = (occupied_count / unit_count) * 100 if unit_count > 0 else 0.0

    # === CURRENT (T12) ===
    if config.current_occupancy is not None:
        current_occupancy = config.current_occupancy
        current_occupied_rooms = _round_half_up((current_occupancy / 100) * record.rooms)
        current_gri = current_occupied_rooms * config.market_rent * 12
    else:
        current_occupancy = actual_occupancy
        current_occupied_rooms = occupied_count
        current_gri = actual_current_gri

    current_opex = config.t12_expenses.total()
    current_noi = current_gri - current_opex

    # === STABILIZED (PRO FORMA) ===
    stabilized_occupied_rooms = _round_half_up(
        (config.stabilized_occupancy / 100) * record.rooms
    )
    stabilized_gri = potential_gross_income * (config.stabilized_occupancy / 100)
    stabilized_opex = config.pro_forma_expenses.total()
    stabilized_noi = stabilized_gri - stabilized_opex

    # === VALUATION ===
    asking_price = allocated_price
    stabilized_value = (
        stabilized_noi / (config.exit_cap_rate / 100)
        if stabilized_noi > 0 and config.exit_cap_rate > 0
        else 0.0
    )
    current_cap_rate = (current_noi / asking_price) * 100 if asking_price > 0 else 0.0
    stabilized_cap_rate = (stabilized_noi / asking_price) * 100 if asking_price > 0 else 0.0
    upside = (
        ((stabilized_value - asking_price) / asking_price) * 100 if asking_price > 0 else 0.0
    )

    renovation = calculate_renovation(
        config.renovation, units, config.market_rent, config.exit_cap_rate
    )

    logger.debug(
        f"Property {record.id}: current NOI {current_noi:,.0f}, "
        f"stabilized NOI {stabilized_noi:,.0f}, renovation capex {renovation.total_capex:,.0f}"
    )

    return CalculatedProperty(
        id=record.id,
        address=record.address,
        rooms=record.rooms,
        current=Financials(
            occupied_rooms=current_occupied_rooms,
            occupancy=current_occupancy,
            gri=current_gri,
            opex=current_opex,
            noi=current_noi,
            cap_rate=current_cap_rate,
        ),
        stabilized=Financials(
            occupied_rooms=stabilized_occupied_rooms,
            occupancy=config.stabilized_occupancy,
            gri=stabilized_gri,
            opex=stabilized_opex,
            noi=stabilized_noi,
            cap_rate=stabilized_cap_rate,
        ),
        valuation=Valuation(
            asking_price=asking_price,
            stabilized_value=stabilized_value,
            price_per_room=asking_price / record.rooms if record.rooms > 0 else 0.0,
            upside=upside,
        ),
        units=units,
        current_expense_detail=config.t12_expenses,
        stabilized_expense_detail=config.pro_forma_expenses,
        renovation=renovation,
    )


def normalize_allocations(allocations: Dict[int, float]) -> Dict[int, float]:
    """Rescale price allocation percentages so they sum to 100."""
    total = sum(v or 0 for v in allocations.values())
    if total == 0:
        return dict(allocations)
    return {prop_id: ((pct or 0) / total) * 100 for prop_id, pct in allocations.items()}


def allocate_purchase_prices(
    records: List[PropertyRecord],
    assumptions: Assumptions,
    allocations: Dict[int, float],
) -> Dict[int, float]:
    """
    Split the deal's total asking price across properties.

    Total asking price is rooms x asking price per room over every record;
    each property receives its allocation percentage of that total.
    """
    total_asking_price = sum(r.rooms * assumptions.asking_price_per_room for r in records)
    return {
        r.id: total_asking_price * ((allocations.get(r.id) or 0) / 100) for r in records
    }
