"""
Portfolio Aggregation

Sums calculated properties into portfolio-level financials and valuation.
"""

import logging
from typing import List

from underwriting.calculations.models import (
    CalculatedProperty,
    Financials,
    Portfolio,
    PortfolioDefinition,
    PortfolioRenovation,
    Valuation,
)

logger = logging.getLogger(__name__)


def _aggregate_financials(
    properties: List[CalculatedProperty], state: str, total_rooms: int, total_asking_price: float
) -> Financials:
    """Sum one financial state ('current' or 'stabilized') across properties."""
    rows = [getattr(p, state) for p in properties]
    noi = sum(r.noi for r in rows)
    return Financials(
        occupied_rooms=sum(r.occupied_rooms for r in rows),
        occupancy=sum(r.occupancy * p.rooms for r, p in zip(rows, properties)) / total_rooms,
        gri=sum(r.gri for r in rows),
        opex=sum(r.opex for r in rows),
        noi=noi,
        cap_rate=(noi / total_asking_price) * 100 if total_asking_price > 0 else 0.0,
    )


def aggregate_renovation(properties: List[CalculatedProperty]) -> PortfolioRenovation:
    """
    Roll up enabled renovation programs.

    ROI is a decimal over summed CapEx, 0 when there is no CapEx.
    """
    enabled = [p.renovation for p in properties if p.renovation.enabled]
    total_capex = sum(r.total_capex for r in enabled)
    total_value_creation = sum(r.value_creation for r in enabled)
    return PortfolioRenovation(
        units_to_renovate=sum(r.units_to_renovate for r in enabled),
        total_capex=total_capex,
        total_value_creation=total_value_creation,
        roi=(total_value_creation - total_capex) / total_capex if total_capex > 0 else 0.0,
    )


def calculate_portfolio(
    portfolio_id: str,
    portfolios: List[PortfolioDefinition],
    calculated_properties: List[CalculatedProperty],
) -> Portfolio:
    """
    Aggregate a portfolio's member properties.

    Occupancy is room-weighted; cap rates use aggregate NOI over aggregate
    asking price. A portfolio with no rooms returns a zeroed shape.

    Raises:
        ValueError: If portfolio_id is not in portfolios
    """
    definition = next((p for p in portfolios if p.id == portfolio_id), None)
    if definition is None:
        raise ValueError(f"Portfolio not found: {portfolio_id}")

    member_ids = set(definition.property_ids)
    properties = [p for p in calculated_properties if p.id in member_ids]
    total_rooms = sum(p.rooms for p in properties)

    if total_rooms == 0:
        logger.debug(f"Portfolio {portfolio_id} has no rooms, returning empty aggregate")
        return Portfolio(
            id=definition.id,
            name=definition.name,
            property_ids=list(definition.property_ids),
        )

    total_asking_price = sum(p.valuation.asking_price for p in properties)
    total_stabilized_value = sum(p.valuation.stabilized_value for p in properties)
    upside = (
        ((total_stabilized_value - total_asking_price) / total_asking_price) * 100
        if total_asking_price > 0
        else 0.0
    )

    return Portfolio(
        id=definition.id,
        name=definition.name,
        property_ids=list(definition.property_ids),
        property_count=len(properties),
        total_rooms=total_rooms,
        current=_aggregate_financials(properties, "current", total_rooms, total_asking_price),
        stabilized=_aggregate_financials(
            properties, "stabilized", total_rooms, total_asking_price
        ),
        valuation=Valuation(
            asking_price=total_asking_price,
            stabilized_value=total_stabilized_value,
            price_per_room=total_asking_price / total_rooms,
            upside=upside,
        ),
        renovation=aggregate_renovation(properties),
    )
