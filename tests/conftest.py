"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from underwriting.calculations.models import (
    Assumptions,
    FinancingScenario,
    Financials,
    InvestorReturnsScenario,
    Portfolio,
    PropertyRecord,
    SizingMethod,
    UnitRecord,
    UnitStatus,
    Valuation,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def assumptions():
    """Deal assumptions used across tests."""
    return Assumptions(
        market_rent=900,
        stabilized_occupancy=95,
        cap_rate=8.0,
        rent_growth=2.5,
        opex_growth=4.0,
        rent_lift=0,
        renovation_cost_per_unit=15000,
        renovation_rent_premium=250,
        asking_price_per_room=100000,
    )


@pytest.fixture
def ten_room_property():
    """Property with no rent roll."""
    return PropertyRecord(id=1, address="75 Baldwin Ave, Newark, NJ", rooms=10)


@pytest.fixture
def rent_roll_property():
    """Four-unit property with two vacancies."""
    return PropertyRecord(
        id=2,
        address="11 Lincoln Park, Newark, NJ",
        rooms=4,
        units=[
            UnitRecord(unit_id="A", status=UnitStatus.occupied, tenant_name="Ann", current_rent=800),
            UnitRecord(unit_id="B", status=UnitStatus.occupied, tenant_name="Bob", current_rent=850),
            UnitRecord(unit_id="C", status=UnitStatus.vacant),
            UnitRecord(unit_id="D", status=UnitStatus.vacant),
        ],
    )


@pytest.fixture
def sample_portfolio():
    """Aggregated portfolio: $10M price, $1M stabilized NOI."""
    return Portfolio(
        id="full",
        name="Full Portfolio",
        property_ids=[1, 2],
        property_count=2,
        total_rooms=100,
        current=Financials(occupancy=85, gri=1_400_000, opex=500_000, noi=900_000),
        stabilized=Financials(occupancy=95, gri=1_600_000, opex=600_000, noi=1_000_000),
        valuation=Valuation(asking_price=10_000_000, stabilized_value=12_500_000),
    )


@pytest.fixture
def financing():
    """70% LTV, 7.5%, 30-year amortization, 5-year term."""
    return FinancingScenario(
        sizing_method=SizingMethod.ltv,
        target_dscr=1.25,
        target_ltv=70,
        interest_rate=7.5,
        amortization_years=30,
        term_years=5,
        io_period_months=0,
    )


@pytest.fixture
def investor():
    return InvestorReturnsScenario(
        lp_ownership_percent=0.70,
        gp_ownership_percent=0.30,
        lp_preferred_return_rate=0.08,
    )
