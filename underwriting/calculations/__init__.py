"""
Underwriting Calculation Engine

Core calculation modules for portfolio underwriting: property valuation,
portfolio aggregation, debt sizing, cash flow projection, waterfall and
investor returns. Every entry point is a pure function of its inputs.
"""

from underwriting.calculations import (
    amortization,
    cashflow,
    debt,
    irr,
    portfolio,
    valuation,
    returns,
    waterfall,
)
from underwriting.calculations.debt import run_debt_sizing_engine
from underwriting.calculations.portfolio import calculate_portfolio
from underwriting.calculations.valuation import calculate_property
from underwriting.calculations.returns import calculate_investor_returns

__all__ = [
    "amortization",
    "cashflow",
    "debt",
    "irr",
    "portfolio",
    "valuation",
    "returns",
    "waterfall",
    "calculate_property",
    "calculate_portfolio",
    "run_debt_sizing_engine",
    "calculate_investor_returns",
]
