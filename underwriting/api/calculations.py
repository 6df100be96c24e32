"""
Underwriting calculation API endpoints.

These endpoints accept the engine's input structures and return freshly
calculated results. Nothing is stored between requests.
"""

import logging
import math
from dataclasses import asdict
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from underwriting.calculations import irr
from underwriting.calculations.amortization import (
    calculate_payment,
    generate_amortization_schedule,
)
from underwriting.calculations.cashflow import size_refinance
from underwriting.calculations.debt import (
    LOAN_PRESETS,
    apply_loan_preset,
    run_debt_sizing_engine,
)
from underwriting.calculations.models import (
    DEFAULT_T12_PER_UNIT,
    Assumptions,
    ExpenseDetail,
    FinancingScenario,
    InvestorReturnsScenario,
    PortfolioDefinition,
    PropertyOverrides,
    PropertyRecord,
    RefinanceScenario,
)
from underwriting.calculations.portfolio import calculate_portfolio
from underwriting.calculations.returns import calculate_investor_returns
from underwriting.calculations.valuation import (
    allocate_purchase_prices,
    calculate_property,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _json_safe(value):
    """Replace non-finite floats (e.g. uncapped DSCR) with None for JSON output."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def _response(result) -> dict:
    return _json_safe(asdict(result))


class PropertyInput(BaseModel):
    """Input for a single property calculation."""

    record: PropertyRecord
    assumptions: Assumptions = Field(default_factory=Assumptions)
    overrides: Optional[PropertyOverrides] = None
    allocated_price: float = 0.0
    global_t12_per_unit: ExpenseDetail = DEFAULT_T12_PER_UNIT
    global_pro_forma_per_unit: ExpenseDetail = Field(default_factory=ExpenseDetail)


class PortfolioInput(BaseModel):
    """Input for property and portfolio calculations."""

    properties: List[PropertyRecord]
    portfolios: List[PortfolioDefinition]
    portfolio_id: str
    assumptions: Assumptions = Field(default_factory=Assumptions)
    property_overrides: Dict[int, PropertyOverrides] = {}
    price_allocations: Dict[int, float] = {}  # % of total asking price
    global_t12_per_unit: ExpenseDetail = DEFAULT_T12_PER_UNIT
    global_pro_forma_per_unit: ExpenseDetail = Field(default_factory=ExpenseDetail)


class DebtInput(PortfolioInput):
    """Input for debt sizing."""

    financing: FinancingScenario = Field(default_factory=FinancingScenario)
    preset: Optional[str] = None


class DealInput(DebtInput):
    """Input for the full underwriting pipeline."""

    investor: InvestorReturnsScenario = Field(default_factory=InvestorReturnsScenario)
    refinance: Optional[RefinanceScenario] = None


def _calculate_properties(inputs: PortfolioInput):
    prices = allocate_purchase_prices(
        inputs.properties, inputs.assumptions, inputs.price_allocations
    )
    return [
        calculate_property(
            record,
            inputs.assumptions,
            inputs.property_overrides.get(record.id),
            prices[record.id],
            inputs.global_t12_per_unit,
            inputs.global_pro_forma_per_unit,
        )
        for record in inputs.properties
    ]


def _build_portfolio(inputs: PortfolioInput, calculated):
    try:
        return calculate_portfolio(inputs.portfolio_id, inputs.portfolios, calculated)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _resolve_financing(inputs: DebtInput) -> FinancingScenario:
    if inputs.preset is None:
        return inputs.financing
    try:
        return apply_loan_preset(inputs.financing, inputs.preset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/property")
async def calculate_property_endpoint(inputs: PropertyInput):
    """Calculate financials and valuation for one property."""
    result = calculate_property(
        inputs.record,
        inputs.assumptions,
        inputs.overrides,
        inputs.allocated_price,
        inputs.global_t12_per_unit,
        inputs.global_pro_forma_per_unit,
    )
    return _response(result)


@router.post("/portfolio")
async def calculate_portfolio_endpoint(inputs: PortfolioInput):
    """Calculate every property and aggregate the selected portfolio."""
    calculated = _calculate_properties(inputs)
    portfolio = _build_portfolio(inputs, calculated)
    return {
        "portfolio": _response(portfolio),
        "properties": [_response(p) for p in calculated],
    }


@router.get("/loan-presets")
async def list_loan_presets():
    """List the named loan presets."""
    return {
        name: {k: getattr(v, "value", v) for k, v in preset.items()}
        for name, preset in LOAN_PRESETS.items()
    }


@router.post("/debt")
async def calculate_debt_endpoint(inputs: DebtInput):
    """Size the acquisition loan for the selected portfolio."""
    financing = _resolve_financing(inputs)
    portfolio = _build_portfolio(inputs, _calculate_properties(inputs))
    loan = run_debt_sizing_engine(financing, portfolio)
    return {
        "portfolio": _response(portfolio),
        "loan": _response(loan),
    }


@router.post("/returns")
async def calculate_returns_endpoint(inputs: DealInput):
    """Size the loan and run the hold-period projection through the waterfall."""
    financing = _resolve_financing(inputs)
    portfolio = _build_portfolio(inputs, _calculate_properties(inputs))
    loan = run_debt_sizing_engine(financing, portfolio)
    returns = calculate_investor_returns(
        portfolio, loan, inputs.assumptions, inputs.investor, financing, inputs.refinance
    )
    return {
        "loan": _response(loan),
        "returns": _response(returns),
    }


@router.post("/deal")
async def calculate_deal_endpoint(inputs: DealInput):
    """Run the full pipeline: properties, portfolio, debt, projection and returns."""
    financing = _resolve_financing(inputs)
    calculated = _calculate_properties(inputs)
    portfolio = _build_portfolio(inputs, calculated)
    loan = run_debt_sizing_engine(financing, portfolio)
    returns = calculate_investor_returns(
        portfolio,
        loan,
        inputs.assumptions,
        inputs.investor,
        financing,
        inputs.refinance,
    )
    amortization = generate_amortization_schedule(
        loan.effective_loan_amount,
        financing.interest_rate,
        loan.monthly_pi_payment,
        financing.term_years,
        financing.io_period_months,
    )

    logger.info(
        f"Deal calculated for portfolio {portfolio.id}: loan {loan.effective_loan_amount:,.0f}, "
        f"LP IRR {returns.lp.irr}"
    )

    return {
        "properties": [_response(p) for p in calculated],
        "portfolio": _response(portfolio),
        "loan": _response(loan),
        "amortization": [_response(row) for row in amortization],
        "returns": _response(returns),
    }


class RefinanceInput(BaseModel):
    """Input for a standalone refinance sizing."""

    noi: float
    payoff_amount: float
    refinance: RefinanceScenario


@router.post("/refinance")
async def calculate_refinance_endpoint(inputs: RefinanceInput):
    """Size a refinance loan and its net proceeds."""
    return _response(size_refinance(inputs.noi, inputs.payoff_amount, inputs.refinance))


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[float]


class IRRResponse(BaseModel):
    """Response with IRR calculation."""

    irr: Optional[float]
    multiple: float
    profit: float
    npv_at_10_percent: float


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR for given annual cash flows."""
    try:
        irr_val = irr.calculate_irr(inputs.cash_flows)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return IRRResponse(
        irr=irr_val,
        multiple=irr.calculate_multiple(inputs.cash_flows),
        profit=irr.calculate_profit(inputs.cash_flows),
        npv_at_10_percent=irr.calculate_npv(inputs.cash_flows, 0.10),
    )


class AmortizationInput(BaseModel):
    """Input for amortization calculation."""

    principal: float
    interest_rate: float  # %
    amortization_years: int
    term_years: int = 10
    io_months: int = 0


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate an annual loan amortization schedule."""
    monthly_payment = calculate_payment(
        inputs.principal, inputs.interest_rate, inputs.amortization_years
    )
    schedule = generate_amortization_schedule(
        principal=inputs.principal,
        interest_rate=inputs.interest_rate,
        monthly_payment=monthly_payment,
        term_years=inputs.term_years,
        io_months=inputs.io_months,
    )

    return {
        "monthly_payment": monthly_payment,
        "schedule": [_response(row) for row in schedule],
        "total_interest": sum(row.interest for row in schedule),
        "total_principal": sum(row.principal for row in schedule),
    }
