"""
Debt Sizing Calculations

Sizes the acquisition loan against DSCR and LTV constraints and derives
closing costs, equity, debt service, coverage ratios and the balloon.

Rates and LTV targets are whole percents (7.5 = 7.5%).
"""

import logging
import math
from dataclasses import replace

from underwriting.calculations.amortization import (
    calculate_balloon_payment,
    calculate_dscr,
    debt_constant,
)
from underwriting.calculations.models import (
    FinancingScenario,
    LoanCalcs,
    Portfolio,
    SizingMethod,
)

logger = logging.getLogger(__name__)

# Acquisition fee charged on purchase price, regardless of the configured fee
ACQUISITION_FEE_PERCENT = 1.0

# Months of the first monthly payment held back as reserves
RESERVE_MONTHS = 6

LOAN_PRESETS = {
    "bridge": {
        "sizing_method": SizingMethod.ltv,
        "target_ltv": 80.0,
        "interest_rate": 9.5,
        "term_years": 3,
        "io_period_months": 24,
        "amortization_years": 30,
    },
    "bank": {
        "sizing_method": SizingMethod.lower_dscr_ltv,
        "target_ltv": 75.0,
        "interest_rate": 7.5,
        "term_years": 10,
        "io_period_months": 6,
        "amortization_years": 25,
    },
    "agency": {
        "sizing_method": SizingMethod.lower_dscr_ltv,
        "target_ltv": 70.0,
        "interest_rate": 6.5,
        "term_years": 10,
        "io_period_months": 0,
        "amortization_years": 30,
    },
}


def apply_loan_preset(scenario: FinancingScenario, preset: str) -> FinancingScenario:
    """Return a copy of the scenario with a named loan preset applied."""
    if preset not in LOAN_PRESETS:
        raise ValueError(f"Unknown loan preset: {preset}")
    return replace(scenario, **LOAN_PRESETS[preset])


def size_loan(
    method: SizingMethod,
    max_loan_by_dscr: float,
    max_loan_by_ltv: float,
    manual_loan_amount: float,
) -> float:
    """
    Select the effective loan amount for a sizing method.

    Manual sizing bypasses both constraints. Non-finite or negative
    results are clamped to zero.
    """
    if method == SizingMethod.dscr:
        amount = max_loan_by_dscr
    elif method == SizingMethod.ltv:
        amount = max_loan_by_ltv
    elif method == SizingMethod.lower_dscr_ltv:
        amount = min(max_loan_by_dscr, max_loan_by_ltv)
    else:
        amount = manual_loan_amount

    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def run_debt_sizing_engine(scenario: FinancingScenario, portfolio: Portfolio) -> LoanCalcs:
    """
    Size the acquisition loan for a portfolio.

    Args:
        scenario: Financing scenario (sizing method, targets, terms, costs)
        portfolio: Aggregated portfolio

    Returns:
        LoanCalcs with sizing, costs, payments and ratios. DSCR and
        cash-on-cash are positive infinity when their denominator is zero.
    """
    costs = scenario.costs
    method = SizingMethod(scenario.sizing_method)
    purchase_price = portfolio.valuation.asking_price or 0.0
    current_noi = portfolio.current.noi or 0.0
    stabilized_noi = portfolio.stabilized.noi or 0.0

    # === 1. Max loan from constraints ===
    annual_debt_constant = debt_constant(scenario.interest_rate, scenario.amortization_years)

    if annual_debt_constant > 0 and scenario.target_dscr > 0:
        max_loan_by_dscr = stabilized_noi / (scenario.target_dscr * annual_debt_constant)
    else:
        max_loan_by_dscr = 0.0

    max_loan_by_ltv = purchase_price * (scenario.target_ltv / 100)

    # === 2. Effective loan amount ===
    effective_loan_amount = size_loan(
        method, max_loan_by_dscr, max_loan_by_ltv, scenario.manual_loan_amount
    )

    # === 3. Payments ===
    monthly_rate = scenario.interest_rate / 100 / 12
    monthly_pi_payment = effective_loan_amount * (annual_debt_constant / 12)
    monthly_io_payment = effective_loan_amount * monthly_rate

    io_months = scenario.io_period_months
    if io_months >= 12:
        annual_debt_service = monthly_io_payment * 12
    elif io_months > 0:
        annual_debt_service = (monthly_io_payment * io_months) + (
            monthly_pi_payment * (12 - io_months)
        )
    else:
        annual_debt_service = monthly_pi_payment * 12

    # === 4. Costs & equity ===
    acquisition_fee = purchase_price * (ACQUISITION_FEE_PERCENT / 100)
    first_payment = monthly_io_payment if io_months > 0 else monthly_pi_payment
    reserves = first_payment * RESERVE_MONTHS
    origination_fee = effective_loan_amount * (costs.origination / 100)

    total_closing_costs = (
        (costs.legal or 0)
        + (costs.title or 0)
        + (costs.inspection or 0)
        + (costs.appraisal or 0)
        + (costs.mortgage_fees or 0)
        + (costs.third_party or 0)
        + (costs.misc or 0)
        + acquisition_fee
        + reserves
        + origination_fee
    )

    total_cost = purchase_price + portfolio.renovation.total_capex + total_closing_costs
    equity_required = total_cost - effective_loan_amount

    # === 5. Ratios ===
    dscr_current = calculate_dscr(current_noi, annual_debt_service)
    dscr_stabilized = calculate_dscr(stabilized_noi, annual_debt_service)

    balloon_payment = calculate_balloon_payment(
        effective_loan_amount,
        scenario.interest_rate,
        monthly_pi_payment,
        scenario.term_years,
        io_months,
    )

    cash_flow_after_debt = stabilized_noi - annual_debt_service
    cash_on_cash_return = (
        (cash_flow_after_debt / equity_required) * 100 if equity_required > 0 else float("inf")
    )
    dscr_capped = (
        method != SizingMethod.manual
        and effective_loan_amount > 0
        and abs(effective_loan_amount - max_loan_by_dscr) < 1
    )

    logger.debug(
        f"Sized loan via {method.value}: {effective_loan_amount:,.0f} "
        f"(DSCR max {max_loan_by_dscr:,.0f}, LTV max {max_loan_by_ltv:,.0f})"
    )

    return LoanCalcs(
        max_loan_by_dscr=max_loan_by_dscr,
        max_loan_by_ltv=max_loan_by_ltv,
        effective_loan_amount=effective_loan_amount,
        dscr_capped=dscr_capped,
        acquisition_fee=acquisition_fee,
        reserves=reserves,
        origination_fee=origination_fee,
        total_closing_costs=total_closing_costs,
        total_cost=total_cost,
        equity_required=equity_required,
        monthly_io_payment=monthly_io_payment,
        monthly_pi_payment=monthly_pi_payment,
        annual_debt_service=annual_debt_service,
        balloon_payment=balloon_payment,
        dscr_current=dscr_current,
        dscr_stabilized=dscr_stabilized,
        loan_to_value=(effective_loan_amount / purchase_price) * 100 if purchase_price > 0 else 0.0,
        loan_to_cost=(effective_loan_amount / total_cost) * 100 if total_cost > 0 else 0.0,
        cash_flow_after_debt=cash_flow_after_debt,
        cash_on_cash_return=cash_on_cash_return,
    )
