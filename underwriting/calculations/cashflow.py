"""
Cash Flow Calculations

Generates the annual hold-period projection for a portfolio: grown NOI,
debt service against the original or refinanced loan, year-end balances
and distributable cash (operations, refinance proceeds and terminal sale).
"""

import logging
import math
from typing import List, Optional, Tuple

from underwriting.calculations.amortization import (
    LoanSchedule,
    build_loan_schedule,
    calculate_dscr,
    debt_constant,
)
from underwriting.calculations.models import (
    Assumptions,
    FinancingScenario,
    LoanCalcs,
    Portfolio,
    RefinanceEvent,
    RefinanceScenario,
    YearProjection,
)

logger = logging.getLogger(__name__)

DEFAULT_HOLD_YEARS = 5


def refinance_year(refinance: RefinanceScenario) -> int:
    """Projection year in which the refinance month falls."""
    return math.ceil(refinance.refinance_month / 12)


def hold_period_years(
    financing: FinancingScenario, refinance: Optional[RefinanceScenario] = None
) -> int:
    """
    Number of projection years.

    The loan term, extended to cover the refinance year when a refinance
    is enabled.
    """
    term_years = financing.term_years or DEFAULT_HOLD_YEARS
    if refinance is not None and refinance.enabled:
        return max(term_years, refinance_year(refinance))
    return term_years


def calculate_year_noi(
    portfolio: Portfolio, year: int, rent_growth: float, opex_growth: float
) -> Tuple[float, float, float]:
    """
    Grow income and expenses for a projection year.

    Year 1 starts from current (T12) figures, later years from stabilized
    figures. Rent and expense growth compound separately by (1 + g)^(year - 1).

    Args:
        portfolio: Aggregated portfolio
        year: Projection year (1-based)
        rent_growth: Annual rent growth as decimal
        opex_growth: Annual expense growth as decimal

    Returns:
        (gri, opex, noi) for the year
    """
    if year == 1:
        base_gri, base_opex = portfolio.current.gri, portfolio.current.opex
    else:
        base_gri, base_opex = portfolio.stabilized.gri, portfolio.stabilized.opex

    gri = (base_gri or 0.0) * (1 + rent_growth) ** (year - 1)
    opex = (base_opex or 0.0) * (1 + opex_growth) ** (year - 1)
    return gri, opex, gri - opex


def size_refinance(
    noi: float, payoff_amount: float, refinance: RefinanceScenario
) -> RefinanceEvent:
    """
    Size a refinance loan and its net proceeds.

    The new loan is the lower of the LTV-constrained loan on the
    cap-rate valuation and the DSCR-constrained loan.

    Args:
        noi: NOI of the refinance year
        payoff_amount: Original loan balance at the refinance month
        refinance: Refinance scenario

    Returns:
        RefinanceEvent; net_proceeds is negative when the new loan does
        not cover the payoff and costs
    """
    cap_rate = refinance.valuation_cap_rate / 100
    valuation = noi / cap_rate if cap_rate > 0 else 0.0

    max_loan_by_ltv = valuation * (refinance.max_ltv / 100)
    refi_constant = debt_constant(refinance.interest_rate, refinance.amortization_years)
    if refi_constant > 0 and refinance.min_dscr > 0:
        max_loan_by_dscr = noi / (refinance.min_dscr * refi_constant)
    else:
        max_loan_by_dscr = 0.0

    new_loan_amount = min(max_loan_by_ltv, max_loan_by_dscr)
    if not math.isfinite(new_loan_amount) or new_loan_amount < 0:
        new_loan_amount = 0.0

    costs = refinance.costs
    origination_fee = new_loan_amount * (costs.origination / 100)
    total_costs = (
        origination_fee
        + costs.legal
        + costs.title
        + costs.appraisal
        + costs.mortgage_fees
        + costs.reserves
        + costs.third_party
        + costs.misc
    )
    net_proceeds = new_loan_amount - payoff_amount - total_costs
    new_monthly_payment = new_loan_amount * refi_constant / 12

    return RefinanceEvent(
        year=refinance_year(refinance),
        month=refinance.refinance_month,
        noi=noi,
        valuation=valuation,
        max_loan_by_ltv=max_loan_by_ltv,
        max_loan_by_dscr=max_loan_by_dscr,
        new_loan_amount=new_loan_amount,
        payoff_amount=payoff_amount,
        origination_fee=origination_fee,
        total_costs=total_costs,
        net_proceeds=net_proceeds,
        new_monthly_payment=new_monthly_payment,
        new_dscr=calculate_dscr(noi, new_monthly_payment * 12),
        is_cash_out=net_proceeds > 0,
    )


def _year_months(year: int) -> Tuple[int, int]:
    return (year - 1) * 12 + 1, year * 12


def project_cash_flows(
    portfolio: Portfolio,
    loan_calcs: LoanCalcs,
    assumptions: Assumptions,
    financing: FinancingScenario,
    refinance: Optional[RefinanceScenario] = None,
) -> Tuple[List[YearProjection], Optional[RefinanceEvent]]:
    """
    Generate annual cash flow projections over the hold period.

    Each loan is simulated once up front; balances and debt service are
    read from the resulting monthly schedules.

    Refinance year:
    - NOI sizes the new loan; payoff is the original balance at the exact
      refinance month
    - Debt service is the original loan's full 12-month schedule
    - Year-end balance is the new loan amount
    Later years follow the new loan's own schedule.

    Distributable cash is operating cash flow (floored at zero), plus
    positive refinance proceeds in the refinance year, plus sale proceeds
    net of the year-end balance in the final year.

    Returns:
        (annual projections, refinance event or None)
    """
    hold_years = hold_period_years(financing, refinance)
    rent_growth = (assumptions.rent_growth or 0) / 100
    opex_growth = (assumptions.opex_growth or 0) / 100
    exit_cap_rate = (assumptions.cap_rate or 0) / 100

    original_loan = build_loan_schedule(
        loan_calcs.effective_loan_amount,
        financing.interest_rate,
        loan_calcs.monthly_pi_payment,
        io_months=financing.io_period_months,
        total_months=hold_years * 12,
    )

    refi_enabled = refinance is not None and refinance.enabled
    refi_year = refinance_year(refinance) if refi_enabled else None
    refi_event: Optional[RefinanceEvent] = None
    new_loan: Optional[LoanSchedule] = None

    projections = []

    for year in range(1, hold_years + 1):
        gri, opex, noi = calculate_year_noi(portfolio, year, rent_growth, opex_growth)
        start_month, end_month = _year_months(year)
        refinance_proceeds = 0.0

        if refi_enabled and year == refi_year:
            payoff = original_loan.balance_at(refinance.refinance_month)
            refi_event = size_refinance(noi, payoff, refinance)
            debt_service = original_loan.debt_service(start_month, end_month)
            ending_balance = refi_event.new_loan_amount
            refinance_proceeds = refi_event.net_proceeds

            new_loan = build_loan_schedule(
                refi_event.new_loan_amount,
                refinance.interest_rate,
                refi_event.new_monthly_payment,
                io_months=0,
                total_months=(hold_years - refi_year) * 12,
            )
            logger.debug(
                f"Refinance in year {year}: new loan {refi_event.new_loan_amount:,.0f}, "
                f"payoff {payoff:,.0f}, net proceeds {refi_event.net_proceeds:,.0f}"
            )
        elif refi_enabled and year > refi_year:
            offset = year - refi_year
            new_start, new_end = _year_months(offset)
            debt_service = new_loan.debt_service(new_start, new_end)
            ending_balance = new_loan.balance_at(new_end)
        else:
            debt_service = original_loan.debt_service(start_month, end_month)
            ending_balance = original_loan.balance_at(end_month)

        ending_balance = max(0.0, ending_balance)
        operating_distributable = max(0.0, noi - debt_service)

        sale_distributable = 0.0
        if year == hold_years:
            sale_price = noi / exit_cap_rate if exit_cap_rate > 0 else 0.0
            sale_distributable = max(0.0, sale_price - ending_balance)

        # Negative refinance proceeds are not called from investors
        total_distributable = (
            operating_distributable + sale_distributable + max(0.0, refinance_proceeds)
        )

        projections.append(
            YearProjection(
                year=year,
                gri=gri,
                opex=opex,
                noi=noi,
                debt_service=debt_service,
                ending_loan_balance=ending_balance,
                operating_distributable=operating_distributable,
                sale_distributable=sale_distributable,
                refinance_proceeds=refinance_proceeds,
                total_distributable=total_distributable,
            )
        )

    return projections, refi_event
