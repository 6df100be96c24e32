"""
Investor Returns

Runs the hold-period projection through the LP/GP waterfall and rolls
the annual results up into LP and GP return summaries.

The LP funds 100% of the equity requirement; the GP contributes no
capital and participates through its residual split only.
"""

import logging
from typing import List, Optional

from underwriting.calculations.cashflow import project_cash_flows
from underwriting.calculations.irr import calculate_irr
from underwriting.calculations.models import (
    AnnualInvestorReturnRow,
    Assumptions,
    DealReturns,
    FinancingScenario,
    InvestorLevelSummary,
    InvestorReturnsScenario,
    LoanCalcs,
    Portfolio,
    RefinanceScenario,
    ReturnsSummary,
)
from underwriting.calculations.waterfall import WaterfallState, run_waterfall

logger = logging.getLogger(__name__)


def total_distributions(cash_flows: List[float]) -> float:
    """Sum of positive entries; the initial contribution is excluded by sign."""
    return sum(cf for cf in cash_flows if cf > 0)


def calculate_investor_share(
    lp_returns: ReturnsSummary, investment_amount: Optional[float] = None
) -> InvestorLevelSummary:
    """
    Pro-rate LP class results to one investor's check.

    The check is capped at the LP capital pool. Dollar figures scale by the
    investor's share of the pool; IRR, multiple and cash-on-cash are the
    LP class figures unchanged.

    Args:
        lp_returns: LP class summary
        investment_amount: Investor's check, or None for the whole pool
    """
    pool = lp_returns.capital_contribution
    if investment_amount is None:
        investment = pool
    else:
        investment = min(max(investment_amount, 0.0), pool)
    share = investment / pool if pool > 0 else 0.0
    cash_flow = lp_returns.total_distributions * share

    return InvestorLevelSummary(
        investment_amount=investment,
        share_of_lp_pool=share,
        profit_share=cash_flow - investment,
        cash_flow=cash_flow,
        equity_multiple=lp_returns.equity_multiple,
        irr=lp_returns.irr,
        average_cash_on_cash=lp_returns.average_cash_on_cash,
    )


def calculate_investor_returns(
    portfolio: Portfolio,
    loan_calcs: LoanCalcs,
    assumptions: Assumptions,
    investor: InvestorReturnsScenario,
    financing: FinancingScenario,
    refinance: Optional[RefinanceScenario] = None,
) -> DealReturns:
    """
    Calculate LP/GP returns for a deal.

    Args:
        portfolio: Aggregated portfolio
        loan_calcs: Acquisition loan sizing
        assumptions: Growth rates and exit cap rate
        investor: Ownership split and LP preferred return
        financing: Acquisition financing scenario
        refinance: Optional mid-hold refinance

    Returns:
        DealReturns. LP IRR is a percentage, or None when it does not
        converge. Average cash-on-cash is a decimal of operating
        distributions only.
    """
    lp_contribution = max(0.0, loan_calcs.equity_required)
    gp_contribution = 0.0

    lp_pct = investor.lp_ownership_percent
    gp_pct = investor.gp_ownership_percent

    projections, refi_event = project_cash_flows(
        portfolio, loan_calcs, assumptions, financing, refinance
    )

    lp_cash_flows = [-lp_contribution]
    gp_cash_flows = [gp_contribution]
    annual_rows = []
    state = WaterfallState(unreturned_capital=lp_contribution)

    for year in projections:
        result, state = run_waterfall(
            year.total_distributable,
            state,
            investor.lp_preferred_return_rate,
            lp_pct,
            gp_pct,
        )

        # Operating yield excludes pref, sale and refinance proceeds
        lp_operating_share = year.operating_distributable * lp_pct
        lp_cash_on_cash = lp_operating_share / lp_contribution if lp_contribution > 0 else 0.0

        annual_rows.append(
            AnnualInvestorReturnRow(
                year=year.year,
                noi=year.noi,
                annual_cash_flow=year.total_distributable,
                operating_cash_flow=year.operating_distributable,
                sale_proceeds=year.sale_distributable,
                lp_pref=result.paid_pref,
                cash_after_pref=result.cash_after_pref,
                lp_split=result.lp_split,
                gp_split=result.gp_split,
                lp_total_dist=result.lp_total_dist,
                gp_total_dist=result.gp_total_dist,
                lp_cash_on_cash=lp_cash_on_cash,
                debt_service=year.debt_service,
                refinance_proceeds=year.refinance_proceeds,
                ending_loan_balance=year.ending_loan_balance,
                unreturned_capital=state.unreturned_capital,
                accrued_pref=state.accrued_pref,
            )
        )

        lp_cash_flows.append(result.lp_total_dist)
        gp_cash_flows.append(result.gp_total_dist)

    # === LP summary ===
    lp_total = total_distributions(lp_cash_flows)
    lp_irr = calculate_irr(lp_cash_flows)
    lp_average_coc = (
        sum(r.lp_cash_on_cash for r in annual_rows) / len(annual_rows) if annual_rows else 0.0
    )

    lp_returns = ReturnsSummary(
        capital_contribution=lp_contribution,
        total_distributions=lp_total,
        total_profit=lp_total - lp_contribution,
        equity_multiple=lp_total / lp_contribution if lp_contribution > 0 else 0.0,
        irr=lp_irr * 100 if lp_irr is not None else None,
        average_cash_on_cash=lp_average_coc,
    )

    # === GP summary: no cost basis, so ratio metrics are not applicable ===
    gp_total = total_distributions(gp_cash_flows)
    gp_returns = ReturnsSummary(
        capital_contribution=gp_contribution,
        total_distributions=gp_total,
        total_profit=gp_total,
        equity_multiple=0.0,
        irr=None,
        average_cash_on_cash=0.0,
    )

    logger.debug(
        f"LP returns: contribution {lp_contribution:,.0f}, distributions {lp_total:,.0f}, "
        f"IRR {lp_returns.irr}"
    )

    return DealReturns(
        annual=annual_rows,
        lp=lp_returns,
        gp=gp_returns,
        investor=calculate_investor_share(lp_returns, investor.investment_amount),
        total_equity_required=loan_calcs.equity_required,
        refinance=refi_event,
    )
