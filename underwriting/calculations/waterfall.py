"""
Waterfall Distribution Calculations

Single-tier LP/GP waterfall applied one year at a time:
1. Preferred Return - LP pref accrues on unreturned capital (simple, annual)
   and is paid ahead of any split; unpaid pref carries forward
2. Residual Split - Remaining cash split by ownership percentage, no promote

Unreturned capital is reduced by the LP's residual split only, since the
preferred return is a return on capital rather than of it.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class WaterfallState:
    """LP balances carried from one year to the next."""

    unreturned_capital: float
    accrued_pref: float = 0.0


@dataclass
class WaterfallResult:
    """Distribution breakdown for one year."""

    distributable_cash: float
    pref_accrued: float  # Current-year accrual
    pref_due: float  # Prior unpaid + current accrual
    paid_pref: float
    cash_after_pref: float
    lp_split: float
    gp_split: float
    lp_total_dist: float
    gp_total_dist: float


def run_waterfall(
    distributable_cash: float,
    state: WaterfallState,
    pref_rate: float,
    lp_pct: float,
    gp_pct: float,
) -> Tuple[WaterfallResult, WaterfallState]:
    """
    Distribute one year of cash through the waterfall.

    Args:
        distributable_cash: Cash available for distribution this year
        state: Unreturned capital and accrued pref carried in
        pref_rate: LP preferred return rate as decimal (e.g., 0.08)
        lp_pct: LP share of residual cash as decimal (e.g., 0.70)
        gp_pct: GP share of residual cash as decimal (e.g., 0.30)

    Returns:
        (distribution breakdown, state to carry into the next year)
    """
    pref_accrued = state.unreturned_capital * pref_rate
    pref_due = state.accrued_pref + pref_accrued

    paid_pref = max(0.0, min(distributable_cash, pref_due))
    cash_after_pref = max(0.0, distributable_cash - paid_pref)

    lp_split = cash_after_pref * lp_pct
    gp_split = cash_after_pref * gp_pct

    next_state = WaterfallState(
        unreturned_capital=max(0.0, state.unreturned_capital - lp_split),
        accrued_pref=pref_due - paid_pref,
    )

    result = WaterfallResult(
        distributable_cash=distributable_cash,
        pref_accrued=pref_accrued,
        pref_due=pref_due,
        paid_pref=paid_pref,
        cash_after_pref=cash_after_pref,
        lp_split=lp_split,
        gp_split=gp_split,
        lp_total_dist=paid_pref + lp_split,
        gp_total_dist=gp_split,
    )
    return result, next_state

