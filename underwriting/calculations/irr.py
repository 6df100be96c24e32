"""
IRR and NPV Calculations

Implements IRR using the Newton-Raphson method on annual cash flows.
Non-convergence is reported as None rather than raised, since callers
display "N/A" for it.
"""

import logging
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 1000
TOLERANCE = 1e-7
DEFAULT_GUESS = 0.1


def calculate_npv(cash_flows: List[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow)
        discount_rate: Annual discount rate (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    flows = np.asarray(cash_flows, dtype=float)
    periods = np.arange(len(flows))
    return float(np.sum(flows / (1 + discount_rate) ** periods))


def _npv_derivative(cash_flows: List[float], rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    flows = np.asarray(cash_flows, dtype=float)
    periods = np.arange(len(flows))
    return float(np.sum(-(periods * flows) / (1 + rate) ** (periods + 1)))


def calculate_irr(cash_flows: List[float], guess: float = DEFAULT_GUESS) -> Optional[float]:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Converges when |NPV| or the step between successive rates drops
    below TOLERANCE. No bracketing fallback is attempted.

    Cash flows that never change sign have no IRR, so they return None
    without iterating. Every other vector goes through Newton-Raphson.

    Args:
        cash_flows: Array of periodic cash flows
        guess: Initial guess for rate (default 0.1 = 10%)

    Returns:
        Annual IRR as decimal (e.g., 0.15 for 15%), or None if the cash
        flows do not change sign or it does not converge within MAX_ITERATIONS

    Raises:
        ValueError: If fewer than 2 cash flows are given
    """
    if len(cash_flows) < 2:
        raise ValueError("At least 2 cash flows required")

    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)

    if not has_positive or not has_negative:
        logger.debug("IRR unavailable: cash flows do not change sign")
        return None

    rate = guess

    with np.errstate(all="ignore"):
        for _ in range(MAX_ITERATIONS):
            npv = calculate_npv(cash_flows, rate)
            if abs(npv) < TOLERANCE:
                return rate

            dnpv = _npv_derivative(cash_flows, rate)
            if dnpv == 0 or not np.isfinite(dnpv) or not np.isfinite(npv):
                break

            new_rate = rate - npv / dnpv

            if abs(new_rate - rate) < TOLERANCE:
                return new_rate

            rate = new_rate

    logger.warning(f"IRR did not converge for {len(cash_flows)} cash flows")
    return None


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return), 0 when there is no investment
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        return 0.0

    return total_inflows / total_outflows


def calculate_profit(cash_flows: List[float]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(cash_flows)
