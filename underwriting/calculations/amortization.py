"""
Loan Amortization Calculations

Implements debt constants, level payments and interest-only-aware
amortization schedules. Rates are annual percentages (e.g., 7.5 for 7.5%).
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from underwriting.calculations.models import AmortizationYear


@dataclass
class LoanSchedule:
    """
    Month-by-month loan schedule produced by a single forward pass.

    balances[m] is the outstanding balance after m payments, so
    balances[0] is the original principal. interest[m] and principal[m]
    are the components of payment m (index 0 is unused).
    """

    balances: np.ndarray
    interest: np.ndarray
    principal: np.ndarray

    @property
    def months(self) -> int:
        return len(self.balances) - 1

    def balance_at(self, month: int) -> float:
        """Outstanding balance after `month` payments."""
        month = min(max(month, 0), self.months)
        return float(self.balances[month])

    def debt_service(self, start_month: int, end_month: int) -> float:
        """Total debt service (P+I) for payments start_month..end_month inclusive."""
        start = max(start_month, 1)
        end = min(end_month, self.months)
        if end < start:
            return 0.0
        return float(
            self.interest[start:end + 1].sum() + self.principal[start:end + 1].sum()
        )


def debt_constant(interest_rate: float, amortization_years: float) -> float:
    """
    Calculate the annual debt constant (annual debt service per dollar of loan).

    Args:
        interest_rate: Annual interest rate in percent
        amortization_years: Amortization period in years

    Returns:
        Annual debt constant (e.g., 0.0839 for 7.5% / 30 years)
    """
    if interest_rate < 0 or amortization_years <= 0:
        return 0.0
    if interest_rate == 0:
        # Straight-line principal
        return 1 / amortization_years

    monthly_rate = interest_rate / 100 / 12
    num_payments = amortization_years * 12
    growth = (1 + monthly_rate) ** num_payments
    monthly_factor = monthly_rate * growth / (growth - 1)
    return monthly_factor * 12


def calculate_payment(
    principal: float, interest_rate: float, amortization_years: float
) -> float:
    """Monthly level P&I payment for a fully amortizing loan."""
    if principal <= 0:
        return 0.0
    return principal * debt_constant(interest_rate, amortization_years) / 12


def build_loan_schedule(
    principal: float,
    interest_rate: float,
    monthly_payment: float,
    io_months: int = 0,
    total_months: int = 120,
) -> LoanSchedule:
    """
    Simulate a loan month by month.

    Interest-only while the payment number is within the IO period,
    level P&I payment afterwards. Principal is capped at the outstanding
    balance so the schedule never amortizes below zero.

    Args:
        principal: Starting balance
        interest_rate: Annual interest rate in percent
        monthly_payment: Level P&I payment applied after the IO period
        io_months: Interest-only period in months
        total_months: Number of payments to simulate
    """
    total_months = max(int(total_months), 0)
    monthly_rate = interest_rate / 100 / 12

    balances = np.zeros(total_months + 1)
    interest = np.zeros(total_months + 1)
    principal_paid = np.zeros(total_months + 1)

    balance = principal
    balances[0] = balance

    for period in range(1, total_months + 1):
        period_interest = balance * monthly_rate

        if period <= io_months or balance <= 0:
            period_principal = 0.0
        else:
            period_principal = min(monthly_payment - period_interest, balance)

        balance -= period_principal

        interest[period] = period_interest
        principal_paid[period] = period_principal
        balances[period] = balance

    return LoanSchedule(balances=balances, interest=interest, principal=principal_paid)


def calculate_balloon_payment(
    principal: float,
    interest_rate: float,
    monthly_payment: float,
    term_years: int,
    io_months: int = 0,
) -> float:
    """
    Remaining balance at maturity.

    Amortizes the level payment for (term * 12 - io_months) months; the
    IO period leaves the balance untouched.
    """
    amortizing_months = term_years * 12 - io_months
    if amortizing_months <= 0:
        return max(0.0, principal)

    schedule = build_loan_schedule(
        principal, interest_rate, monthly_payment, io_months=0,
        total_months=amortizing_months,
    )
    return max(0.0, schedule.balance_at(amortizing_months))


def generate_amortization_schedule(
    principal: float,
    interest_rate: float,
    monthly_payment: float,
    term_years: int,
    io_months: int = 0,
) -> List[AmortizationYear]:
    """
    Generate an annual amortization summary.

    Returns:
        One row per loan year with principal and interest paid and the
        year-end remaining balance (floored at zero)
    """
    schedule = build_loan_schedule(
        principal, interest_rate, monthly_payment, io_months, term_years * 12
    )

    rows = []
    for year in range(1, term_years + 1):
        start, end = (year - 1) * 12 + 1, year * 12
        rows.append(
            AmortizationYear(
                year=year,
                principal=float(schedule.principal[start:end + 1].sum()),
                interest=float(schedule.interest[start:end + 1].sum()),
                remaining_balance=max(0.0, schedule.balance_at(end)),
            )
        )
    return rows


def calculate_dscr(noi: float, debt_service: float) -> float:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    Returns positive infinity when there is no debt service.
    """
    if debt_service == 0:
        return float("inf")
    return noi / debt_service
