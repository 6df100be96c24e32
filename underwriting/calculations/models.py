"""
Underwriting Data Model

Input and output structures shared by the calculation modules.
Inputs are frozen dataclasses; outputs are rebuilt on every calculation.

Unit conventions:
- Assumption, financing and refinance rates are whole percents (7.5 = 7.5%)
- Investor returns scenario uses decimals (0.70 = 70%, 0.08 = 8%)
- Rents are monthly, all other dollar figures are annual
"""

import enum
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional


class UnitStatus(str, enum.Enum):
    """Occupancy status of a rent roll unit."""

    occupied = "Occupied"
    vacant = "Vacant"


class SizingMethod(str, enum.Enum):
    """How the acquisition loan amount is determined."""

    dscr = "dscr"
    ltv = "ltv"
    lower_dscr_ltv = "lower_dscr_ltv"
    manual = "manual"


# === Property inputs ===


@dataclass(frozen=True)
class UnitRecord:
    """A single row of a property's rent roll."""

    unit_id: str
    status: UnitStatus = UnitStatus.occupied
    tenant_name: str = ""
    current_rent: float = 0.0  # Monthly
    target_rent: Optional[float] = None  # Monthly; market rent when unset


@dataclass(frozen=True)
class PropertyRecord:
    """Raw property data."""

    id: int
    address: str
    rooms: int
    units: Optional[List[UnitRecord]] = None
    city: str = ""
    property_type: Optional[str] = None


@dataclass(frozen=True)
class Assumptions:
    """Deal-level market assumptions."""

    market_rent: float = 900.0  # Monthly per unit
    stabilized_occupancy: float = 95.0  # %
    cap_rate: float = 8.0  # Exit cap rate, %
    rent_growth: float = 2.5  # Annual, %
    opex_growth: float = 4.0  # Annual, %
    rent_lift: float = 0.0  # Pro forma lift on market rent, %
    renovation_cost_per_unit: float = 15000.0
    renovation_rent_premium: float = 250.0  # Monthly per renovated unit
    asking_price_per_room: float = 0.0


@dataclass(frozen=True)
class ExpenseDetail:
    """Annual operating expense line items."""

    taxes: float = 0.0
    insurance: float = 0.0
    exterminator: float = 0.0
    electric: float = 0.0
    water_sewer: float = 0.0
    gas: float = 0.0
    internet: float = 0.0
    general_admin: float = 0.0
    payroll: float = 0.0
    repairs_maint: float = 0.0
    pest_control: float = 0.0
    waste_management: float = 0.0
    management: float = 0.0
    other: float = 0.0

    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))


EXPENSE_FIELDS = [f.name for f in fields(ExpenseDetail)]

# Default T12 expenses per unit (annual)
DEFAULT_T12_PER_UNIT = ExpenseDetail(general_admin=2250.0)


@dataclass(frozen=True)
class ExpenseOverrides:
    """Property-specific expense replacements; None means not overridden."""

    taxes: Optional[float] = None
    insurance: Optional[float] = None
    exterminator: Optional[float] = None
    electric: Optional[float] = None
    water_sewer: Optional[float] = None
    gas: Optional[float] = None
    internet: Optional[float] = None
    general_admin: Optional[float] = None
    payroll: Optional[float] = None
    repairs_maint: Optional[float] = None
    pest_control: Optional[float] = None
    waste_management: Optional[float] = None
    management: Optional[float] = None
    other: Optional[float] = None


@dataclass(frozen=True)
class UnitOverride:
    status: Optional[UnitStatus] = None
    tenant_name: Optional[str] = None
    current_rent: Optional[float] = None
    pro_forma_rent: Optional[float] = None


@dataclass(frozen=True)
class RenovationOverride:
    enabled: Optional[bool] = None
    units_to_renovate: Optional[int] = None
    cost_per_unit: Optional[float] = None
    rent_premium_per_unit: Optional[float] = None


@dataclass(frozen=True)
class PropertyOverrides:
    """Per-property replacements for assumption-derived values."""

    current_occupancy: Optional[float] = None
    stabilized_occupancy: Optional[float] = None
    rent: Optional[float] = None
    cap_rate: Optional[float] = None
    units: Dict[str, UnitOverride] = field(default_factory=dict)
    expenses: ExpenseOverrides = field(default_factory=ExpenseOverrides)
    t12_expenses: ExpenseOverrides = field(default_factory=ExpenseOverrides)
    renovation: RenovationOverride = field(default_factory=RenovationOverride)


# === Property outputs ===


@dataclass
class Unit:
    unit_id: str
    status: UnitStatus
    tenant_name: str
    current_rent: float
    pro_forma_rent: float
    renovated: bool = False


@dataclass
class ResolvedRenovation:
    enabled: bool
    units_to_renovate: int
    cost_per_unit: float
    rent_premium_per_unit: float


@dataclass
class ResolvedPropertyConfig:
    """Concrete configuration for one property after all overrides are merged."""

    market_rent: float
    stabilized_occupancy: float
    exit_cap_rate: float
    rent_lift: float
    current_occupancy: Optional[float]
    t12_expenses: ExpenseDetail
    pro_forma_expenses: ExpenseDetail
    renovation: ResolvedRenovation
    units: List[Unit]


@dataclass
class Financials:
    occupied_rooms: float = 0.0
    occupancy: float = 0.0
    gri: float = 0.0
    opex: float = 0.0
    noi: float = 0.0
    cap_rate: float = 0.0


@dataclass
class Valuation:
    asking_price: float = 0.0
    stabilized_value: float = 0.0
    price_per_room: float = 0.0
    upside: float = 0.0


@dataclass
class RenovationProfile:
    enabled: bool = False
    units_to_renovate: int = 0
    cost_per_unit: float = 0.0
    rent_premium_per_unit: float = 0.0
    total_capex: float = 0.0
    value_creation: float = 0.0
    roi: float = 0.0


@dataclass
class CalculatedProperty:
    id: int
    address: str
    rooms: int
    current: Financials
    stabilized: Financials
    valuation: Valuation
    units: List[Unit]
    current_expense_detail: ExpenseDetail
    stabilized_expense_detail: ExpenseDetail
    renovation: RenovationProfile


# === Portfolio ===


@dataclass(frozen=True)
class PortfolioDefinition:
    id: str
    name: str = ""
    property_ids: List[int] = field(default_factory=list)


@dataclass
class PortfolioRenovation:
    """Renovation program rolled up across member properties."""

    units_to_renovate: int = 0
    total_capex: float = 0.0
    total_value_creation: float = 0.0
    roi: float = 0.0  # Decimal


@dataclass
class Portfolio:
    id: str
    name: str
    property_ids: List[int]
    property_count: int = 0
    total_rooms: int = 0
    current: Financials = field(default_factory=Financials)
    stabilized: Financials = field(default_factory=Financials)
    valuation: Valuation = field(default_factory=Valuation)
    renovation: PortfolioRenovation = field(default_factory=PortfolioRenovation)


# === Financing inputs ===


@dataclass(frozen=True)
class ClosingCosts:
    """Acquisition closing costs. All dollar amounts except origination (%)."""

    legal: float = 50000.0
    title: float = 25000.0
    inspection: float = 22000.0
    appraisal: float = 10000.0
    mortgage_fees: float = 200000.0
    acquisition_fee: float = 140000.0  # Superseded by the 1% of price fee
    reserves: float = 1000000.0  # Superseded by six months of debt service
    origination: float = 1.0  # % of loan
    third_party: float = 0.0
    misc: float = 0.0


@dataclass(frozen=True)
class FinancingScenario:
    sizing_method: SizingMethod = SizingMethod.ltv
    target_dscr: float = 1.25
    target_ltv: float = 70.0  # %
    manual_loan_amount: float = 10000000.0
    interest_rate: float = 7.5  # %
    amortization_years: int = 30
    term_years: int = 5
    io_period_months: int = 0
    costs: ClosingCosts = field(default_factory=ClosingCosts)


@dataclass(frozen=True)
class RefinanceCosts:
    legal: float = 25000.0
    title: float = 15000.0
    appraisal: float = 10000.0
    mortgage_fees: float = 50000.0
    reserves: float = 0.0
    origination: float = 1.0  # % of new loan
    third_party: float = 0.0
    misc: float = 0.0


@dataclass(frozen=True)
class RefinanceScenario:
    enabled: bool = False
    refinance_month: int = 36  # 1..120
    interest_rate: float = 6.5  # %
    amortization_years: int = 30
    term_years: int = 10
    max_ltv: float = 75.0  # %
    min_dscr: float = 1.25
    valuation_cap_rate: float = 7.5  # %
    costs: RefinanceCosts = field(default_factory=RefinanceCosts)


@dataclass(frozen=True)
class InvestorReturnsScenario:
    lp_ownership_percent: float = 0.70
    gp_ownership_percent: float = 0.30
    lp_preferred_return_rate: float = 0.08
    investment_amount: Optional[float] = None  # Individual check; None = whole LP pool


# === Financing outputs ===


@dataclass
class LoanCalcs:
    # Sizing
    max_loan_by_dscr: float
    max_loan_by_ltv: float
    effective_loan_amount: float
    dscr_capped: bool

    # Costs & equity
    acquisition_fee: float
    reserves: float
    origination_fee: float
    total_closing_costs: float
    total_cost: float
    equity_required: float

    # Payments
    monthly_io_payment: float
    monthly_pi_payment: float
    annual_debt_service: float
    balloon_payment: float

    # Ratios
    dscr_current: float
    dscr_stabilized: float
    loan_to_value: float
    loan_to_cost: float

    # Investor impact
    cash_flow_after_debt: float
    cash_on_cash_return: float


@dataclass
class AmortizationYear:
    year: int
    principal: float
    interest: float
    remaining_balance: float


@dataclass
class RefinanceEvent:
    year: int
    month: int
    noi: float
    valuation: float
    max_loan_by_ltv: float
    max_loan_by_dscr: float
    new_loan_amount: float
    payoff_amount: float
    origination_fee: float
    total_costs: float
    net_proceeds: float
    new_monthly_payment: float
    new_dscr: float
    is_cash_out: bool


@dataclass
class YearProjection:
    year: int
    gri: float
    opex: float
    noi: float
    debt_service: float
    ending_loan_balance: float
    operating_distributable: float
    sale_distributable: float
    refinance_proceeds: float
    total_distributable: float


# === Returns outputs ===


@dataclass
class AnnualInvestorReturnRow:
    year: int
    noi: float
    annual_cash_flow: float  # Total distributable
    operating_cash_flow: float
    sale_proceeds: float
    lp_pref: float
    cash_after_pref: float
    lp_split: float
    gp_split: float
    lp_total_dist: float
    gp_total_dist: float
    lp_cash_on_cash: float  # Operating only
    debt_service: float
    refinance_proceeds: float
    ending_loan_balance: float
    unreturned_capital: float
    accrued_pref: float


@dataclass
class ReturnsSummary:
    capital_contribution: float
    total_distributions: float
    total_profit: float
    equity_multiple: float
    irr: Optional[float]  # %, None when unavailable
    average_cash_on_cash: float


@dataclass
class InvestorLevelSummary:
    """One investor's pro-rata slice of the LP class."""

    investment_amount: float
    share_of_lp_pool: float  # Decimal
    profit_share: float
    cash_flow: float
    equity_multiple: float
    irr: Optional[float]
    average_cash_on_cash: float


@dataclass
class DealReturns:
    annual: List[AnnualInvestorReturnRow]
    lp: ReturnsSummary
    gp: ReturnsSummary
    investor: InvestorLevelSummary
    total_equity_required: float
    refinance: Optional[RefinanceEvent] = None
