"""
Three-Statement Model

Linked income statement, balance sheet and cash flow projection. Each year
is a pure step over an explicit `Carry` record:

    carry_0 = opening_carry(data, inputs)
    statements_y, carry_y = project_year(y, carry_{y-1}, inputs)

Ending cash, debt, PP&E and working-capital balances of year y are the
opening balances of year y+1; nothing is re-read from the snapshot after
the opening carry is built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
DEPRECIATION_RATE = 0.05  # of prior total assets
GROWTH_CAPEX_RATE = 0.30  # of the revenue increase
ACCRUED_LIABILITIES_RATE = 0.10  # of revenue
OPENING_PPE_SHARE = 0.40  # of total assets


class WorkingCapitalDays(BaseModel):
    model_config = ConfigDict(frozen=True)

    ar: float = 45  # on revenue
    inventory: float = 60  # on COGS
    ap: float = 30  # on COGS


class ThreeStatementInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    projection_years: int = Field(5, ge=1)
    revenue_growth: tuple[float, ...] = Field((0.15, 0.12, 0.10, 0.08, 0.06), min_length=1)
    gross_margin: float = 0.40
    operating_margin: float = 0.20
    tax_rate: float = 0.21
    interest_rate: float = 0.05  # on prior-year debt
    working_capital_days: WorkingCapitalDays = WorkingCapitalDays()
    annual_debt_issuance: float = 0.0  # negative = repayment

    def growth_for_year(self, year: int) -> float:
        idx = min(year - 1, len(self.revenue_growth) - 1)
        return self.revenue_growth[idx]


@dataclass(frozen=True)
class Carry:
    """Closing balances of one year, opening balances of the next."""
    revenue: float
    net_income: float
    cash: float
    debt: float
    total_assets: float
    ppe: float
    accounts_receivable: float
    inventory: float
    accounts_payable: float


@dataclass(frozen=True)
class IncomeStatement:
    year: int
    revenue: float
    cost_of_goods_sold: float
    gross_profit: float
    gross_margin: float
    operating_expenses: float
    operating_income: float
    operating_margin: float
    interest_expense: float
    pre_tax_income: float
    tax: float
    net_income: float
    net_margin: float


@dataclass(frozen=True)
class ProjectedBalanceSheet:
    year: int
    cash: float
    accounts_receivable: float
    inventory: float
    total_current_assets: float
    ppe: float
    total_assets: float
    accounts_payable: float
    total_current_liabilities: float
    total_debt: float
    total_liabilities: float
    equity: float  # plug
    total_liabilities_and_equity: float


@dataclass(frozen=True)
class ProjectedCashFlow:
    year: int
    net_income: float
    depreciation: float
    change_in_working_capital: float
    operating_cash_flow: float
    capex: float
    investing_cash_flow: float
    debt_issuance: float
    financing_cash_flow: float
    net_change_in_cash: float
    beginning_cash: float
    ending_cash: float


@dataclass(frozen=True)
class YearStatements:
    income: IncomeStatement
    balance: ProjectedBalanceSheet
    cash_flow: ProjectedCashFlow


@dataclass
class ThreeStatementResult:
    symbol: str
    assumptions: ThreeStatementInputs
    opening: Carry
    income_statements: list[IncomeStatement]
    balance_sheets: list[ProjectedBalanceSheet]
    cash_flow_statements: list[ProjectedCashFlow]
    warnings: list[str] = field(default_factory=list)


def opening_carry(data: CompanyData, inputs: ThreeStatementInputs) -> Carry:
    """Opening balances from the latest actuals; PP&E and working capital are estimated."""
    inc = data.latest_income()
    bs = data.latest_balance()
    days = inputs.working_capital_days
    cogs = inc.revenue * (1 - inputs.gross_margin)
    return Carry(
        revenue=inc.revenue,
        net_income=inc.net_income,
        cash=bs.cash_and_equivalents,
        debt=bs.total_debt,
        total_assets=bs.total_assets,
        ppe=bs.total_assets * OPENING_PPE_SHARE,
        accounts_receivable=inc.revenue / DAYS_PER_YEAR * days.ar,
        inventory=cogs / DAYS_PER_YEAR * days.inventory,
        accounts_payable=cogs / DAYS_PER_YEAR * days.ap,
    )


def project_year(year: int, carry: Carry, inputs: ThreeStatementInputs) -> tuple[YearStatements, Carry]:
    """Project one year from the prior year's closing balances."""
    days = inputs.working_capital_days

    # Income statement
    revenue = carry.revenue * (1 + inputs.growth_for_year(year))
    cogs = revenue * (1 - inputs.gross_margin)
    gross_profit = revenue - cogs
    operating_income = revenue * inputs.operating_margin
    interest = carry.debt * inputs.interest_rate
    pre_tax = operating_income - interest
    tax = pre_tax * inputs.tax_rate
    net_income = pre_tax - tax

    # Working capital and fixed assets
    ar = revenue / DAYS_PER_YEAR * days.ar
    inventory = cogs / DAYS_PER_YEAR * days.inventory
    ap = cogs / DAYS_PER_YEAR * days.ap
    nwc_change = (ar - carry.accounts_receivable) + (inventory - carry.inventory) - (ap - carry.accounts_payable)
    depreciation = carry.total_assets * DEPRECIATION_RATE
    capex = (revenue - carry.revenue) * GROWTH_CAPEX_RATE + depreciation
    ppe = carry.ppe + capex - depreciation

    # Cash flow
    operating_cf = net_income + depreciation - nwc_change
    investing_cf = -capex
    issuance = max(inputs.annual_debt_issuance, -carry.debt)  # debt never below zero
    financing_cf = issuance
    net_change = operating_cf + investing_cf + financing_cf
    ending_cash = carry.cash + net_change

    # Balance sheet
    debt = carry.debt + issuance
    current_assets = ending_cash + ar + inventory
    total_assets = current_assets + ppe
    current_liabilities = ap + revenue * ACCRUED_LIABILITIES_RATE
    total_liabilities = current_liabilities + debt
    equity = total_assets - total_liabilities

    statements = YearStatements(
        income=IncomeStatement(
            year=year,
            revenue=revenue,
            cost_of_goods_sold=cogs,
            gross_profit=gross_profit,
            gross_margin=ratio_or_nan(gross_profit, revenue),
            operating_expenses=gross_profit - operating_income,
            operating_income=operating_income,
            operating_margin=ratio_or_nan(operating_income, revenue),
            interest_expense=interest,
            pre_tax_income=pre_tax,
            tax=tax,
            net_income=net_income,
            net_margin=ratio_or_nan(net_income, revenue),
        ),
        balance=ProjectedBalanceSheet(
            year=year,
            cash=ending_cash,
            accounts_receivable=ar,
            inventory=inventory,
            total_current_assets=current_assets,
            ppe=ppe,
            total_assets=total_assets,
            accounts_payable=ap,
            total_current_liabilities=current_liabilities,
            total_debt=debt,
            total_liabilities=total_liabilities,
            equity=equity,
            total_liabilities_and_equity=total_liabilities + equity,
        ),
        cash_flow=ProjectedCashFlow(
            year=year,
            net_income=net_income,
            depreciation=depreciation,
            change_in_working_capital=nwc_change,
            operating_cash_flow=operating_cf,
            capex=capex,
            investing_cash_flow=investing_cf,
            debt_issuance=issuance,
            financing_cash_flow=financing_cf,
            net_change_in_cash=net_change,
            beginning_cash=carry.cash,
            ending_cash=ending_cash,
        ),
    )
    next_carry = Carry(
        revenue=revenue,
        net_income=net_income,
        cash=ending_cash,
        debt=debt,
        total_assets=total_assets,
        ppe=ppe,
        accounts_receivable=ar,
        inventory=inventory,
        accounts_payable=ap,
    )
    return statements, next_carry


class ThreeStatementModel:
    def __init__(self, data: CompanyData, inputs: ThreeStatementInputs | None = None):
        self.data = data
        self.inputs = inputs or ThreeStatementInputs()

    def project(self) -> ThreeStatementResult:
        opening = opening_carry(self.data, self.inputs)
        carry = opening
        income: list[IncomeStatement] = []
        balances: list[ProjectedBalanceSheet] = []
        cash_flows: list[ProjectedCashFlow] = []

        for year in range(1, self.inputs.projection_years + 1):
            statements, carry = project_year(year, carry, self.inputs)
            income.append(statements.income)
            balances.append(statements.balance)
            cash_flows.append(statements.cash_flow)

        logger.debug("Three-statement %s: ending cash %.0f", self.data.symbol, carry.cash)
        return ThreeStatementResult(
            symbol=self.data.symbol,
            assumptions=self.inputs,
            opening=opening,
            income_statements=income,
            balance_sheets=balances,
            cash_flow_statements=cash_flows,
            warnings=non_finite(net_margin=income[-1].net_margin),
        )
