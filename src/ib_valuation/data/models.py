"""
Company Financials - Data Models

The normalized snapshot every valuation model consumes:

    CompanyData
      ├── profile            CompanyProfile
      ├── stock_price        StockPrice
      ├── income_statements  [FinancialStatement, ...]   oldest -> newest
      ├── cash_flow_statements [CashFlowStatement, ...]  oldest -> newest
      └── balance_sheets     [BalanceSheet, ...]         oldest -> newest

The three series are parallel and chronologically aligned. The last element
of each is the most recent actual period. Snapshots are frozen once built;
no model writes back into one.
"""
from __future__ import annotations

from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ib_valuation.errors import InsufficientData


class _Snapshot(BaseModel):
    # Accept both `totalDebt` (market-data JSON) and `total_debt`.
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CompanyProfile(_Snapshot):
    symbol: str
    name: str = ""
    industry: str = ""
    sector: str = ""
    market_cap: float = 0
    shares_outstanding: float = 0
    beta: Optional[float] = None  # risk coefficient; consumers fall back to 1.0


class FinancialStatement(_Snapshot):
    """Income statement for one fiscal period."""
    date: Optional[Date] = None
    revenue: float
    gross_profit: float = 0
    operating_income: float = 0
    net_income: float = 0
    ebitda: float = 0
    depreciation: Optional[float] = None
    amortization: Optional[float] = None


class CashFlowStatement(_Snapshot):
    date: Optional[Date] = None
    operating_cash_flow: float = 0
    capital_expenditure: float = 0  # usually stored negative
    free_cash_flow: float = 0  # OCF + CapEx under the stored sign convention
    depreciation: Optional[float] = None
    stock_based_compensation: Optional[float] = None
    change_in_working_capital: Optional[float] = None


class BalanceSheet(_Snapshot):
    # Assets ≈ liabilities + equity is expected but never validated.
    date: Optional[Date] = None
    total_assets: float = 0
    total_liabilities: float = 0
    total_equity: float = 0
    total_debt: float = 0
    cash_and_equivalents: float = 0
    working_capital: Optional[float] = None


class StockPrice(_Snapshot):
    current: float
    fifty_two_week_high: float = 0
    fifty_two_week_low: float = 0
    average_volume: float = 0


class CompanyData(_Snapshot):
    profile: CompanyProfile
    stock_price: StockPrice
    income_statements: tuple[FinancialStatement, ...] = ()
    cash_flow_statements: tuple[CashFlowStatement, ...] = ()
    balance_sheets: tuple[BalanceSheet, ...] = ()

    @property
    def symbol(self) -> str:
        return self.profile.symbol

    @property
    def beta(self) -> float:
        return self.profile.beta if self.profile.beta is not None else 1.0

    @property
    def shares_outstanding(self) -> float:
        return self.profile.shares_outstanding

    @property
    def current_price(self) -> float:
        return self.stock_price.current

    def latest_income(self) -> FinancialStatement:
        if not self.income_statements:
            raise InsufficientData("income statement", self.symbol)
        return self.income_statements[-1]

    def latest_cash_flow(self) -> CashFlowStatement:
        if not self.cash_flow_statements:
            raise InsufficientData("cash flow statement", self.symbol)
        return self.cash_flow_statements[-1]

    def latest_balance(self) -> BalanceSheet:
        if not self.balance_sheets:
            raise InsufficientData("balance sheet", self.symbol)
        return self.balance_sheets[-1]

    def net_debt(self) -> float:
        """Total debt less cash, from the latest balance sheet."""
        bs = self.latest_balance()
        return bs.total_debt - bs.cash_and_equivalents

    def enterprise_value(self) -> float:
        """Market capitalization plus net debt."""
        return self.profile.market_cap + self.net_debt()

    def last_fiscal_year(self) -> int | None:
        """Year of the most recent income statement, when dated."""
        if not self.income_statements:
            return None
        return fiscal_year(self.income_statements[-1])


def fiscal_year(statement: FinancialStatement | CashFlowStatement | BalanceSheet) -> int | None:
    return statement.date.year if statement.date is not None else None
