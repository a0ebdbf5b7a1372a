from __future__ import annotations

import math
from datetime import date

from ib_valuation.data import (
    BalanceSheet,
    CashFlowStatement,
    CompanyData,
    CompanyProfile,
    FinancialStatement,
    StockPrice,
)


def make_company(
    symbol: str = "TEST",
    *,
    revenue: float = 100e9,
    growth: float = 0.10,
    ebitda_margin: float = 0.30,
    net_margin: float = 0.20,
    ocf_margin: float = 0.25,
    capex_margin: float = 0.05,
    total_debt: float = 30e9,
    cash: float = 10e9,
    total_assets: float = 200e9,
    shares: float = 10e9,
    price: float = 50.0,
    beta: float = 1.0,
    periods: int = 3,
    end_year: int = 2023,
) -> CompanyData:
    """Snapshot whose latest period has exactly the given figures; earlier periods shrink by `growth`."""
    income, cash_flows, balances = [], [], []
    for i in range(periods):
        scale = (1 + growth) ** (i - (periods - 1))
        rev = revenue * scale
        period_end = date(end_year - (periods - 1 - i), 12, 31)
        income.append(
            FinancialStatement(
                date=period_end,
                revenue=rev,
                gross_profit=rev * 0.5,
                operating_income=rev * (ebitda_margin - 0.05),
                net_income=rev * net_margin,
                ebitda=rev * ebitda_margin,
                depreciation=rev * 0.05,
            )
        )
        cash_flows.append(
            CashFlowStatement(
                date=period_end,
                operating_cash_flow=rev * ocf_margin,
                capital_expenditure=-rev * capex_margin,
                free_cash_flow=rev * (ocf_margin - capex_margin),
            )
        )
        balances.append(
            BalanceSheet(
                date=period_end,
                total_assets=total_assets * scale,
                total_liabilities=total_assets * scale * 0.5,
                total_equity=total_assets * scale * 0.5,
                total_debt=total_debt,
                cash_and_equivalents=cash,
            )
        )
    return CompanyData(
        profile=CompanyProfile(
            symbol=symbol,
            name=f"{symbol} Corp",
            industry="Technology",
            sector="Software",
            market_cap=price * shares,
            shares_outstanding=shares,
            beta=beta,
        ),
        stock_price=StockPrice(current=price, fifty_two_week_high=price * 1.2, fifty_two_week_low=price * 0.8),
        income_statements=tuple(income),
        cash_flow_statements=tuple(cash_flows),
        balance_sheets=tuple(balances),
    )


def empty_company(symbol: str = "EMPTY") -> CompanyData:
    return CompanyData(
        profile=CompanyProfile(symbol=symbol, shares_outstanding=1e9, market_cap=1e10),
        stock_price=StockPrice(current=10.0),
    )


class ApproxMixin:
    """Relative float comparison for dollar amounts in the billions."""

    def assertApprox(self, first: float, second: float, rel: float = 1e-9) -> None:
        if not math.isclose(first, second, rel_tol=rel, abs_tol=1e-9):
            raise AssertionError(f"{first!r} != {second!r} within rel={rel}")
