"""
Synthetic Company Snapshots

Market-cap anchored fallback financials for when no real statements are
available. Assumes a 20x P/E and a 20% net margin to back into revenue, then
grows five fiscal years at 8% (income / cash flow) and 6% (balance sheet).
"""

from __future__ import annotations

from datetime import date

import numpy as np

from ib_valuation.data.models import (
    BalanceSheet,
    CashFlowStatement,
    CompanyData,
    CompanyProfile,
    FinancialStatement,
    StockPrice,
)

DEFAULT_MARKET_CAP = 1_000_000_000_000
DEFAULT_SHARES = 5_000_000_000
PE_RATIO = 20
NET_MARGIN = 0.20


def generate_company_data(
    symbol: str,
    *,
    name: str | None = None,
    market_cap: float = DEFAULT_MARKET_CAP,
    shares_outstanding: float = DEFAULT_SHARES,
    beta: float = 1.2,
    industry: str = "Technology",
    sector: str = "Software",
    periods: int = 5,
    end_year: int | None = None,
    rng: np.random.Generator | None = None,
) -> CompanyData:
    """
    Build a complete, chronologically ordered snapshot.

    Args:
        symbol: Ticker symbol
        market_cap: Equity value the financials are anchored to
        shares_outstanding: Share count (current price = market_cap / shares)
        periods: Number of fiscal years to generate
        end_year: Fiscal year of the latest period (defaults to last calendar year)
        rng: Random source for the 52-week range; pass a seeded Generator for
            reproducible output

    Returns:
        CompanyData with `periods` aligned statements in each series
    """
    if periods < 1:
        raise ValueError("periods must be >= 1")
    if rng is None:
        rng = np.random.default_rng()
    t = symbol.strip().upper()
    last_year = end_year if end_year is not None else date.today().year - 1

    est_net_income = market_cap / PE_RATIO
    base_revenue = est_net_income / NET_MARGIN
    base_assets = base_revenue / 0.7  # ~0.7x asset turnover

    income: list[FinancialStatement] = []
    cash_flows: list[CashFlowStatement] = []
    balances: list[BalanceSheet] = []

    # Oldest period first; the latest period sits at base_revenue.
    for i in range(periods):
        year = last_year - (periods - 1 - i)
        period_end = date(year, 12, 31)
        revenue = base_revenue * 1.08 ** (i - (periods - 1))
        assets = base_assets * 1.06 ** (i - (periods - 1))

        income.append(
            FinancialStatement(
                date=period_end,
                revenue=revenue,
                gross_profit=revenue * 0.45,
                operating_income=revenue * 0.30,
                net_income=revenue * NET_MARGIN,
                ebitda=revenue * 0.33,
                depreciation=revenue * 0.03,
                amortization=0,
            )
        )

        ocf = revenue * 0.30
        capex = -revenue * 0.05
        cash_flows.append(
            CashFlowStatement(
                date=period_end,
                operating_cash_flow=ocf,
                capital_expenditure=capex,
                free_cash_flow=ocf + capex,
                depreciation=revenue * 0.03,
                stock_based_compensation=revenue * 0.02,
                change_in_working_capital=-revenue * 0.01,
            )
        )

        liabilities = assets * 0.80
        balances.append(
            BalanceSheet(
                date=period_end,
                total_assets=assets,
                total_liabilities=liabilities,
                total_equity=assets - liabilities,
                total_debt=assets * 0.30,
                cash_and_equivalents=assets * 0.15,
                working_capital=assets * 0.05,
            )
        )

    price = market_cap / shares_outstanding if shares_outstanding > 0 else 0.0
    return CompanyData(
        profile=CompanyProfile(
            symbol=t,
            name=name or f"{t} Inc.",
            industry=industry,
            sector=sector,
            market_cap=market_cap,
            shares_outstanding=shares_outstanding,
            beta=beta,
        ),
        stock_price=StockPrice(
            current=price,
            fifty_two_week_high=price * (1 + rng.uniform(0.10, 0.50)),
            fifty_two_week_low=price * (1 - rng.uniform(0.10, 0.35)),
            average_volume=50_000_000,
        ),
        income_statements=tuple(income),
        cash_flow_statements=tuple(cash_flows),
        balance_sheets=tuple(balances),
    )
