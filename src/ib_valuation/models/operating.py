"""
Operating Model & Unit Economics

Subscription-style unit economics (LTV, CAC payback) and a month-by-month
customer / P&L build, rolled up to quarters and years with pandas, plus
breakeven and growth/churn scenarios.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

REVENUE_PER_CUSTOMER_ESTIMATE = 1000


class OperatingInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    projection_months: int = Field(36, ge=1)
    starting_customers: Optional[int] = None  # None = latest revenue // 1000
    monthly_growth: float = 0.05
    cac: float = 100
    arpu: float = 100  # monthly
    gross_margin: float = 0.75
    churn_rate: float = 0.02  # monthly
    ltv_months: int = 24  # lifetime cap
    opex_ratio: float = 0.30  # of ARPU, per customer
    fixed_costs: float = 50_000  # per month
    tax_rate: float = 0.21


@dataclass(frozen=True)
class UnitEconomics:
    cac: float
    arpu: float
    gross_margin: float
    churn_rate: float
    ltv: float
    ltv_cac_ratio: float
    payback_period: float  # months
    months_to_recover: int | None


@dataclass(frozen=True)
class MonthlyRow:
    month: int
    customers: int
    new_customers: int
    churned_customers: int
    revenue: float
    cogs: float
    gross_profit: float
    sales_marketing: float
    operating_expenses: float
    ebitda: float
    cumulative_cash_flow: float


@dataclass(frozen=True)
class QuarterlyRow:
    quarter: int
    revenue: float
    gross_profit: float
    operating_expenses: float  # incl. sales & marketing
    ebitda: float
    margin: float


@dataclass(frozen=True)
class AnnualRow:
    year: int
    revenue: float
    ebitda: float
    net_income: float
    margin: float


@dataclass(frozen=True)
class Breakeven:
    achieved: bool
    month: int | None  # first month with positive EBITDA
    customers: int  # at breakeven, or at the end of the horizon
    monthly_revenue: float


@dataclass(frozen=True)
class OperatingScenario:
    name: str
    revenue: float  # total over the horizon
    ebitda: float  # cumulative
    customers: int  # ending


@dataclass
class OperatingResult:
    symbol: str
    assumptions: OperatingInputs
    unit_economics: UnitEconomics
    monthly: list[MonthlyRow]
    quarterly: list[QuarterlyRow]
    annual: list[AnnualRow]
    breakeven: Breakeven
    scenarios: list[OperatingScenario]
    warnings: list[str] = field(default_factory=list)


def unit_economics(inputs: OperatingInputs) -> UnitEconomics:
    lifetime = 1 / inputs.churn_rate if inputs.churn_rate > 0 else inputs.ltv_months
    ltv = inputs.arpu * inputs.gross_margin * min(lifetime, inputs.ltv_months)
    payback = ratio_or_nan(inputs.cac, inputs.arpu * inputs.gross_margin)
    return UnitEconomics(
        cac=inputs.cac,
        arpu=inputs.arpu,
        gross_margin=inputs.gross_margin,
        churn_rate=inputs.churn_rate,
        ltv=ltv,
        ltv_cac_ratio=ratio_or_nan(ltv, inputs.cac),
        payback_period=payback,
        months_to_recover=math.ceil(payback) if math.isfinite(payback) else None,
    )


def project_monthly(inputs: OperatingInputs, starting_customers: int) -> list[MonthlyRow]:
    customers = starting_customers
    cumulative = 0.0
    rows: list[MonthlyRow] = []

    for month in range(1, inputs.projection_months + 1):
        new = int(customers * inputs.monthly_growth)  # truncates toward zero
        churned = int(customers * inputs.churn_rate)
        customers = customers + new - churned

        revenue = customers * inputs.arpu
        cogs = revenue * (1 - inputs.gross_margin)
        gross_profit = revenue - cogs
        sales_marketing = new * inputs.cac
        opex = customers * inputs.arpu * inputs.opex_ratio + inputs.fixed_costs
        ebitda = gross_profit - sales_marketing - opex
        cumulative += ebitda

        rows.append(
            MonthlyRow(
                month=month,
                customers=customers,
                new_customers=new,
                churned_customers=churned,
                revenue=revenue,
                cogs=cogs,
                gross_profit=gross_profit,
                sales_marketing=sales_marketing,
                operating_expenses=opex,
                ebitda=ebitda,
                cumulative_cash_flow=cumulative,
            )
        )
    return rows


def rollup_quarterly(monthly: list[MonthlyRow]) -> list[QuarterlyRow]:
    df = pd.DataFrame([asdict(m) for m in monthly])
    df["quarter"] = (df["month"] - 1) // 3 + 1
    df["opex_total"] = df["operating_expenses"] + df["sales_marketing"]
    q = df.groupby("quarter", sort=True)[["revenue", "gross_profit", "opex_total", "ebitda"]].sum()
    return [
        QuarterlyRow(
            quarter=int(quarter),
            revenue=float(row.revenue),
            gross_profit=float(row.gross_profit),
            operating_expenses=float(row.opex_total),
            ebitda=float(row.ebitda),
            margin=float(row.ebitda / row.revenue) if row.revenue > 0 else 0.0,
        )
        for quarter, row in q.iterrows()
    ]


def rollup_annual(monthly: list[MonthlyRow], tax_rate: float) -> list[AnnualRow]:
    df = pd.DataFrame([asdict(m) for m in monthly])
    df["year"] = (df["month"] - 1) // 12 + 1
    y = df.groupby("year", sort=True)[["revenue", "ebitda"]].sum()
    return [
        AnnualRow(
            year=int(year),
            revenue=float(row.revenue),
            ebitda=float(row.ebitda),
            net_income=float(row.ebitda * (1 - tax_rate)),
            margin=float(row.ebitda / row.revenue) if row.revenue > 0 else 0.0,
        )
        for year, row in y.iterrows()
    ]


def find_breakeven(monthly: list[MonthlyRow]) -> Breakeven:
    for m in monthly:
        if m.ebitda > 0:
            return Breakeven(achieved=True, month=m.month, customers=m.customers, monthly_revenue=m.revenue)
    last = monthly[-1]
    return Breakeven(achieved=False, month=None, customers=last.customers, monthly_revenue=last.revenue)


class OperatingModel:
    def __init__(self, data: CompanyData, inputs: OperatingInputs | None = None):
        self.data = data
        inputs = inputs or OperatingInputs()
        if inputs.starting_customers is None:
            revenue = data.latest_income().revenue
            inputs = inputs.model_copy(
                update={"starting_customers": int(revenue // REVENUE_PER_CUSTOMER_ESTIMATE)}
            )
        self.inputs = inputs

    def analyze(self) -> OperatingResult:
        p = self.inputs
        economics = unit_economics(p)
        monthly = project_monthly(p, p.starting_customers)
        logger.debug(
            "Operating %s: %d customers, %d months", self.data.symbol, p.starting_customers, p.projection_months
        )

        return OperatingResult(
            symbol=self.data.symbol,
            assumptions=p,
            unit_economics=economics,
            monthly=monthly,
            quarterly=rollup_quarterly(monthly),
            annual=rollup_annual(monthly, p.tax_rate),
            breakeven=find_breakeven(monthly),
            scenarios=self._scenarios(monthly),
            warnings=non_finite(ltv_cac_ratio=economics.ltv_cac_ratio, payback_period=economics.payback_period),
        )

    def _scenarios(self, base: list[MonthlyRow]) -> list[OperatingScenario]:
        p = self.inputs
        runs = {
            "conservative": project_monthly(
                p.model_copy(update={"monthly_growth": p.monthly_growth * 0.5, "churn_rate": p.churn_rate * 2}),
                p.starting_customers,
            ),
            "base": base,
            "optimistic": project_monthly(
                p.model_copy(update={"monthly_growth": p.monthly_growth * 2, "churn_rate": p.churn_rate * 0.5}),
                p.starting_customers,
            ),
        }
        return [
            OperatingScenario(
                name=name,
                revenue=sum(m.revenue for m in rows),
                ebitda=rows[-1].cumulative_cash_flow,
                customers=rows[-1].customers,
            )
            for name, rows in runs.items()
        ]
