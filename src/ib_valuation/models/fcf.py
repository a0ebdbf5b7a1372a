"""
Free Cash Flow Analysis

Historical FCF (OCF - |CapEx|), margin and conversion per period, aggregate
quality metrics, and a forward projection that walks the FCF margin linearly
from its historical average to a target.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData, fiscal_year
from ib_valuation.errors import InsufficientData
from ib_valuation.models.stats import cagr, mean, non_finite, ratio_or_nan, variance

logger = logging.getLogger(__name__)


class FCFInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    projection_years: int = Field(5, ge=1)
    revenue_growth_rate: float = 0.08
    target_fcf_margin: float = 0.20


@dataclass(frozen=True)
class FCFPeriod:
    year: str
    revenue: float
    net_income: float
    operating_cash_flow: float
    capex: float  # magnitude
    fcf: float
    fcf_margin: float
    fcf_conversion: float  # FCF / net income


@dataclass(frozen=True)
class FCFMetrics:
    avg_fcf_margin: float
    avg_fcf_conversion: float
    fcf_growth_rate: float  # CAGR earliest -> latest
    fcf_volatility: float  # stdev / mean


@dataclass(frozen=True)
class FCFProjection:
    year: int
    revenue: float
    fcf: float
    fcf_margin: float


@dataclass
class FCFAnalysis:
    symbol: str
    historical: list[FCFPeriod]  # oldest -> newest
    metrics: FCFMetrics
    projections: list[FCFProjection]
    warnings: list[str] = field(default_factory=list)


class FCFModel:
    def __init__(self, data: CompanyData, inputs: FCFInputs | None = None):
        self.data = data
        self.inputs = inputs or FCFInputs()

    def analyze(self) -> FCFAnalysis:
        historical = self._historical()
        metrics = self._metrics(historical)
        projections = self._project(historical, metrics)
        logger.debug("FCF %s: %d periods, avg margin %.4f", self.data.symbol, len(historical), metrics.avg_fcf_margin)

        warnings = non_finite(
            avg_fcf_margin=metrics.avg_fcf_margin,
            avg_fcf_conversion=metrics.avg_fcf_conversion,
            fcf_growth_rate=metrics.fcf_growth_rate,
            fcf_volatility=metrics.fcf_volatility,
        )
        return FCFAnalysis(
            symbol=self.data.symbol,
            historical=historical,
            metrics=metrics,
            projections=projections,
            warnings=warnings,
        )

    def _historical(self) -> list[FCFPeriod]:
        income = self.data.income_statements
        cash_flows = self.data.cash_flow_statements
        n = min(len(income), len(cash_flows))
        if n == 0:
            raise InsufficientData("income statement / cash flow", self.data.symbol)

        out: list[FCFPeriod] = []
        for i in range(n):
            inc, cf = income[i], cash_flows[i]
            year = fiscal_year(cf) or fiscal_year(inc)
            capex = abs(cf.capital_expenditure)
            fcf = cf.operating_cash_flow - capex
            out.append(
                FCFPeriod(
                    year=str(year) if year is not None else f"P{i + 1}",
                    revenue=inc.revenue,
                    net_income=inc.net_income,
                    operating_cash_flow=cf.operating_cash_flow,
                    capex=capex,
                    fcf=fcf,
                    fcf_margin=ratio_or_nan(fcf, inc.revenue),
                    fcf_conversion=ratio_or_nan(fcf, inc.net_income),
                )
            )
        return out

    @staticmethod
    def _metrics(historical: list[FCFPeriod]) -> FCFMetrics:
        n = len(historical)
        fcfs = [h.fcf for h in historical]
        avg_margin = sum(h.fcf_margin for h in historical) / n
        avg_conversion = sum(h.fcf_conversion for h in historical) / n

        growth = cagr(fcfs[0], fcfs[-1], n - 1)

        volatility = ratio_or_nan(math.sqrt(variance(fcfs, "FCF")), mean(fcfs, "FCF"))

        return FCFMetrics(
            avg_fcf_margin=avg_margin,
            avg_fcf_conversion=avg_conversion,
            fcf_growth_rate=growth,
            fcf_volatility=volatility,
        )

    def _project(self, historical: list[FCFPeriod], metrics: FCFMetrics) -> list[FCFProjection]:
        years = self.inputs.projection_years
        target = self.inputs.target_fcf_margin
        start_margin = metrics.avg_fcf_margin
        last = historical[-1]
        last_year = int(last.year) if last.year.isdigit() else 0

        revenue = last.revenue
        out: list[FCFProjection] = []
        for i in range(1, years + 1):
            revenue *= 1 + self.inputs.revenue_growth_rate
            margin = start_margin + (target - start_margin) * (i / years)
            out.append(FCFProjection(year=last_year + i, revenue=revenue, fcf=revenue * margin, fcf_margin=margin))
        return out


def average_fcf(data: CompanyData, years: int = 5) -> float:
    """Mean FCF (OCF - |CapEx|) over the most recent `years` periods."""
    recent = data.cash_flow_statements[-years:]
    if not recent:
        raise InsufficientData("cash flow statement", data.symbol)
    return sum(cf.operating_cash_flow - abs(cf.capital_expenditure) for cf in recent) / len(recent)


def fcf_yield(fcf: float, market_cap: float) -> float:
    return ratio_or_nan(fcf, market_cap)


def fcf_per_share(fcf: float, shares_outstanding: float) -> float:
    return ratio_or_nan(fcf, shares_outstanding)
