"""
DCF Valuation

Five-year unlevered free cash flow projection, Gordon-growth terminal value,
and an implied share price. WACC defaults to a CAPM build from beta.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData
from ib_valuation.errors import DegenerateInput
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

DEFAULT_REVENUE_GROWTH = (0.15, 0.12, 0.10, 0.08, 0.06)
COST_OF_DEBT = 0.04  # pre-tax
EQUITY_WEIGHT = 0.70
DEBT_WEIGHT = 0.30


class DCFInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    projection_years: int = Field(5, ge=1)
    revenue_growth: tuple[float, ...] = Field(DEFAULT_REVENUE_GROWTH, min_length=1)
    terminal_growth: float = 0.025
    wacc: Optional[float] = None  # None = CAPM build below
    tax_rate: float = 0.21
    risk_free_rate: float = 0.04
    market_risk_premium: float = 0.05
    beta: Optional[float] = None  # None = profile beta (1.0 if absent)

    # Operating assumptions, % of revenue
    ebitda_margin: float = 0.30
    da_percent: float = 0.05
    capex_percent: float = 0.08
    nwc_percent: float = 0.03  # of the revenue increase

    def growth_for_year(self, year: int) -> float:
        """Growth for 1-based `year`; short tuples repeat their last rate."""
        idx = min(year - 1, len(self.revenue_growth) - 1)
        return self.revenue_growth[idx]


def capm_wacc(
    beta: float,
    risk_free_rate: float = 0.04,
    market_risk_premium: float = 0.05,
    tax_rate: float = 0.21,
) -> float:
    """70% CAPM cost of equity + 30% after-tax 4% cost of debt."""
    cost_of_equity = risk_free_rate + beta * market_risk_premium
    return cost_of_equity * EQUITY_WEIGHT + COST_OF_DEBT * (1 - tax_rate) * DEBT_WEIGHT


@dataclass(frozen=True)
class DCFProjection:
    year: int
    revenue: float
    ebitda: float
    ebit: float
    nopat: float
    d_and_a: float
    capex: float
    nwc_change: float
    fcf: float
    discount_factor: float
    present_value: float


@dataclass
class DCFValuation:
    """DCF valuation results."""

    symbol: str
    assumptions: DCFInputs

    projections: list[DCFProjection] = field(default_factory=list)

    # Outputs
    pv_of_projections: float = 0
    terminal_value: float = 0
    pv_of_terminal_value: float = 0
    enterprise_value: float = 0
    net_debt: float = 0
    equity_value: float = 0
    shares_outstanding: float = 0
    implied_share_price: float = 0
    current_price: float = 0
    upside: float = 0  # (implied - current) / current

    warnings: list[str] = field(default_factory=list)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.enterprise_value) and math.isfinite(self.implied_share_price)


class DCFModel:
    """
    Discounted cash flow model.

    Inputs are resolved once at construction (derived WACC and beta filled
    in) and never change afterwards; `sensitivity_analysis` values each cell
    from a copy.
    """

    def __init__(self, data: CompanyData, inputs: DCFInputs | None = None):
        self.data = data
        inputs = inputs or DCFInputs()
        beta = inputs.beta if inputs.beta is not None else data.beta
        wacc = inputs.wacc
        if wacc is None:
            wacc = capm_wacc(beta, inputs.risk_free_rate, inputs.market_risk_premium, inputs.tax_rate)
        self.inputs = inputs.model_copy(update={"beta": beta, "wacc": wacc})

    def calculate(self) -> DCFValuation:
        return self._valuate(self.inputs)

    def sensitivity_analysis(
        self,
        wacc_range: list[float],
        growth_range: list[float],
    ) -> list[list[float]]:
        """
        Implied share price grid: rows = WACC, columns = terminal growth.

        Cells where WACC <= terminal growth are NaN.
        """
        matrix: list[list[float]] = []
        for wacc in wacc_range:
            row: list[float] = []
            for growth in growth_range:
                scenario = self.inputs.model_copy(update={"wacc": wacc, "terminal_growth": growth})
                try:
                    row.append(self._valuate(scenario).implied_share_price)
                except DegenerateInput:
                    row.append(math.nan)
            matrix.append(row)
        return matrix

    def _valuate(self, inputs: DCFInputs) -> DCFValuation:
        wacc = inputs.wacc
        g = inputs.terminal_growth
        if wacc is None or wacc <= g:
            raise DegenerateInput("WACC must exceed terminal growth", wacc=wacc, terminal_growth=g)
        if wacc <= -1:
            raise DegenerateInput("WACC must be greater than -100%", wacc=wacc)
        if self.data.shares_outstanding <= 0:
            raise DegenerateInput("shares outstanding must be positive", shares=self.data.shares_outstanding)

        logger.debug("DCF %s: wacc=%.4f g=%.4f years=%d", self.data.symbol, wacc, g, inputs.projection_years)

        projections = self._project(inputs)
        last_fcf = projections[-1].fcf
        terminal_value = last_fcf * (1 + g) / (wacc - g)
        pv_terminal = terminal_value / (1 + wacc) ** inputs.projection_years
        pv_sum = sum(p.present_value for p in projections)
        enterprise_value = pv_sum + pv_terminal

        net_debt = self.data.net_debt()
        equity_value = enterprise_value - net_debt
        shares = self.data.shares_outstanding
        implied = equity_value / shares
        current = self.data.current_price
        upside = ratio_or_nan(implied - current, current)

        return DCFValuation(
            symbol=self.data.symbol,
            assumptions=inputs,
            projections=projections,
            pv_of_projections=pv_sum,
            terminal_value=terminal_value,
            pv_of_terminal_value=pv_terminal,
            enterprise_value=enterprise_value,
            net_debt=net_debt,
            equity_value=equity_value,
            shares_outstanding=shares,
            implied_share_price=implied,
            current_price=current,
            upside=upside,
            warnings=non_finite(enterprise_value=enterprise_value, implied_share_price=implied, upside=upside),
        )

    def _project(self, inputs: DCFInputs) -> list[DCFProjection]:
        prior_revenue = self.data.latest_income().revenue
        wacc = inputs.wacc
        projections: list[DCFProjection] = []

        for year in range(1, inputs.projection_years + 1):
            revenue = prior_revenue * (1 + inputs.growth_for_year(year))
            ebitda = revenue * inputs.ebitda_margin
            d_and_a = revenue * inputs.da_percent
            ebit = ebitda - d_and_a
            nopat = ebit * (1 - inputs.tax_rate)
            capex = revenue * inputs.capex_percent
            nwc_change = (revenue - prior_revenue) * inputs.nwc_percent
            fcf = nopat + d_and_a - capex - nwc_change
            discount_factor = (1 + wacc) ** year

            projections.append(
                DCFProjection(
                    year=year,
                    revenue=revenue,
                    ebitda=ebitda,
                    ebit=ebit,
                    nopat=nopat,
                    d_and_a=d_and_a,
                    capex=capex,
                    nwc_change=nwc_change,
                    fcf=fcf,
                    discount_factor=discount_factor,
                    present_value=fcf / discount_factor,
                )
            )
            prior_revenue = revenue

        return projections
