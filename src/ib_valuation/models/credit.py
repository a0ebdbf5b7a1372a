"""
Credit Analysis & Debt Capacity

Historical and projected leverage / coverage, debt capacity at a target
leverage, maintenance covenant tests, a leverage-based pricing grid, a
maturity ladder, and a rating bucket.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData, fiscal_year
from ib_valuation.errors import InsufficientData
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

Rating = Literal["investment", "speculative", "high-yield"]
Status = Literal["pass", "fail"]


class CreditInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_leverage: float = 3.0  # Debt / EBITDA
    min_interest_coverage: float = 3.0  # EBITDA / interest
    covenant_cushion: float = 0.20
    interest_rate: float = 0.05  # assumed cost of all debt
    ebitda_growth: float = 0.08
    projection_years: int = Field(5, ge=1)


@dataclass(frozen=True)
class PricingTier:
    leverage: str
    lower: float  # inclusive
    upper: float  # exclusive
    spread: str
    all_in_rate: float


PRICING_GRID = (
    PricingTier("< 1.0x", 0.0, 1.0, "L + 150-175bps", 0.055),
    PricingTier("1.0x - 2.0x", 1.0, 2.0, "L + 175-200bps", 0.060),
    PricingTier("2.0x - 3.0x", 2.0, 3.0, "L + 200-250bps", 0.065),
    PricingTier("3.0x - 4.0x", 3.0, 4.0, "L + 250-300bps", 0.075),
    PricingTier("> 4.0x", 4.0, math.inf, "L + 350-450bps", 0.090),
)

# (instrument, share of current debt, maturity month), one per year out
MATURITY_LADDER = (
    ("Revolver", 0.10, 6),
    ("Term Loan A", 0.20, 12),
    ("Term Loan B", 0.30, 6),
    ("Senior Notes", 0.40, 12),
)


@dataclass(frozen=True)
class CreditPeriod:
    year: str
    ebitda: float
    total_debt: float
    net_debt: float
    interest_expense: float
    leverage_ratio: float
    net_leverage: float
    interest_coverage: float


@dataclass(frozen=True)
class CreditProjection:
    year: int
    ebitda: float
    total_debt: float
    interest_expense: float
    leverage_ratio: float
    interest_coverage: float


@dataclass(frozen=True)
class DebtCapacity:
    current_debt: float
    max_debt: float
    headroom: float  # may be negative
    additional_borrowing: float  # headroom floored at 0


@dataclass(frozen=True)
class CovenantTest:
    covenant: float
    current: float
    cushion: float  # distance to the covenant, positive = room
    status: Status


@dataclass(frozen=True)
class Covenants:
    leverage: CovenantTest
    interest_coverage: CovenantTest


@dataclass(frozen=True)
class Maturity:
    maturity: str  # YYYY-MM
    amount: float
    instrument: str


@dataclass(frozen=True)
class CreditRecommendation:
    rating: Rating
    max_debt_capacity: float
    suggested_structure: str


@dataclass
class CreditResult:
    symbol: str
    historical: list[CreditPeriod]  # oldest -> newest
    projections: list[CreditProjection]
    debt_capacity: DebtCapacity
    covenants: Covenants
    pricing_grid: tuple[PricingTier, ...]
    current_pricing: PricingTier | None
    maturities: list[Maturity]
    recommendation: CreditRecommendation
    warnings: list[str] = field(default_factory=list)


def interest_coverage(ebitda: float, interest: float) -> float:
    """EBITDA / interest; unbounded (inf) for a debt-free company."""
    if interest == 0:
        return math.inf if ebitda > 0 else math.nan
    return ebitda / interest


def pricing_tier(leverage: float) -> PricingTier | None:
    """Grid row for a leverage level; None when leverage is negative or undefined."""
    for tier in PRICING_GRID:
        if tier.lower <= leverage < tier.upper:
            return tier
    return None


def rate_leverage(leverage: float, max_debt: float) -> CreditRecommendation:
    if leverage < 2.0:
        return CreditRecommendation(
            rating="investment",
            max_debt_capacity=max_debt,
            suggested_structure="50% Revolver + 30% Term Loan A + 20% Senior Notes",
        )
    if leverage < 4.0:
        return CreditRecommendation(
            rating="speculative",
            max_debt_capacity=max_debt,
            suggested_structure="40% Term Loan B + 40% Senior Notes + 20% Mezzanine",
        )
    # Also reached when leverage is NaN (EBITDA of zero).
    return CreditRecommendation(
        rating="high-yield",
        max_debt_capacity=max_debt * 0.8,
        suggested_structure="60% Senior Secured + 40% High Yield Bonds",
    )


class CreditModel:
    def __init__(self, data: CompanyData, inputs: CreditInputs | None = None):
        self.data = data
        self.inputs = inputs or CreditInputs()

    def analyze(self) -> CreditResult:
        historical = self._historical()
        latest = historical[-1]
        capacity = self._debt_capacity()
        logger.debug(
            "Credit %s: leverage %.2fx, max debt %.0f",
            self.data.symbol, latest.leverage_ratio, capacity.max_debt,
        )

        return CreditResult(
            symbol=self.data.symbol,
            historical=historical,
            projections=self._project(),
            debt_capacity=capacity,
            covenants=self._covenants(latest),
            pricing_grid=PRICING_GRID,
            current_pricing=pricing_tier(latest.leverage_ratio),
            maturities=self._maturities(),
            recommendation=rate_leverage(latest.leverage_ratio, capacity.max_debt),
            warnings=non_finite(
                leverage_ratio=latest.leverage_ratio,
                net_leverage=latest.net_leverage,
            ),
        )

    def _historical(self) -> list[CreditPeriod]:
        income = self.data.income_statements
        balances = self.data.balance_sheets
        n = min(len(income), len(balances), len(self.data.cash_flow_statements))
        if n == 0:
            raise InsufficientData("income statement / balance sheet", self.data.symbol)

        rate = self.inputs.interest_rate
        out: list[CreditPeriod] = []
        for i in range(n):
            inc, bs = income[i], balances[i]
            year = fiscal_year(bs) or fiscal_year(inc)
            net_debt = bs.total_debt - bs.cash_and_equivalents
            interest = bs.total_debt * rate
            out.append(
                CreditPeriod(
                    year=str(year) if year is not None else f"P{i + 1}",
                    ebitda=inc.ebitda,
                    total_debt=bs.total_debt,
                    net_debt=net_debt,
                    interest_expense=interest,
                    leverage_ratio=ratio_or_nan(bs.total_debt, inc.ebitda),
                    net_leverage=ratio_or_nan(net_debt, inc.ebitda),
                    interest_coverage=interest_coverage(inc.ebitda, interest),
                )
            )
        return out

    def _project(self) -> list[CreditProjection]:
        p = self.inputs
        ebitda = self.data.latest_income().ebitda
        debt = self.data.latest_balance().total_debt  # held flat
        interest = debt * p.interest_rate
        base_year = self.data.last_fiscal_year() or 0

        out: list[CreditProjection] = []
        for i in range(1, p.projection_years + 1):
            ebitda *= 1 + p.ebitda_growth
            out.append(
                CreditProjection(
                    year=base_year + i,
                    ebitda=ebitda,
                    total_debt=debt,
                    interest_expense=interest,
                    leverage_ratio=ratio_or_nan(debt, ebitda),
                    interest_coverage=interest_coverage(ebitda, interest),
                )
            )
        return out

    def _debt_capacity(self) -> DebtCapacity:
        ebitda = self.data.latest_income().ebitda
        current = self.data.latest_balance().total_debt
        max_debt = ebitda * self.inputs.target_leverage
        return DebtCapacity(
            current_debt=current,
            max_debt=max_debt,
            headroom=max_debt - current,
            additional_borrowing=max(0.0, max_debt - current),
        )

    def _covenants(self, latest: CreditPeriod) -> Covenants:
        p = self.inputs
        leverage_limit = p.target_leverage * (1 + p.covenant_cushion)
        coverage_floor = p.min_interest_coverage * (1 - p.covenant_cushion)
        return Covenants(
            leverage=CovenantTest(
                covenant=leverage_limit,
                current=latest.leverage_ratio,
                cushion=leverage_limit - latest.leverage_ratio,
                status="pass" if latest.leverage_ratio <= leverage_limit else "fail",
            ),
            interest_coverage=CovenantTest(
                covenant=coverage_floor,
                current=latest.interest_coverage,
                cushion=latest.interest_coverage - coverage_floor,
                status="pass" if latest.interest_coverage >= coverage_floor else "fail",
            ),
        )

    def _maturities(self) -> list[Maturity]:
        debt = self.data.latest_balance().total_debt
        base_year = self.data.last_fiscal_year() or 0
        return [
            Maturity(maturity=f"{base_year + i}-{month:02d}", amount=debt * share, instrument=name)
            for i, (name, share, month) in enumerate(MATURITY_LADDER, start=1)
        ]
