"""
Precedent Transaction Analysis

Deal multiples (EV/Revenue, EV/EBITDA) and acquisition premiums across a
set of past M&A transactions, then implied EV and share price for the
target. Strategic buyers pay up relative to financial sponsors; the
breakdown is reported alongside the pooled statistics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Sequence

import numpy as np

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import (
    SummaryStats,
    ValueRange,
    filter_range,
    non_finite,
    percentile,
    ratio_or_nan,
    summarize,
)

logger = logging.getLogger(__name__)

EV_REVENUE_BOUNDS = (0.0, 30.0)
EV_EBITDA_BOUNDS = (0.0, 50.0)

TRANSACTION_COUNT = 15

ACQUIRERS = (
    "Blackstone", "KKR", "Carlyle", "Bain Capital", "Warburg Pincus",
    "Thoma Bravo", "Vista Equity", "Advent International", "EQT", "Silver Lake",
)
TARGETS = (
    "TechTarget", "SoftwareCo", "CloudSys", "DataAnalytics", "CyberSecurity",
    "AITools", "Fintech", "HealthTech", "EdTech", "Ecommerce", "SaaSPlatform",
    "MobileApp", "Gaming", "SocialMedia", "Marketplace",
)


@dataclass(frozen=True)
class Transaction:
    date: Date
    target: str
    acquirer: str
    target_industry: str
    deal_value: float  # enterprise value paid
    target_revenue: float
    target_ebitda: float
    premium: float  # over unaffected price
    strategic: bool

    @property
    def ev_revenue(self) -> float:
        return ratio_or_nan(self.deal_value, self.target_revenue)

    @property
    def ev_ebitda(self) -> float:
        return ratio_or_nan(self.deal_value, self.target_ebitda)


@dataclass(frozen=True)
class TargetMetrics:
    revenue: float
    ebitda: float
    market_cap: float
    enterprise_value: float


@dataclass(frozen=True)
class PrecedentMultiples:
    ev_revenue: SummaryStats
    ev_ebitda: SummaryStats


@dataclass(frozen=True)
class PrecedentValuation:
    ev_revenue: ValueRange
    ev_ebitda: ValueRange


@dataclass(frozen=True)
class BuyerBreakdown:
    """Median EV/EBITDA by buyer type; NaN when a type has no in-range deals."""
    strategic_count: int
    financial_count: int
    strategic_median_ev_ebitda: float
    financial_median_ev_ebitda: float


@dataclass
class PrecedentResult:
    transactions: list[Transaction]  # newest first, unfiltered
    target: TargetMetrics
    multiples: PrecedentMultiples
    premiums: SummaryStats
    buyers: BuyerBreakdown
    valuation: PrecedentValuation
    implied_share_price: PrecedentValuation
    warnings: list[str] = field(default_factory=list)

    @property
    def is_finite(self) -> bool:
        return not self.warnings


def generate_transactions(
    base_revenue: float,
    rng: np.random.Generator,
    industry: str = "",
    count: int = TRANSACTION_COUNT,
) -> list[Transaction]:
    """
    Synthetic deal set anchored to the target's revenue.

    Strategic buyers pay 10-18x EBITDA, sponsors 8-14x; premiums fall in
    15-50%. Returned newest first.
    """
    deals: list[Transaction] = []
    for i in range(count):
        strategic = bool(rng.random() > 0.5)
        size = 0.5 + rng.random() * 1.5
        revenue = base_revenue * size * (0.2 + rng.random())
        ebitda = revenue * (0.15 + rng.random() * 0.15)
        multiple = 10 + rng.random() * 8 if strategic else 8 + rng.random() * 6
        deals.append(
            Transaction(
                date=Date(2020 + int(rng.integers(0, 5)), int(rng.integers(1, 13)), 1),
                target=TARGETS[i % len(TARGETS)],
                acquirer=ACQUIRERS[i % len(ACQUIRERS)],
                target_industry=industry,
                deal_value=ebitda * multiple,
                target_revenue=revenue,
                target_ebitda=ebitda,
                premium=0.15 + rng.random() * 0.35,
                strategic=strategic,
            )
        )
    deals.sort(key=lambda t: t.date, reverse=True)
    return deals


class PrecedentTransactionModel:
    def __init__(
        self,
        data: CompanyData,
        transactions: Sequence[Transaction] | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.data = data
        if transactions is None:
            rng = rng if rng is not None else np.random.default_rng()
            transactions = generate_transactions(
                data.latest_income().revenue, rng, industry=data.profile.industry
            )
        self.transactions = list(transactions)

    def analyze(self) -> PrecedentResult:
        target = self._target_metrics()
        multiples = PrecedentMultiples(
            ev_revenue=summarize(
                filter_range((t.ev_revenue for t in self.transactions), *EV_REVENUE_BOUNDS),
                "precedent EV/Revenue multiples",
            ),
            ev_ebitda=summarize(
                filter_range((t.ev_ebitda for t in self.transactions), *EV_EBITDA_BOUNDS),
                "precedent EV/EBITDA multiples",
            ),
        )
        premiums = summarize([t.premium for t in self.transactions], "acquisition premiums")
        valuation = PrecedentValuation(
            ev_revenue=_scale(target.revenue, multiples.ev_revenue),
            ev_ebitda=_scale(target.ebitda, multiples.ev_ebitda),
        )
        implied = PrecedentValuation(
            ev_revenue=self._to_share_price(valuation.ev_revenue),
            ev_ebitda=self._to_share_price(valuation.ev_ebitda),
        )
        logger.debug(
            "Precedent %s: %d deals, median EV/EBITDA %.2fx",
            self.data.symbol, len(self.transactions), multiples.ev_ebitda.median,
        )

        return PrecedentResult(
            transactions=self.transactions,
            target=target,
            multiples=multiples,
            premiums=premiums,
            buyers=self._buyer_breakdown(),
            valuation=valuation,
            implied_share_price=implied,
            warnings=non_finite(
                ev_revenue_price=implied.ev_revenue.base,
                ev_ebitda_price=implied.ev_ebitda.base,
            ),
        )

    def _target_metrics(self) -> TargetMetrics:
        inc = self.data.latest_income()
        return TargetMetrics(
            revenue=inc.revenue,
            ebitda=inc.ebitda,
            market_cap=self.data.profile.market_cap,
            enterprise_value=self.data.enterprise_value(),
        )

    def _buyer_breakdown(self) -> BuyerBreakdown:
        strategic = filter_range(
            (t.ev_ebitda for t in self.transactions if t.strategic), *EV_EBITDA_BOUNDS
        )
        financial = filter_range(
            (t.ev_ebitda for t in self.transactions if not t.strategic), *EV_EBITDA_BOUNDS
        )
        return BuyerBreakdown(
            strategic_count=len(strategic),
            financial_count=len(financial),
            strategic_median_ev_ebitda=percentile(strategic, 50) if strategic else float("nan"),
            financial_median_ev_ebitda=percentile(financial, 50) if financial else float("nan"),
        )

    def _to_share_price(self, ev: ValueRange) -> ValueRange:
        shares = self.data.shares_outstanding
        net_debt = self.data.net_debt()
        return ValueRange(
            low=ratio_or_nan(ev.low - net_debt, shares),
            base=ratio_or_nan(ev.base - net_debt, shares),
            high=ratio_or_nan(ev.high - net_debt, shares),
        )


def _scale(metric: float, stats: SummaryStats) -> ValueRange:
    return ValueRange(low=metric * stats.low, base=metric * stats.median, high=metric * stats.high)
