"""
Comparable Company Analysis

Trading multiples (EV/Revenue, EV/EBITDA, P/E) across a peer set plus the
target, outlier filtering, nearest-rank quartiles, and implied values.

Peers are synthetic by default (revenue-anchored random draws); pass
`peers=` or a seeded `rng=` for reproducible output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import (
    SummaryStats,
    ValueRange,
    filter_range,
    non_finite,
    ratio_or_nan,
    summarize,
)

logger = logging.getLogger(__name__)

# (lower, upper) exclusive bounds for a multiple to count
EV_REVENUE_BOUNDS = (0.0, 50.0)
EV_EBITDA_BOUNDS = (0.0, 50.0)
PE_BOUNDS = (0.0, 100.0)

PEER_COUNT = 8


@dataclass(frozen=True)
class PeerCompany:
    symbol: str
    name: str
    market_cap: float
    enterprise_value: float
    revenue: float
    ebitda: float
    net_income: float

    @property
    def ev_revenue(self) -> float:
        return ratio_or_nan(self.enterprise_value, self.revenue)

    @property
    def ev_ebitda(self) -> float:
        return ratio_or_nan(self.enterprise_value, self.ebitda)

    @property
    def pe(self) -> float:
        return ratio_or_nan(self.market_cap, self.net_income)


@dataclass(frozen=True)
class CompsMultiples:
    ev_revenue: SummaryStats
    ev_ebitda: SummaryStats
    pe: SummaryStats


@dataclass(frozen=True)
class CompsValuation:
    ev_revenue: ValueRange
    ev_ebitda: ValueRange
    pe: ValueRange


@dataclass
class CompsResult:
    target: PeerCompany
    peers: list[PeerCompany]  # unfiltered
    multiples: CompsMultiples
    valuation: CompsValuation  # implied EV (EV multiples) or equity value (P/E)
    implied_share_price: CompsValuation
    warnings: list[str] = field(default_factory=list)

    @property
    def is_finite(self) -> bool:
        return not self.warnings


def generate_peers(
    base_revenue: float,
    rng: np.random.Generator,
    count: int = PEER_COUNT,
) -> list[PeerCompany]:
    """Synthetic peers sized 0.15x-3x the target's revenue."""
    peers: list[PeerCompany] = []
    for i in range(count):
        size = 0.5 + rng.random()
        revenue = base_revenue * size * (0.3 + rng.random() * 1.5)
        ebitda = revenue * (0.15 + rng.random() * 0.2)
        net_income = ebitda * (0.5 + rng.random() * 0.3)
        ev = ebitda * (8 + rng.random() * 8)
        market_cap = ev * (0.8 + rng.random() * 0.3)
        peers.append(
            PeerCompany(
                symbol=f"PEER{i + 1}",
                name=f"Peer {chr(ord('A') + i)}",
                market_cap=market_cap,
                enterprise_value=ev,
                revenue=revenue,
                ebitda=ebitda,
                net_income=net_income,
            )
        )
    return peers


def target_metrics(data: CompanyData) -> PeerCompany:
    """The target expressed as a peer row (latest statements, market EV)."""
    inc = data.latest_income()
    return PeerCompany(
        symbol=data.symbol,
        name=data.profile.name,
        market_cap=data.profile.market_cap,
        enterprise_value=data.enterprise_value(),
        revenue=inc.revenue,
        ebitda=inc.ebitda,
        net_income=inc.net_income,
    )


class CompsModel:
    def __init__(
        self,
        data: CompanyData,
        peers: Sequence[PeerCompany] | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.data = data
        if peers is None:
            rng = rng if rng is not None else np.random.default_rng()
            peers = generate_peers(data.latest_income().revenue, rng)
        self.peers = list(peers)

    def analyze(self) -> CompsResult:
        target = target_metrics(self.data)
        multiples = self._multiples(target)
        valuation = CompsValuation(
            ev_revenue=_scale(target.revenue, multiples.ev_revenue),
            ev_ebitda=_scale(target.ebitda, multiples.ev_ebitda),
            pe=_scale(target.net_income, multiples.pe),
        )
        implied = self._implied_share_price(valuation)
        logger.debug(
            "Comps %s: %d peers, median EV/EBITDA %.2fx",
            self.data.symbol, len(self.peers), multiples.ev_ebitda.median,
        )

        return CompsResult(
            target=target,
            peers=self.peers,
            multiples=multiples,
            valuation=valuation,
            implied_share_price=implied,
            warnings=non_finite(
                ev_revenue_price=implied.ev_revenue.base,
                ev_ebitda_price=implied.ev_ebitda.base,
                pe_price=implied.pe.base,
            ),
        )

    def _multiples(self, target: PeerCompany) -> CompsMultiples:
        universe = [*self.peers, target]
        return CompsMultiples(
            ev_revenue=summarize(
                filter_range((c.ev_revenue for c in universe), *EV_REVENUE_BOUNDS), "EV/Revenue multiples"
            ),
            ev_ebitda=summarize(
                filter_range((c.ev_ebitda for c in universe), *EV_EBITDA_BOUNDS), "EV/EBITDA multiples"
            ),
            pe=summarize(filter_range((c.pe for c in universe), *PE_BOUNDS), "P/E multiples"),
        )

    def _implied_share_price(self, valuation: CompsValuation) -> CompsValuation:
        shares = self.data.shares_outstanding
        net_debt = self.data.net_debt()

        def from_ev(r: ValueRange) -> ValueRange:
            return ValueRange(
                low=ratio_or_nan(r.low - net_debt, shares),
                base=ratio_or_nan(r.base - net_debt, shares),
                high=ratio_or_nan(r.high - net_debt, shares),
            )

        return CompsValuation(
            ev_revenue=from_ev(valuation.ev_revenue),
            ev_ebitda=from_ev(valuation.ev_ebitda),
            pe=ValueRange(
                low=ratio_or_nan(valuation.pe.low, shares),
                base=ratio_or_nan(valuation.pe.base, shares),
                high=ratio_or_nan(valuation.pe.high, shares),
            ),
        )


def _scale(metric: float, stats: SummaryStats) -> ValueRange:
    return ValueRange(low=metric * stats.low, base=metric * stats.median, high=metric * stats.high)
