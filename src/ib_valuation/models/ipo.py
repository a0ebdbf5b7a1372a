"""
IPO Valuation & Pricing

Offering size and proceeds across a price range, pre/post-money valuation,
ownership dilution from new primary shares, implied trading multiples at
each price point, comparable recent IPOs and a first-day pop estimate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

OFFER_FRACTION = 0.15  # of shares outstanding
PRIMARY_SPLIT = 0.80
RANGE_WIDTH = 0.15

COMPARABLE_IPO_NAMES = ("Snowflake", "Airbnb", "DoorDash", "Palantir", "Unity", "Roblox", "Coinbase")


class IPOInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary_shares: Optional[float] = None  # None = 80% of a 15% offering
    secondary_shares: Optional[float] = None  # None = 20% of a 15% offering
    price_low: Optional[float] = None  # None = current * 0.85
    price_high: Optional[float] = None  # None = current * 1.15
    greenshoe: float = Field(0.15, ge=0)  # over-allotment, fraction of base offering


@dataclass(frozen=True)
class PriceRange:
    low: float
    mid: float
    high: float


@dataclass(frozen=True)
class Offering:
    primary_shares: float
    secondary_shares: float
    total_shares: float
    greenshoe_shares: float
    price: PriceRange
    primary_proceeds: PriceRange
    secondary_proceeds: PriceRange
    total_proceeds: PriceRange
    greenshoe_proceeds: PriceRange


@dataclass(frozen=True)
class MoneyValuation:
    shares_outstanding: float
    valuation: PriceRange


@dataclass(frozen=True)
class Dilution:
    pre_ipo_ownership: float
    post_ipo_ownership: float
    dilution_percent: float


@dataclass(frozen=True)
class IPOMultiples:
    ev_revenue: PriceRange
    ev_ebitda: PriceRange
    pe: PriceRange


@dataclass(frozen=True)
class ComparableIPO:
    company: str
    date: Date
    offer_price: float
    first_day_close: float
    first_day_pop: float
    ev_revenue: float
    ev_ebitda: float


@dataclass(frozen=True)
class FirstDayPop:
    conservative: float
    base: float
    optimistic: float


@dataclass
class IPOResult:
    symbol: str
    assumptions: IPOInputs
    offering: Offering
    pre_money: MoneyValuation
    post_money: MoneyValuation
    dilution: Dilution
    valuation_metrics: IPOMultiples
    comparable_ipos: list[ComparableIPO]
    first_day_pop: FirstDayPop
    warnings: list[str] = field(default_factory=list)


def generate_comparable_ipos(rng: np.random.Generator) -> list[ComparableIPO]:
    out: list[ComparableIPO] = []
    for company in COMPARABLE_IPO_NAMES:
        offer = 20 + rng.random() * 50
        pop = 0.10 + rng.random() * 0.50
        out.append(
            ComparableIPO(
                company=company,
                date=Date(2020 + int(rng.integers(0, 4)), int(rng.integers(1, 13)), 15),
                offer_price=offer,
                first_day_close=offer * (1 + pop),
                first_day_pop=pop,
                ev_revenue=10 + rng.random() * 30,
                ev_ebitda=20 + rng.random() * 40,
            )
        )
    return out


def _times(amount: float, price: PriceRange) -> PriceRange:
    return PriceRange(low=amount * price.low, mid=amount * price.mid, high=amount * price.high)


class IPOModel:
    def __init__(
        self,
        data: CompanyData,
        inputs: IPOInputs | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.data = data
        inputs = inputs or IPOInputs()
        offer_size = data.shares_outstanding * OFFER_FRACTION
        current = data.current_price
        self.inputs = inputs.model_copy(
            update={
                "primary_shares": _default(inputs.primary_shares, offer_size * PRIMARY_SPLIT),
                "secondary_shares": _default(inputs.secondary_shares, offer_size * (1 - PRIMARY_SPLIT)),
                "price_low": _default(inputs.price_low, current * (1 - RANGE_WIDTH)),
                "price_high": _default(inputs.price_high, current * (1 + RANGE_WIDTH)),
            }
        )
        self.rng = rng if rng is not None else np.random.default_rng()

    def analyze(self) -> IPOResult:
        p = self.inputs
        price = PriceRange(low=p.price_low, mid=(p.price_low + p.price_high) / 2, high=p.price_high)
        offering = self._offering(price)
        shares = self.data.shares_outstanding
        pre_money = MoneyValuation(shares_outstanding=shares, valuation=_times(shares, price))
        post_shares = shares + offering.primary_shares
        post_money = MoneyValuation(shares_outstanding=post_shares, valuation=_times(post_shares, price))
        dilution = Dilution(
            pre_ipo_ownership=1.0,
            post_ipo_ownership=ratio_or_nan(shares, post_shares),
            dilution_percent=ratio_or_nan(offering.primary_shares, post_shares),
        )
        metrics = self._multiples(post_money)
        logger.debug("IPO %s: range %.2f-%.2f, primary %.0f", self.data.symbol, p.price_low, p.price_high, p.primary_shares)

        return IPOResult(
            symbol=self.data.symbol,
            assumptions=p,
            offering=offering,
            pre_money=pre_money,
            post_money=post_money,
            dilution=dilution,
            valuation_metrics=metrics,
            comparable_ipos=generate_comparable_ipos(self.rng),
            first_day_pop=FirstDayPop(conservative=0.05, base=0.15, optimistic=0.30),
            warnings=non_finite(
                ev_revenue=metrics.ev_revenue.mid,
                ev_ebitda=metrics.ev_ebitda.mid,
                pe=metrics.pe.mid,
            ),
        )

    def _offering(self, price: PriceRange) -> Offering:
        primary = self.inputs.primary_shares
        secondary = self.inputs.secondary_shares
        total = primary + secondary
        greenshoe = total * self.inputs.greenshoe
        return Offering(
            primary_shares=primary,
            secondary_shares=secondary,
            total_shares=total,
            greenshoe_shares=greenshoe,
            price=price,
            primary_proceeds=_times(primary, price),
            secondary_proceeds=_times(secondary, price),
            total_proceeds=_times(total, price),
            greenshoe_proceeds=_times(greenshoe, price),
        )

    def _multiples(self, post_money: MoneyValuation) -> IPOMultiples:
        inc = self.data.latest_income()
        net_debt = self.data.net_debt()
        v = post_money.valuation

        def per(metric: float, enterprise: bool) -> PriceRange:
            add = net_debt if enterprise else 0.0
            return PriceRange(
                low=ratio_or_nan(v.low + add, metric),
                mid=ratio_or_nan(v.mid + add, metric),
                high=ratio_or_nan(v.high + add, metric),
            )

        return IPOMultiples(
            ev_revenue=per(inc.revenue, enterprise=True),
            ev_ebitda=per(inc.ebitda, enterprise=True),
            pe=per(inc.net_income, enterprise=False),
        )


def _default(value: float | None, fallback: float) -> float:
    return value if value is not None else fallback
