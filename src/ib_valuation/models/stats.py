"""
Statistics helpers shared by the cross-sectional models.

Percentiles are nearest-rank (no interpolation): sort ascending, take
index floor(p/100 * (n-1)). Every multiple-based valuation depends on this
exact rule.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from ib_valuation.errors import DegenerateInput, EmptyDataset


@dataclass(frozen=True)
class SummaryStats:
    """25th / 50th / 75th percentile and mean of a set of multiples."""
    low: float
    median: float
    high: float
    mean: float
    count: int


@dataclass(frozen=True)
class ValueRange:
    low: float
    base: float
    high: float


def _as_list(values: Iterable[float], what: str) -> list[float]:
    vals = [float(v) for v in values]
    if not vals:
        raise EmptyDataset(what)
    return vals


def percentile(values: Sequence[float], p: float, what: str = "values") -> float:
    """Nearest-rank percentile; `p` in [0, 100]."""
    if not 0 <= p <= 100:
        raise ValueError(f"percentile must be in [0, 100], got {p}")
    ordered = sorted(_as_list(values, what))
    index = math.floor((p / 100) * (len(ordered) - 1))
    return ordered[index]


def mean(values: Sequence[float], what: str = "values") -> float:
    return float(np.mean(_as_list(values, what)))


def variance(values: Sequence[float], what: str = "values") -> float:
    """Population variance (divides by n)."""
    return float(np.var(_as_list(values, what)))


def volatility(values: Sequence[float], what: str = "values") -> float:
    """Coefficient of variation: population stdev / mean."""
    vals = _as_list(values, what)
    avg = float(np.mean(vals))
    if avg == 0:
        raise DegenerateInput(f"mean of {what} is zero")
    return float(np.std(vals)) / avg


def summarize(values: Sequence[float], what: str = "values") -> SummaryStats:
    vals = _as_list(values, what)
    return SummaryStats(
        low=percentile(vals, 25, what),
        median=percentile(vals, 50, what),
        high=percentile(vals, 75, what),
        mean=mean(vals, what),
        count=len(vals),
    )


def filter_range(values: Iterable[float], lower: float, upper: float) -> list[float]:
    """Keep values strictly inside (lower, upper). NaN and inf never pass."""
    return [v for v in values if math.isfinite(v) and lower < v < upper]


def ratio(numerator: float, denominator: float, what: str = "ratio") -> float:
    """Strict division: raises DegenerateInput instead of returning inf/nan."""
    if denominator == 0 or not math.isfinite(denominator):
        raise DegenerateInput(f"{what} has a zero or non-finite denominator", denominator=denominator)
    out = numerator / denominator
    if not math.isfinite(out):
        raise DegenerateInput(f"{what} is not finite", numerator=numerator, denominator=denominator)
    return out


def ratio_or_nan(numerator: float, denominator: float) -> float:
    """Lenient division for reported ratios: NaN when undefined."""
    if denominator == 0:
        return math.nan
    return numerator / denominator


def cagr(first: float, last: float, periods: int) -> float:
    """Compound growth over `periods` steps; NaN when undefined (sign flip, zero base)."""
    if periods < 1 or first == 0:
        return math.nan
    growth = last / first
    if growth <= 0:
        return math.nan
    return growth ** (1 / periods) - 1


def non_finite(**named: float | None) -> list[str]:
    """Warning lines for every named headline value that is NaN or infinite."""
    return [f"{k} is not finite" for k, v in named.items() if v is not None and not math.isfinite(v)]
