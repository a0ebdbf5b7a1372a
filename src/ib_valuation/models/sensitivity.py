"""
Sensitivity & Scenario Analysis

Drives the DCF model across a table of assumption ranges:

  - one-way sensitivity per variable
  - a two-way revenue growth × WACC grid
  - Best / Base / Worst scenarios with a probability-weighted value
  - break-even search over each range against the current price
  - a tornado ranking by |high - low| / base

Every valuation builds a fresh DCFModel from an overridden copy of the
base variables, so nothing is shared between cells. Cells where WACC does
not exceed terminal growth are NaN and are skipped by break-even and
tornado.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData
from ib_valuation.errors import DegenerateInput
from ib_valuation.models.dcf import DCFInputs, DCFModel
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

Variable = Literal["revenue_growth", "margin", "wacc", "terminal_growth"]

DEFAULT_RANGES: dict[str, tuple[float, ...]] = {
    "revenue_growth": (0.05, 0.08, 0.10, 0.12, 0.15),
    "margin": (0.15, 0.18, 0.20, 0.22, 0.25),
    "wacc": (0.08, 0.09, 0.10, 0.11, 0.12),
    "terminal_growth": (0.01, 0.02, 0.025, 0.03, 0.04),
}
TWO_WAY = ("revenue_growth", "wacc")
BREAKEVEN_VARIABLES = ("revenue_growth", "wacc", "terminal_growth")
PROJECTION_YEARS = 5


class SensitivityVariables(BaseModel):
    model_config = ConfigDict(frozen=True)

    revenue_growth: float = 0.10  # flat across the projection
    margin: float = 0.20  # EBITDA margin
    wacc: float = 0.10
    terminal_growth: float = 0.025


class SensitivityInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_variables: SensitivityVariables = SensitivityVariables()
    ranges: dict[Variable, tuple[float, ...]] = Field(default_factory=lambda: dict(DEFAULT_RANGES))


SCENARIOS: tuple[tuple[str, SensitivityVariables | None, float], ...] = (
    ("Best Case", SensitivityVariables(revenue_growth=0.15, margin=0.25, wacc=0.08, terminal_growth=0.04), 0.25),
    ("Base Case", None, 0.50),  # the configured base variables
    ("Worst Case", SensitivityVariables(revenue_growth=0.05, margin=0.15, wacc=0.12, terminal_growth=0.01), 0.25),
)


@dataclass(frozen=True)
class SensitivityPoint:
    input: float
    output: float


@dataclass(frozen=True)
class OneWaySensitivity:
    variable: str
    values: list[SensitivityPoint]


@dataclass(frozen=True)
class TwoWaySensitivity:
    variable1: str  # rows
    variable2: str  # columns
    row_labels: list[float]
    col_labels: list[float]
    matrix: list[list[float]]


@dataclass(frozen=True)
class Scenario:
    name: str
    assumptions: dict[str, float]
    valuation: float
    probability: float


@dataclass(frozen=True)
class BreakevenPoint:
    variable: str
    threshold: float  # range value whose valuation is closest to the current price
    current_value: float
    buffer: float  # |current - threshold| / current


@dataclass(frozen=True)
class TornadoBar:
    variable: str
    low: float
    base: float
    high: float
    impact: float  # |high - low| / base


@dataclass
class SensitivityResult:
    symbol: str
    current_price: float
    base_variables: dict[str, float]
    base_valuation: float
    one_way: list[OneWaySensitivity]
    two_way: TwoWaySensitivity
    scenarios: list[Scenario]
    expected_value: float  # probability-weighted over finite scenarios
    breakeven: list[BreakevenPoint]
    tornado: list[TornadoBar]  # largest impact first
    warnings: list[str] = field(default_factory=list)


def dcf_inputs_for(variables: SensitivityVariables) -> DCFInputs:
    return DCFInputs(
        projection_years=PROJECTION_YEARS,
        revenue_growth=(variables.revenue_growth,) * PROJECTION_YEARS,
        ebitda_margin=variables.margin,
        wacc=variables.wacc,
        terminal_growth=variables.terminal_growth,
    )


class SensitivityModel:
    def __init__(self, data: CompanyData, inputs: SensitivityInputs | None = None):
        self.data = data
        self.inputs = inputs or SensitivityInputs()

    def valuation(self, **overrides: float) -> float:
        """Implied share price with some base variables overridden; NaN when degenerate."""
        variables = self.inputs.base_variables.model_copy(update=overrides)
        try:
            return DCFModel(self.data, dcf_inputs_for(variables)).calculate().implied_share_price
        except DegenerateInput as e:
            logger.debug("Sensitivity cell %s is degenerate: %s", overrides, e.message)
            return math.nan

    def analyze(self) -> SensitivityResult:
        base = self.valuation()
        scenarios = self._scenarios()
        expected = _expected_value(scenarios)
        logger.debug("Sensitivity %s: base %.2f, expected %.2f", self.data.symbol, base, expected)

        return SensitivityResult(
            symbol=self.data.symbol,
            current_price=self.data.current_price,
            base_variables=self.inputs.base_variables.model_dump(),
            base_valuation=base,
            one_way=self._one_way(),
            two_way=self._two_way(),
            scenarios=scenarios,
            expected_value=expected,
            breakeven=self._breakeven(),
            tornado=self._tornado(base),
            warnings=non_finite(base_valuation=base, expected_value=expected),
        )

    def _one_way(self) -> list[OneWaySensitivity]:
        return [
            OneWaySensitivity(
                variable=variable,
                values=[SensitivityPoint(input=v, output=self.valuation(**{variable: v})) for v in values],
            )
            for variable, values in self.inputs.ranges.items()
        ]

    def _two_way(self) -> TwoWaySensitivity:
        var1, var2 = TWO_WAY
        rows = list(self.inputs.ranges.get(var1, ()))
        cols = list(self.inputs.ranges.get(var2, ()))
        matrix = [[self.valuation(**{var1: r, var2: c}) for c in cols] for r in rows]
        return TwoWaySensitivity(variable1=var1, variable2=var2, row_labels=rows, col_labels=cols, matrix=matrix)

    def _scenarios(self) -> list[Scenario]:
        out: list[Scenario] = []
        for name, variables, probability in SCENARIOS:
            variables = variables or self.inputs.base_variables
            out.append(
                Scenario(
                    name=name,
                    assumptions=variables.model_dump(),
                    valuation=self.valuation(**variables.model_dump()),
                    probability=probability,
                )
            )
        return out

    def _breakeven(self) -> list[BreakevenPoint]:
        current_price = self.data.current_price
        base = self.inputs.base_variables
        out: list[BreakevenPoint] = []

        for variable in BREAKEVEN_VARIABLES:
            values = self.inputs.ranges.get(variable, ())
            threshold = math.nan
            best = math.inf
            for value in values:
                diff = abs(self.valuation(**{variable: value}) - current_price)
                if math.isfinite(diff) and diff < best:
                    best, threshold = diff, value

            current_value = getattr(base, variable)
            out.append(
                BreakevenPoint(
                    variable=variable,
                    threshold=threshold,
                    current_value=current_value,
                    buffer=abs(current_value - threshold) / (current_value or 1),
                )
            )
        return out

    def _tornado(self, base: float) -> list[TornadoBar]:
        bars: list[TornadoBar] = []
        for variable, values in self.inputs.ranges.items():
            if len(values) < 2:
                continue
            first = self.valuation(**{variable: values[0]})
            last = self.valuation(**{variable: values[-1]})
            if not (math.isfinite(first) and math.isfinite(last)):
                continue
            bars.append(
                TornadoBar(
                    variable=variable,
                    low=min(first, last),
                    base=base,
                    high=max(first, last),
                    impact=abs(ratio_or_nan(last - first, base)),
                )
            )
        # NaN impacts (zero or degenerate base) sort last.
        bars.sort(key=lambda b: (not math.isfinite(b.impact), -b.impact if math.isfinite(b.impact) else 0.0))
        return bars


def _expected_value(scenarios: list[Scenario]) -> float:
    finite = [s for s in scenarios if math.isfinite(s.valuation)]
    weight = sum(s.probability for s in finite)
    if not finite or weight == 0:
        return math.nan
    return sum(s.valuation * s.probability for s in finite) / weight
