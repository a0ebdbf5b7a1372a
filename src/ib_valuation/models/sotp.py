"""
Sum-of-the-Parts (SOTP) Valuation

Values each business segment on EBITDA × a methodology-specific multiple,
nets off capitalized corporate overhead and net debt, and reports
conservative / base / optimistic scenarios on the gross segment value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

Methodology = Literal["dcf", "comps", "multiple"]
Allocation = Literal["proportional", "revenue", "ebitda", "equal"]

OVERHEAD_MULTIPLE = 8
DEFAULT_MULTIPLE = 10
SCENARIO_FACTORS = (("conservative", 0.85), ("base", 1.00), ("optimistic", 1.20))


class BusinessSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    revenue: float
    ebitda: float
    ebitda_margin: float = 0.0
    growth_rate: float = 0.0
    methodology: Methodology = "multiple"
    multiple: Optional[float] = None  # used by "multiple"; defaults to 10x


class SOTPInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    segments: Optional[tuple[BusinessSegment, ...]] = None  # None = derived split
    corporate_overhead: float = 0.02  # fraction of total EBITDA
    net_debt_allocation: Allocation = "ebitda"


def derive_segments(revenue: float, ebitda: float) -> tuple[BusinessSegment, ...]:
    """Illustrative four-way split of consolidated revenue and EBITDA."""
    return (
        BusinessSegment(
            name="Core", revenue=revenue * 0.50, ebitda=ebitda * 0.60,
            ebitda_margin=0.30, growth_rate=0.08, methodology="comps", multiple=12,
        ),
        BusinessSegment(
            name="Growth", revenue=revenue * 0.25, ebitda=ebitda * 0.25,
            ebitda_margin=0.20, growth_rate=0.20, methodology="multiple", multiple=18,
        ),
        BusinessSegment(
            name="Legacy", revenue=revenue * 0.20, ebitda=ebitda * 0.12,
            ebitda_margin=0.15, growth_rate=0.02, methodology="multiple", multiple=6,
        ),
        BusinessSegment(
            name="New Ventures", revenue=revenue * 0.05, ebitda=ebitda * 0.03,
            ebitda_margin=0.10, growth_rate=0.35, methodology="multiple", multiple=25,
        ),
    )


def segment_multiple(segment: BusinessSegment) -> float:
    if segment.methodology == "dcf":
        return 10 + segment.growth_rate * 50
    if segment.methodology == "comps":
        return 8 + segment.ebitda_margin * 20
    return segment.multiple if segment.multiple is not None else DEFAULT_MULTIPLE


@dataclass(frozen=True)
class SegmentValue:
    name: str
    revenue: float
    ebitda: float
    methodology: str
    multiple: float
    value: float
    percent_of_total: float  # share of total segment EBITDA
    allocated_net_debt: float
    equity_value: float


@dataclass(frozen=True)
class SOTPAdjustments:
    corporate_overhead: float  # annual overhead EBITDA
    corporate_overhead_value: float  # capitalized, negative
    net_debt: float
    cash: float
    minority_interest: float


@dataclass(frozen=True)
class SOTPScenario:
    name: str
    equity_value: float
    per_share: float


@dataclass
class SOTPResult:
    symbol: str
    segments: list[SegmentValue]
    adjustments: SOTPAdjustments
    gross_value: float
    net_value: float  # gross + overhead value = implied EV
    enterprise_value: float
    equity_value: float
    per_share: float
    scenarios: list[SOTPScenario]
    warnings: list[str] = field(default_factory=list)


class SOTPModel:
    def __init__(self, data: CompanyData, inputs: SOTPInputs | None = None):
        self.data = data
        inputs = inputs or SOTPInputs()
        if inputs.segments is None:
            inc = data.latest_income()
            inputs = inputs.model_copy(update={"segments": derive_segments(inc.revenue, inc.ebitda)})
        self.inputs = inputs

    def analyze(self) -> SOTPResult:
        adjustments = self._adjustments()
        segments = self._value_segments(adjustments.net_debt)
        gross = sum(s.value for s in segments)
        net = gross + adjustments.corporate_overhead_value
        equity = net - adjustments.net_debt
        shares = self.data.shares_outstanding
        per_share = ratio_or_nan(equity, shares)
        logger.debug("SOTP %s: %d segments, gross %.0f", self.data.symbol, len(segments), gross)

        scenarios = []
        for name, factor in SCENARIO_FACTORS:
            value = gross * factor - abs(adjustments.corporate_overhead_value) - adjustments.net_debt
            scenarios.append(SOTPScenario(name=name, equity_value=value, per_share=ratio_or_nan(value, shares)))

        return SOTPResult(
            symbol=self.data.symbol,
            segments=segments,
            adjustments=adjustments,
            gross_value=gross,
            net_value=net,
            enterprise_value=net,
            equity_value=equity,
            per_share=per_share,
            scenarios=scenarios,
            warnings=non_finite(per_share=per_share),
        )

    def _adjustments(self) -> SOTPAdjustments:
        bs = self.data.latest_balance()
        total_ebitda = self.data.latest_income().ebitda
        overhead = total_ebitda * self.inputs.corporate_overhead
        return SOTPAdjustments(
            corporate_overhead=overhead,
            corporate_overhead_value=-overhead * OVERHEAD_MULTIPLE,
            net_debt=bs.total_debt - bs.cash_and_equivalents,
            cash=bs.cash_and_equivalents,
            minority_interest=0.0,
        )

    def _value_segments(self, net_debt: float) -> list[SegmentValue]:
        segments = self.inputs.segments or ()
        multiples = [segment_multiple(s) for s in segments]
        values = [s.ebitda * m for s, m in zip(segments, multiples)]
        total_ebitda = sum(s.ebitda for s in segments)
        weights = self._allocation_weights(segments, values)

        return [
            SegmentValue(
                name=s.name,
                revenue=s.revenue,
                ebitda=s.ebitda,
                methodology=s.methodology,
                multiple=m,
                value=v,
                percent_of_total=ratio_or_nan(s.ebitda, total_ebitda),
                allocated_net_debt=net_debt * w,
                equity_value=v - net_debt * w,
            )
            for s, m, v, w in zip(segments, multiples, values, weights)
        ]

    def _allocation_weights(
        self, segments: tuple[BusinessSegment, ...], values: list[float]
    ) -> list[float]:
        method = self.inputs.net_debt_allocation
        if method == "equal":
            return [1 / len(segments)] * len(segments) if segments else []
        if method == "revenue":
            basis = [s.revenue for s in segments]
        elif method == "ebitda":
            basis = [s.ebitda for s in segments]
        else:
            basis = values
        total = sum(basis)
        return [ratio_or_nan(b, total) for b in basis]
