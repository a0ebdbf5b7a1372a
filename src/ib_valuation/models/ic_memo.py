"""
Investment Committee Memo

Blends DCF, trading comps and precedent transactions into a weighted
value per share, pulls returns from the LBO model, and wraps both in a
templated memo. Only the valuation and returns sections are computed; the
narrative sections are boilerplate filled with the company's figures.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict

from ib_valuation.data.models import CompanyData
from ib_valuation.errors import ValuationError
from ib_valuation.models.comps import CompsModel
from ib_valuation.models.dcf import DCFModel
from ib_valuation.models.lbo import LBOInputs, LBOModel, LBOResult
from ib_valuation.models.precedent import PrecedentTransactionModel
from ib_valuation.models.stats import ratio_or_nan

logger = logging.getLogger(__name__)

Action = Literal["invest", "pass", "watch"]
Level = Literal["high", "medium", "low"]

METHOD_WEIGHTS = (("DCF", 0.40), ("Comps", 0.35), ("Precedent", 0.25))
DEAL_SIZE_FRACTION = 0.30  # of market cap
INVEST_THRESHOLD = 1.15  # weighted value / current price
PASS_THRESHOLD = 0.90
EXIT_MULTIPLE_STEP = 2


class ICMemoInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    deal_type: Literal["buyout", "growth", "venture", "public"] = "buyout"
    position: Literal["lead", "co-lead", "follow"] = "lead"
    recommended_action: Optional[Action] = None  # None = derived from valuation


@dataclass(frozen=True)
class ExecutiveSummary:
    investment_thesis: str
    expected_returns: str
    key_risks: str


@dataclass(frozen=True)
class DealOverview:
    type: str
    size: float
    structure: str
    timeline: str
    use_of_proceeds: str


@dataclass(frozen=True)
class CompanyAnalysis:
    business_model: str
    competitive_position: str
    financial_performance: str
    management_team: str


@dataclass(frozen=True)
class IndustryAnalysis:
    market_size: str
    growth_rate: str
    trends: list[str]
    competitive_dynamics: str


@dataclass(frozen=True)
class InvestmentThesis:
    points: list[str]
    key_drivers: list[str]
    catalysts: list[str]


@dataclass(frozen=True)
class Methodology:
    name: str
    value: float  # implied price per share
    weight: float  # as configured
    applied_weight: float  # after dropping non-finite methods


@dataclass(frozen=True)
class MemoValuation:
    methodologies: list[Methodology]
    weighted_value: float
    low: float
    base: float
    high: float


@dataclass(frozen=True)
class ExitScenario:
    scenario: str
    year: int
    multiple: float
    moic: float


@dataclass(frozen=True)
class MemoReturns:
    irr: float
    moic: float
    holding_period: int
    exit_scenarios: list[ExitScenario]


@dataclass(frozen=True)
class Risk:
    category: str
    description: str
    likelihood: Level
    impact: Level
    mitigation: str


@dataclass(frozen=True)
class Recommendation:
    action: Action
    reasoning: str
    conditions: list[str]
    next_steps: list[str]


@dataclass
class ICMemo:
    symbol: str
    executive_summary: ExecutiveSummary
    deal_overview: DealOverview
    company_analysis: CompanyAnalysis
    industry_analysis: IndustryAnalysis
    investment_thesis: InvestmentThesis
    valuation: MemoValuation
    returns: MemoReturns
    risks: list[Risk]
    recommendation: Recommendation
    warnings: list[str] = field(default_factory=list)


def weighted_valuation(values: dict[str, float], weights=METHOD_WEIGHTS) -> tuple[MemoValuation, list[str]]:
    """
    Blend per-method prices, renormalising weights over the finite ones.

    Range low/high are the min/max finite method value less/plus 10%.
    """
    warnings: list[str] = []
    finite = {name: w for name, w in weights if math.isfinite(values.get(name, math.nan))}
    total_weight = sum(finite.values())
    for name, _ in weights:
        if name not in finite:
            warnings.append(f"{name} valuation is not finite; excluded from the weighted value")

    methodologies = [
        Methodology(
            name=name,
            value=values.get(name, math.nan),
            weight=w,
            applied_weight=finite[name] / total_weight if name in finite else 0.0,
        )
        for name, w in weights
    ]
    if not finite:
        nan = math.nan
        return MemoValuation(methodologies, nan, nan, nan, nan), warnings

    weighted = sum(m.value * m.applied_weight for m in methodologies if m.applied_weight)
    finite_values = [m.value for m in methodologies if m.applied_weight]
    return (
        MemoValuation(
            methodologies=methodologies,
            weighted_value=weighted,
            low=min(finite_values) * 0.9,
            base=weighted,
            high=max(finite_values) * 1.1,
        ),
        warnings,
    )


def _unavailable_returns(inputs: LBOInputs) -> MemoReturns:
    nan = math.nan
    return MemoReturns(
        irr=nan,
        moic=nan,
        holding_period=inputs.holding_period,
        exit_scenarios=[
            ExitScenario(scenario=label, year=inputs.holding_period, multiple=inputs.exit_multiple + step, moic=nan)
            for label, step in (("Downside", -EXIT_MULTIPLE_STEP), ("Base", 0), ("Upside", EXIT_MULTIPLE_STEP))
        ],
    )


def recommend(weighted_value: float, current_price: float) -> Action:
    if not math.isfinite(weighted_value) or current_price <= 0:
        return "watch"
    if weighted_value >= current_price * INVEST_THRESHOLD:
        return "invest"
    if weighted_value < current_price * PASS_THRESHOLD:
        return "pass"
    return "watch"


class ICMemoModel:
    def __init__(
        self,
        data: CompanyData,
        inputs: ICMemoInputs | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.data = data
        self.inputs = inputs or ICMemoInputs()
        self.rng = rng if rng is not None else np.random.default_rng()

    def generate(self) -> ICMemo:
        valuation, warnings = self._valuation()
        try:
            lbo = LBOModel(self.data).calculate()
        except ValuationError as e:
            logger.warning("IC memo %s: LBO failed: %s", self.data.symbol, e.message)
            returns = _unavailable_returns(LBOInputs())
            warnings.append("LBO returns are not finite; returns section unavailable")
        else:
            returns = self._returns(lbo)
            warnings.extend(lbo.warnings)
        action = self.inputs.recommended_action or recommend(valuation.weighted_value, self.data.current_price)
        logger.debug("IC memo %s: weighted %.2f -> %s", self.data.symbol, valuation.weighted_value, action)

        return ICMemo(
            symbol=self.data.symbol,
            executive_summary=self._executive_summary(returns),
            deal_overview=self._deal_overview(),
            company_analysis=self._company_analysis(),
            industry_analysis=INDUSTRY_ANALYSIS,
            investment_thesis=INVESTMENT_THESIS,
            valuation=valuation,
            returns=returns,
            risks=list(RISKS),
            recommendation=self._recommendation(action, valuation.weighted_value),
            warnings=warnings,
        )

    def _valuation(self) -> tuple[MemoValuation, list[str]]:
        runs: dict[str, Callable[[], float]] = {
            "DCF": lambda: DCFModel(self.data).calculate().implied_share_price,
            "Comps": lambda: CompsModel(self.data, rng=self.rng).analyze().implied_share_price.ev_ebitda.base,
            "Precedent": lambda: PrecedentTransactionModel(self.data, rng=self.rng)
            .analyze()
            .implied_share_price.ev_ebitda.base,
        }
        values: dict[str, float] = {}
        for name, run in runs.items():
            try:
                values[name] = run()
            except ValuationError as e:
                logger.warning("IC memo %s: %s failed: %s", self.data.symbol, name, e.message)
                values[name] = math.nan
        return weighted_valuation(values)

    def _returns(self, lbo: LBOResult) -> MemoReturns:
        final = lbo.projections[-1]
        invested = lbo.entry.equity_contribution
        scenarios = []
        for label, step in (("Downside", -EXIT_MULTIPLE_STEP), ("Base", 0), ("Upside", EXIT_MULTIPLE_STEP)):
            multiple = lbo.exit.exit_multiple + step
            equity = final.ebitda * multiple - final.ending_debt
            scenarios.append(
                ExitScenario(
                    scenario=label,
                    year=lbo.exit.exit_year,
                    multiple=multiple,
                    moic=ratio_or_nan(equity, invested),
                )
            )
        return MemoReturns(
            irr=lbo.returns.irr,
            moic=lbo.returns.moic,
            holding_period=lbo.exit.exit_year,
            exit_scenarios=scenarios,
        )

    def _executive_summary(self, returns: MemoReturns) -> ExecutiveSummary:
        profile = self.data.profile
        statements = self.data.income_statements
        if statements:
            first, latest = statements[0], statements[-1]
            growth = ratio_or_nan(latest.revenue, first.revenue) - 1
            margin = ratio_or_nan(latest.ebitda, latest.revenue)
            thesis = (
                f"{profile.name} ({profile.symbol}) is an established {profile.industry or 'industry'} "
                f"business with revenue up {growth * 100:.1f}% over the last {len(statements)} periods "
                f"and a {margin * 100:.1f}% EBITDA margin."
            )
        else:
            thesis = f"{profile.name or profile.symbol} ({profile.symbol}): no historical financials available."

        if math.isfinite(returns.moic):
            expected = (
                f"A {returns.holding_period}-year buyout case returns {returns.moic:.2f}x MOIC "
                f"({returns.irr * 100:.1f}% IRR) at a {returns.exit_scenarios[1].multiple:.1f}x exit."
            )
        else:
            expected = "Buyout returns could not be computed from the available financials."
        return ExecutiveSummary(
            investment_thesis=thesis,
            expected_returns=expected,
            key_risks=(
                "Competitive pricing pressure, macro-driven demand swings and regulatory change; "
                "mitigated through covenant protection and multiple exit routes."
            ),
        )

    def _deal_overview(self) -> DealOverview:
        return DealOverview(
            type=self.inputs.deal_type,
            size=self.data.profile.market_cap * DEAL_SIZE_FRACTION,
            structure=f"{self.inputs.position} position with board seat",
            timeline="Close within two quarters, 12-18 month value creation plan",
            use_of_proceeds="Growth capital for international expansion and M&A",
        )

    def _company_analysis(self) -> CompanyAnalysis:
        if self.data.income_statements:
            latest = self.data.income_statements[-1]
            margin = ratio_or_nan(latest.ebitda, latest.revenue)
            performance = f"Revenue ${latest.revenue / 1e9:.1f}B, EBITDA margin {margin * 100:.1f}%"
        else:
            performance = "No historical financials available"
        return CompanyAnalysis(
            business_model="Recurring-revenue model with high customer retention",
            competitive_position="Top-three player with a defensible technology position",
            financial_performance=performance,
            management_team="Experienced leadership team with prior successful exits",
        )

    def _recommendation(self, action: Action, weighted_value: float) -> Recommendation:
        current = self.data.current_price
        if math.isfinite(weighted_value) and current > 0:
            reasoning = (
                f"Weighted value ${weighted_value:,.2f} vs current ${current:,.2f} "
                f"({(weighted_value / current - 1) * 100:+.1f}%)"
            )
        else:
            reasoning = "Valuation inconclusive; no finite method value"
        return Recommendation(
            action=action,
            reasoning=reasoning,
            conditions=[
                "Satisfactory confirmatory due diligence",
                "Management incentives aligned with the value creation plan",
                "Board representation",
                "Agreed milestone framework",
            ],
            next_steps=[
                "Launch formal due diligence",
                "Negotiate definitive terms",
                "Prepare legal documentation",
                "Arrange funding",
            ],
        )


INDUSTRY_ANALYSIS = IndustryAnalysis(
    market_size="Global addressable market of roughly $500B, growing about 12% a year",
    growth_rate="10-15% expected annual growth over the next five years",
    trends=[
        "Accelerating digital transformation",
        "AI/ML adoption",
        "Cloud-native architectures",
        "Rising ESG compliance requirements",
    ],
    competitive_dynamics="Concentrated market; the top five players hold about 60% share",
)

INVESTMENT_THESIS = InvestmentThesis(
    points=[
        "Market leadership with a durable moat",
        "High-visibility recurring revenue",
        "Strong cash flow generation",
        "Clear international expansion path",
        "Experienced management team",
    ],
    key_drivers=[
        "More efficient customer acquisition",
        "Sustained high retention",
        "Continued ARPU growth",
        "Operating leverage",
    ],
    catalysts=[
        "New product launches",
        "Strategic acquisitions",
        "International breakthroughs",
        "Industry consolidation",
    ],
)

RISKS = (
    Risk("Market Risk", "Intensifying competition drives pricing pressure", "medium", "high",
         "Sustained R&D investment and differentiated positioning"),
    Risk("Execution Risk", "International expansion underdelivers", "medium", "medium",
         "Phased rollout with local partners"),
    Risk("Financial Risk", "FX moves hit overseas revenue", "medium", "low",
         "Natural hedges and selective hedging"),
    Risk("Regulatory Risk", "Changes to data privacy rules", "low", "medium",
         "Dedicated compliance team and proactive engagement"),
    Risk("Macro Risk", "Recession cuts IT spending", "low", "high",
         "Diversified customer base and flexible cost structure"),
)
