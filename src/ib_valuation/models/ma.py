"""
M&A Accretion / Dilution

Deal consideration and funding mix, pro forma combined earnings and EPS
against the acquirer standalone, synergy impact, leverage before and after
the deal, and the synergies / premium at which the deal breaks even.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

DEFAULT_COST_SYNERGY_RATE = 0.02  # of total consideration


class MAInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_price: Optional[float] = None  # None = target's current price
    premium: float = 0.30
    cash_percent: float = 0.40
    stock_percent: float = 0.40
    debt_percent: float = 0.20
    interest_rate: float = 0.06  # on new acquisition debt
    tax_rate: float = 0.21
    cost_synergies: Optional[float] = None  # None = 2% of consideration
    revenue_synergies: float = 0.0

    @model_validator(mode="after")
    def _mix_sums_to_one(self) -> "MAInputs":
        total = self.cash_percent + self.stock_percent + self.debt_percent
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"cash/stock/debt mix must sum to 1.0, got {total:.4f}")
        return self


@dataclass(frozen=True)
class DealTerms:
    target_price: float
    premium: float
    offer_price: float
    total_consideration: float
    cash_component: float
    stock_component: float
    debt_component: float
    shares_issued: float


@dataclass(frozen=True)
class Standalone:
    net_income: float
    shares_outstanding: float
    eps: float


@dataclass(frozen=True)
class ProForma:
    revenue: float
    ebitda: float
    ebit: float
    additional_interest: float
    pre_tax_income: float
    net_income: float
    shares_outstanding: float
    eps: float


@dataclass(frozen=True)
class AccretionDilution:
    eps_impact: float
    percent_change: float
    is_accretive: bool  # before synergies


@dataclass(frozen=True)
class Synergies:
    cost_synergies: float
    revenue_synergies: float
    total_pretax: float
    after_tax: float
    eps_accretion: float
    synergy_adjusted_eps: float
    synergy_adjusted_percent_change: float


@dataclass(frozen=True)
class DealCreditMetrics:
    pre_deal_ebitda: float
    post_deal_ebitda: float
    leverage_pre: float
    leverage_post: float


@dataclass(frozen=True)
class BreakEven:
    required_synergies: float  # pre-tax, to close the EPS gap
    max_premium: float | None  # None = the funding mix never dilutes


@dataclass
class MAResult:
    acquirer: str
    target: str
    assumptions: MAInputs
    deal: DealTerms
    acquirer_standalone: Standalone
    pro_forma: ProForma
    accretion_dilution: AccretionDilution
    synergies: Synergies
    credit_metrics: DealCreditMetrics
    break_even: BreakEven
    warnings: list[str] = field(default_factory=list)


class MAModel:
    def __init__(self, acquirer: CompanyData, target: CompanyData, inputs: MAInputs | None = None):
        self.acquirer = acquirer
        self.target = target
        inputs = inputs or MAInputs()
        target_price = inputs.target_price if inputs.target_price is not None else target.current_price
        consideration = target_price * (1 + inputs.premium) * target.shares_outstanding
        cost_synergies = inputs.cost_synergies
        if cost_synergies is None:
            cost_synergies = consideration * DEFAULT_COST_SYNERGY_RATE
        self.inputs = inputs.model_copy(update={"target_price": target_price, "cost_synergies": cost_synergies})

    def analyze(self) -> MAResult:
        deal = self._deal()
        standalone = self._standalone()
        pro_forma = self._pro_forma(deal)
        eps_impact = pro_forma.eps - standalone.eps
        accretion = AccretionDilution(
            eps_impact=eps_impact,
            percent_change=ratio_or_nan(eps_impact, standalone.eps),
            is_accretive=eps_impact > 0,
        )
        synergies = self._synergies(standalone, pro_forma)
        logger.debug(
            "M&A %s/%s: consideration %.0f, EPS impact %.4f",
            self.acquirer.symbol, self.target.symbol, deal.total_consideration, eps_impact,
        )

        return MAResult(
            acquirer=self.acquirer.symbol,
            target=self.target.symbol,
            assumptions=self.inputs,
            deal=deal,
            acquirer_standalone=standalone,
            pro_forma=pro_forma,
            accretion_dilution=accretion,
            synergies=synergies,
            credit_metrics=self._credit_metrics(deal),
            break_even=self._break_even(deal, standalone, pro_forma),
            warnings=non_finite(
                standalone_eps=standalone.eps,
                pro_forma_eps=pro_forma.eps,
                percent_change=accretion.percent_change,
            ),
        )

    def _deal(self) -> DealTerms:
        p = self.inputs
        offer_price = p.target_price * (1 + p.premium)
        total = offer_price * self.target.shares_outstanding
        stock = total * p.stock_percent
        return DealTerms(
            target_price=p.target_price,
            premium=p.premium,
            offer_price=offer_price,
            total_consideration=total,
            cash_component=total * p.cash_percent,
            stock_component=stock,
            debt_component=total * p.debt_percent,
            shares_issued=ratio_or_nan(stock, self.acquirer.current_price) if stock else 0.0,
        )

    def _standalone(self) -> Standalone:
        net_income = self.acquirer.latest_income().net_income
        shares = self.acquirer.shares_outstanding
        return Standalone(net_income=net_income, shares_outstanding=shares, eps=ratio_or_nan(net_income, shares))

    def _pro_forma(self, deal: DealTerms) -> ProForma:
        t = self.inputs.tax_rate
        a = self.acquirer.latest_income()
        b = self.target.latest_income()
        additional_interest = deal.debt_component * self.inputs.interest_rate
        # Gross both earnings back up to pre-tax, then charge the new interest.
        pre_tax = (a.net_income + b.net_income) / (1 - t) - additional_interest
        net_income = pre_tax * (1 - t)
        shares = self.acquirer.shares_outstanding + deal.shares_issued
        return ProForma(
            revenue=a.revenue + b.revenue,
            ebitda=a.ebitda + b.ebitda,
            ebit=a.operating_income + b.operating_income,
            additional_interest=additional_interest,
            pre_tax_income=pre_tax,
            net_income=net_income,
            shares_outstanding=shares,
            eps=ratio_or_nan(net_income, shares),
        )

    def _synergies(self, standalone: Standalone, pro_forma: ProForma) -> Synergies:
        p = self.inputs
        total = p.cost_synergies + p.revenue_synergies
        after_tax = total * (1 - p.tax_rate)
        uplift = ratio_or_nan(after_tax, pro_forma.shares_outstanding)
        adjusted = pro_forma.eps + uplift
        return Synergies(
            cost_synergies=p.cost_synergies,
            revenue_synergies=p.revenue_synergies,
            total_pretax=total,
            after_tax=after_tax,
            eps_accretion=uplift,
            synergy_adjusted_eps=adjusted,
            synergy_adjusted_percent_change=ratio_or_nan(adjusted - standalone.eps, standalone.eps),
        )

    def _credit_metrics(self, deal: DealTerms) -> DealCreditMetrics:
        pre_ebitda = self.acquirer.latest_income().ebitda
        post_ebitda = pre_ebitda + self.target.latest_income().ebitda
        acquirer_debt = self.acquirer.latest_balance().total_debt
        target_debt = self.target.latest_balance().total_debt  # assumed with the target
        return DealCreditMetrics(
            pre_deal_ebitda=pre_ebitda,
            post_deal_ebitda=post_ebitda,
            leverage_pre=ratio_or_nan(acquirer_debt, pre_ebitda),
            leverage_post=ratio_or_nan(acquirer_debt + target_debt + deal.debt_component, post_ebitda),
        )

    def _break_even(self, deal: DealTerms, standalone: Standalone, pro_forma: ProForma) -> BreakEven:
        p = self.inputs
        gap = standalone.eps - pro_forma.eps
        required = gap * pro_forma.shares_outstanding / (1 - p.tax_rate) if gap > 0 else 0.0

        # Pro forma EPS >= standalone EPS  <=>  NI_target >= C * cost_per_dollar,
        # where each dollar of consideration costs after-tax interest on the debt
        # share plus standalone EPS on the shares issued for the stock share.
        cost_per_dollar = (1 - p.tax_rate) * p.interest_rate * p.debt_percent
        if p.stock_percent:
            cost_per_dollar += ratio_or_nan(standalone.eps * p.stock_percent, self.acquirer.current_price)
        if cost_per_dollar <= 0 or not math.isfinite(cost_per_dollar):
            return BreakEven(required_synergies=required, max_premium=None)

        max_consideration = self.target.latest_income().net_income / cost_per_dollar
        unaffected = p.target_price * self.target.shares_outstanding
        max_premium = ratio_or_nan(max_consideration, unaffected) - 1
        return BreakEven(required_synergies=required, max_premium=max(0.0, max_premium))
