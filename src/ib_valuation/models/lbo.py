"""
LBO Model

Take-private at a premium, 60/40 debt/equity funding, senior/mezzanine debt
tranches, a cash-sweep hold period, and exit at an EV/EBITDA multiple.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ib_valuation.data.models import CompanyData
from ib_valuation.models.stats import cagr, non_finite, ratio_or_nan

logger = logging.getLogger(__name__)

DA_PERCENT = 0.05
CAPEX_PERCENT = 0.05
NWC_PERCENT = 0.02


class LBOInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    purchase_price: Optional[float] = None  # per share; None = current * (1 + premium)
    premium: float = 0.30
    debt_ratio: float = 0.60
    equity_ratio: float = 0.40
    senior_debt_share: float = Field(0.70, ge=0, le=1)  # remainder is mezzanine
    interest_rate: float = 0.08
    exit_multiple: float = 10
    holding_period: int = Field(5, ge=1)
    revenue_growth: float = 0.08
    ebitda_margin: float = 0.25
    tax_rate: float = 0.21


@dataclass(frozen=True)
class LBOEntry:
    purchase_price: float
    premium: float
    enterprise_value: float
    equity_value: float
    debt_financing: float
    equity_contribution: float


@dataclass(frozen=True)
class LBODebt:
    senior_debt: float
    mezzanine_debt: float
    total_debt: float
    interest_rate: float
    annual_interest: float


@dataclass(frozen=True)
class LBOProjection:
    year: int
    revenue: float
    ebitda: float
    ebit: float
    interest: float
    net_income: float
    free_cash_flow: float
    debt_repayment: float
    ending_debt: float


@dataclass(frozen=True)
class LBOExit:
    exit_year: int
    exit_ebitda: float
    exit_multiple: float
    exit_ev: float
    net_debt: float
    equity_value: float


@dataclass(frozen=True)
class LBOReturns:
    irr: float  # MOIC ** (1 / years) - 1, single terminal cash flow
    moic: float
    gross_profit: float


@dataclass
class LBOResult:
    symbol: str
    entry: LBOEntry
    debt: LBODebt
    projections: list[LBOProjection]
    exit: LBOExit
    returns: LBOReturns
    warnings: list[str] = field(default_factory=list)


def sweep_debt(debt: float, free_cash_flow: float) -> tuple[float, float]:
    """
    Apply one year of cash sweep.

    Returns (repayment, ending_debt). Negative FCF repays nothing and
    debt never goes below zero.
    """
    repayment = max(0.0, min(free_cash_flow, debt))
    return repayment, debt - repayment


class LBOModel:
    def __init__(self, data: CompanyData, inputs: LBOInputs | None = None):
        self.data = data
        inputs = inputs or LBOInputs()
        if inputs.purchase_price is None:
            inputs = inputs.model_copy(
                update={"purchase_price": data.current_price * (1 + inputs.premium)}
            )
        self.inputs = inputs

    def calculate(self) -> LBOResult:
        entry = self._entry()
        debt = self._debt_structure(entry)
        projections = self._project(debt)
        exit_ = self._exit(projections[-1])
        returns = self._returns(entry, exit_)
        logger.debug("LBO %s: moic=%.3f irr=%.4f", self.data.symbol, returns.moic, returns.irr)

        return LBOResult(
            symbol=self.data.symbol,
            entry=entry,
            debt=debt,
            projections=projections,
            exit=exit_,
            returns=returns,
            warnings=non_finite(moic=returns.moic, irr=returns.irr),
        )

    def _entry(self) -> LBOEntry:
        price = self.inputs.purchase_price
        equity_value = price * self.data.shares_outstanding
        enterprise_value = equity_value + self.data.net_debt()
        return LBOEntry(
            purchase_price=price,
            premium=self.inputs.premium,
            enterprise_value=enterprise_value,
            equity_value=equity_value,
            debt_financing=enterprise_value * self.inputs.debt_ratio,
            equity_contribution=enterprise_value * self.inputs.equity_ratio,
        )

    def _debt_structure(self, entry: LBOEntry) -> LBODebt:
        senior = entry.debt_financing * self.inputs.senior_debt_share
        mezzanine = entry.debt_financing - senior
        total = senior + mezzanine
        return LBODebt(
            senior_debt=senior,
            mezzanine_debt=mezzanine,
            total_debt=total,
            interest_rate=self.inputs.interest_rate,
            annual_interest=total * self.inputs.interest_rate,
        )

    def _project(self, debt: LBODebt) -> list[LBOProjection]:
        p = self.inputs
        revenue = self.data.latest_income().revenue
        outstanding = debt.total_debt
        out: list[LBOProjection] = []

        for year in range(1, p.holding_period + 1):
            revenue *= 1 + p.revenue_growth
            ebitda = revenue * p.ebitda_margin
            d_and_a = revenue * DA_PERCENT
            ebit = ebitda - d_and_a
            interest = outstanding * p.interest_rate  # on beginning-of-year balance
            net_income = (ebit - interest) * (1 - p.tax_rate)
            capex = revenue * CAPEX_PERCENT
            nwc_change = revenue * NWC_PERCENT
            fcf = net_income + d_and_a - capex - nwc_change

            repayment, outstanding = sweep_debt(outstanding, fcf)
            out.append(
                LBOProjection(
                    year=year,
                    revenue=revenue,
                    ebitda=ebitda,
                    ebit=ebit,
                    interest=interest,
                    net_income=net_income,
                    free_cash_flow=fcf,
                    debt_repayment=repayment,
                    ending_debt=outstanding,
                )
            )
        return out

    def _exit(self, final: LBOProjection) -> LBOExit:
        exit_ev = final.ebitda * self.inputs.exit_multiple
        return LBOExit(
            exit_year=self.inputs.holding_period,
            exit_ebitda=final.ebitda,
            exit_multiple=self.inputs.exit_multiple,
            exit_ev=exit_ev,
            net_debt=final.ending_debt,
            equity_value=exit_ev - final.ending_debt,
        )

    def _returns(self, entry: LBOEntry, exit_: LBOExit) -> LBOReturns:
        invested = entry.equity_contribution
        moic = ratio_or_nan(exit_.equity_value, invested)
        # Single terminal cash flow, so IRR is the annualized MOIC.
        irr = cagr(1.0, moic, self.inputs.holding_period)
        return LBOReturns(irr=irr, moic=moic, gross_profit=exit_.equity_value - invested)
