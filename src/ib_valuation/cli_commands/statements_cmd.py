"""Integrated three-statement projection command."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Sequence

import typer
from rich.table import Table

from ib_valuation.cli_commands.common import (
    console,
    emit_json,
    load_snapshot,
    make_rng,
    parse_floats,
    reported_errors,
    warnings_footer,
)
from ib_valuation.utils.format import fmt_currency, fmt_percent


def _statement_table(title: str, periods: Sequence, rows: list[tuple[str, Callable]]) -> Table:
    """Line items down, projection years across."""
    table = Table(title=title, expand=False)
    table.add_column("", style="bold")
    for p in periods:
        table.add_column(f"Y{p.year}", justify="right")
    for label, getter in rows:
        table.add_row(label, *[getter(p) for p in periods])
    return table


def _run_three_statement(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    years: int = 5,
    growth: Optional[str] = None,
    gross_margin: float = 0.40,
    operating_margin: float = 0.20,
    debt_issuance: float = 0.0,
    json_out: bool = False,
):
    from ib_valuation.models.three_statement import ThreeStatementInputs, ThreeStatementModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        overrides: dict = {
            "projection_years": years,
            "gross_margin": gross_margin,
            "operating_margin": operating_margin,
            "annual_debt_issuance": debt_issuance,
        }
        rates = parse_floats(growth)
        if rates:
            overrides["revenue_growth"] = rates
        result = ThreeStatementModel(data, ThreeStatementInputs(**overrides)).project()

    if json_out:
        emit_json({"model": "ThreeStatement", "result": result})
        return

    c = fmt_currency
    console.print(
        _statement_table(
            f"Income Statement - {result.symbol}",
            result.income_statements,
            [
                ("Revenue", lambda p: c(p.revenue)),
                ("COGS", lambda p: c(p.cost_of_goods_sold)),
                ("Gross profit", lambda p: c(p.gross_profit)),
                ("OpEx", lambda p: c(p.operating_expenses)),
                ("Operating income", lambda p: c(p.operating_income)),
                ("Interest", lambda p: c(p.interest_expense)),
                ("Tax", lambda p: c(p.tax)),
                ("Net income", lambda p: c(p.net_income)),
                ("Net margin", lambda p: fmt_percent(p.net_margin)),
            ],
        )
    )
    console.print(
        _statement_table(
            "Balance Sheet",
            result.balance_sheets,
            [
                ("Cash", lambda p: c(p.cash)),
                ("Receivables", lambda p: c(p.accounts_receivable)),
                ("Inventory", lambda p: c(p.inventory)),
                ("PP&E", lambda p: c(p.ppe)),
                ("Total assets", lambda p: c(p.total_assets)),
                ("Payables", lambda p: c(p.accounts_payable)),
                ("Debt", lambda p: c(p.total_debt)),
                ("Total liabilities", lambda p: c(p.total_liabilities)),
                ("Equity", lambda p: c(p.equity)),
            ],
        )
    )
    console.print(
        _statement_table(
            "Cash Flow Statement",
            result.cash_flow_statements,
            [
                ("Net income", lambda p: c(p.net_income)),
                ("D&A", lambda p: c(p.depreciation)),
                ("Change in NWC", lambda p: c(p.change_in_working_capital)),
                ("Operating CF", lambda p: c(p.operating_cash_flow)),
                ("CapEx", lambda p: c(p.capex)),
                ("Debt issuance", lambda p: c(p.debt_issuance)),
                ("Net change", lambda p: c(p.net_change_in_cash)),
                ("Ending cash", lambda p: c(p.ending_cash)),
            ],
        )
    )
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    def three_statement_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        years: int = typer.Option(5, "--years", "-y", help="Projection years"),
        growth: Optional[str] = typer.Option(None, "--growth", "-g", help="Revenue growth by year, e.g. 0.15,0.12"),
        gross_margin: float = typer.Option(0.40, "--gross-margin", help="Gross margin"),
        operating_margin: float = typer.Option(0.20, "--operating-margin", help="Operating margin"),
        debt_issuance: float = typer.Option(0.0, "--debt-issuance", help="Annual debt issued (negative = repaid)"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Linked income statement, balance sheet and cash flow projection."""
        _run_three_statement(symbol, data, seed, years, growth, gross_margin, operating_margin, debt_issuance, json_out)

    app.command("three-statement")(three_statement_cmd)
    app.command("3s", hidden=True)(three_statement_cmd)
