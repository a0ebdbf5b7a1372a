"""Leveraged buyout command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_multiple, fmt_percent, fmt_price


def _run_lbo(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    premium: float = 0.30,
    debt_ratio: float = 0.60,
    interest_rate: float = 0.08,
    exit_multiple: float = 10,
    years: int = 5,
    json_out: bool = False,
):
    from ib_valuation.models.lbo import LBOInputs, LBOModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        inputs = LBOInputs(
            premium=premium,
            debt_ratio=debt_ratio,
            equity_ratio=1 - debt_ratio,
            interest_rate=interest_rate,
            exit_multiple=exit_multiple,
            holding_period=years,
        )
        result = LBOModel(data, inputs).calculate()

    if json_out:
        emit_json({"model": "LBO", "result": result})
        return

    e, d = result.entry, result.debt
    entry = [
        f"[bold]Purchase price:[/bold] {fmt_price(e.purchase_price)} ({fmt_percent(e.premium)} premium)",
        f"[bold]Enterprise value:[/bold] {fmt_currency(e.enterprise_value)}",
        f"[bold]Debt:[/bold] {fmt_currency(e.debt_financing)}  "
        f"(senior {fmt_currency(d.senior_debt)}, mezz {fmt_currency(d.mezzanine_debt)} @ {fmt_percent(d.interest_rate)})",
        f"[bold]Sponsor equity:[/bold] {fmt_currency(e.equity_contribution)}",
    ]
    console.print(Panel("\n".join(entry), title=f"LBO Entry - {result.symbol}", expand=False))

    table = Table(title="Cash Sweep", expand=False)
    table.add_column("Year", style="bold")
    for col in ("Revenue", "EBITDA", "Interest", "FCF", "Repayment", "Ending debt"):
        table.add_column(col, justify="right")
    for p in result.projections:
        table.add_row(
            f"Y{p.year}",
            fmt_currency(p.revenue),
            fmt_currency(p.ebitda),
            fmt_currency(p.interest),
            fmt_currency(p.free_cash_flow),
            fmt_currency(p.debt_repayment),
            fmt_currency(p.ending_debt),
        )
    console.print(table)

    x, r = result.exit, result.returns
    style = "green" if r.irr >= 0.20 else "yellow" if r.irr >= 0.15 else "red"
    returns = [
        f"[bold]Exit EV:[/bold] {fmt_currency(x.exit_ev)} ({fmt_multiple(x.exit_multiple)} EBITDA)",
        f"[bold]Exit equity:[/bold] {fmt_currency(x.equity_value)}",
        "",
        f"[bold]MOIC:[/bold] {fmt_multiple(r.moic, 2)}   [bold]IRR:[/bold] [{style}]{fmt_percent(r.irr)}[/{style}]",
        f"[bold]Gross profit:[/bold] {fmt_currency(r.gross_profit)}",
    ]
    console.print(Panel("\n".join(returns), title="Exit & Returns", expand=False))
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("lbo")
    def lbo_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        premium: float = typer.Option(0.30, "--premium", "-p", help="Take-private premium"),
        debt_ratio: float = typer.Option(0.60, "--debt", help="Debt share of entry EV"),
        interest_rate: float = typer.Option(0.08, "--rate", help="Interest rate on acquisition debt"),
        exit_multiple: float = typer.Option(10, "--exit-multiple", "-m", help="Exit EV/EBITDA"),
        years: int = typer.Option(5, "--years", "-y", help="Holding period"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Leveraged buyout with a cash-sweep hold period."""
        _run_lbo(symbol, data, seed, premium, debt_ratio, interest_rate, exit_multiple, years, json_out)
