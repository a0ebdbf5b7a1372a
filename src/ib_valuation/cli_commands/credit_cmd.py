"""Credit analysis command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import MISSING, fmt_currency, fmt_multiple, fmt_percent

_RATING_STYLE = {"investment": "green", "speculative": "yellow", "high-yield": "red"}


def _run_credit(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    target_leverage: float = 3.0,
    min_coverage: float = 3.0,
    interest_rate: float = 0.05,
    json_out: bool = False,
):
    from ib_valuation.models.credit import CreditInputs, CreditModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        inputs = CreditInputs(
            target_leverage=target_leverage,
            min_interest_coverage=min_coverage,
            interest_rate=interest_rate,
        )
        result = CreditModel(data, inputs).analyze()

    if json_out:
        emit_json({"model": "Credit", "result": result})
        return

    table = Table(title=f"Leverage & Coverage - {result.symbol}", expand=False)
    table.add_column("Year", style="bold")
    for col in ("EBITDA", "Debt", "Interest", "Debt/EBITDA", "EBITDA/Int"):
        table.add_column(col, justify="right")
    for h in result.historical:
        table.add_row(
            h.year,
            fmt_currency(h.ebitda),
            fmt_currency(h.total_debt),
            fmt_currency(h.interest_expense),
            fmt_multiple(h.leverage_ratio),
            fmt_multiple(h.interest_coverage),
        )
    for p in result.projections:
        table.add_row(
            f"{p.year}E",
            fmt_currency(p.ebitda),
            fmt_currency(p.total_debt),
            fmt_currency(p.interest_expense),
            fmt_multiple(p.leverage_ratio),
            fmt_multiple(p.interest_coverage),
        )
    console.print(table)

    cap, cov, rec = result.debt_capacity, result.covenants, result.recommendation
    style = _RATING_STYLE.get(rec.rating, "white")

    def covenant_line(label: str, test) -> str:
        s = "green" if test.status == "pass" else "red"
        return (
            f"[bold]{label}:[/bold] {fmt_multiple(test.current)} vs {fmt_multiple(test.covenant)} "
            f"(cushion {fmt_multiple(test.cushion)}) [{s}]{test.status.upper()}[/{s}]"
        )

    tier = result.current_pricing
    lines = [
        f"[bold]Current debt:[/bold] {fmt_currency(cap.current_debt)}   [bold]Capacity:[/bold] {fmt_currency(cap.max_debt)}",
        f"[bold]Additional borrowing:[/bold] {fmt_currency(cap.additional_borrowing)}",
        "",
        covenant_line("Max leverage", cov.leverage),
        covenant_line("Min coverage", cov.interest_coverage),
        "",
        f"[bold]Pricing:[/bold] {tier.spread} ({fmt_percent(tier.all_in_rate, 2)} all-in)" if tier else f"[bold]Pricing:[/bold] {MISSING}",
        f"[bold]Rating:[/bold] [{style}]{rec.rating}[/{style}]",
        f"[bold]Suggested structure:[/bold] {rec.suggested_structure}",
    ]
    console.print(Panel("\n".join(lines), title="Debt Capacity & Covenants", expand=False))

    ladder = Table(title="Maturity Ladder", expand=False)
    for col in ("Maturity", "Instrument", "Amount"):
        ladder.add_column(col, justify="right" if col == "Amount" else "left")
    for m in result.maturities:
        ladder.add_row(m.maturity, m.instrument, fmt_currency(m.amount))
    console.print(ladder)
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("credit")
    def credit_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        target_leverage: float = typer.Option(3.0, "--target-leverage", help="Max Debt / EBITDA"),
        min_coverage: float = typer.Option(3.0, "--min-coverage", help="Min EBITDA / interest"),
        interest_rate: float = typer.Option(0.05, "--rate", help="Assumed cost of debt"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Leverage, coverage, debt capacity, covenants and pricing."""
        _run_credit(symbol, data, seed, target_leverage, min_coverage, interest_rate, json_out)
