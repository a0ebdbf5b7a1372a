"""Free cash flow analysis command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_percent, fmt_price


def _run_fcf(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    years: int = 5,
    growth: float = 0.08,
    target_margin: float = 0.20,
    json_out: bool = False,
):
    from ib_valuation.models.fcf import FCFInputs, FCFModel, average_fcf, fcf_per_share, fcf_yield

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        inputs = FCFInputs(projection_years=years, revenue_growth_rate=growth, target_fcf_margin=target_margin)
        result = FCFModel(data, inputs).analyze()
        avg = average_fcf(data)

    yield_ = fcf_yield(avg, data.profile.market_cap)
    per_share = fcf_per_share(avg, data.shares_outstanding)

    if json_out:
        emit_json({"model": "FCF", "analysis": result, "average_fcf": avg, "fcf_yield": yield_, "fcf_per_share": per_share})
        return

    hist = Table(title=f"Historical Free Cash Flow - {result.symbol}", expand=False)
    hist.add_column("Year", style="bold")
    for col in ("Revenue", "OCF", "CapEx", "FCF", "Margin", "Conversion"):
        hist.add_column(col, justify="right")
    for h in result.historical:
        hist.add_row(
            h.year,
            fmt_currency(h.revenue),
            fmt_currency(h.operating_cash_flow),
            fmt_currency(h.capex),
            fmt_currency(h.fcf),
            fmt_percent(h.fcf_margin),
            fmt_percent(h.fcf_conversion),
        )
    console.print(hist)

    m = result.metrics
    lines = [
        f"[bold]Avg FCF margin:[/bold] {fmt_percent(m.avg_fcf_margin)}",
        f"[bold]Avg FCF conversion:[/bold] {fmt_percent(m.avg_fcf_conversion)}",
        f"[bold]FCF CAGR:[/bold] {fmt_percent(m.fcf_growth_rate)}",
        f"[bold]FCF volatility:[/bold] {fmt_percent(m.fcf_volatility)}",
        "",
        f"[bold]Average FCF:[/bold] {fmt_currency(avg)}   [bold]Yield:[/bold] {fmt_percent(yield_)}   "
        f"[bold]Per share:[/bold] {fmt_price(per_share)}",
    ]
    console.print(Panel("\n".join(lines), title="FCF Quality", expand=False))

    proj = Table(title="FCF Projection", expand=False)
    proj.add_column("Year", style="bold")
    for col in ("Revenue", "FCF", "Margin"):
        proj.add_column(col, justify="right")
    for p in result.projections:
        proj.add_row(str(p.year), fmt_currency(p.revenue), fmt_currency(p.fcf), fmt_percent(p.fcf_margin))
    console.print(proj)

    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("fcf")
    def fcf_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        years: int = typer.Option(5, "--years", "-y", help="Projection years"),
        growth: float = typer.Option(0.08, "--growth", "-g", help="Revenue growth rate"),
        target_margin: float = typer.Option(0.20, "--target-margin", help="Target FCF margin"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Historical FCF quality and a margin-converging projection."""
        _run_fcf(symbol, data, seed, years, growth, target_margin, json_out)
