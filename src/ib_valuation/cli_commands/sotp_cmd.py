"""Sum-of-the-parts command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_multiple, fmt_percent, fmt_price


def _load_segments(path: Path):
    """A JSON list of segment objects: name, revenue, ebitda, and optionally methodology / multiple."""
    from ib_valuation.models.sotp import BusinessSegment

    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise typer.BadParameter(f"{path} must hold a JSON list of segments")
    return tuple(BusinessSegment.model_validate(s) for s in raw)


def _run_sotp(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    segments_path: Optional[Path] = None,
    overhead: float = 0.02,
    allocation: str = "ebitda",
    json_out: bool = False,
):
    from ib_valuation.models.sotp import SOTPInputs, SOTPModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        segments = _load_segments(segments_path) if segments_path is not None else None
        inputs = SOTPInputs(segments=segments, corporate_overhead=overhead, net_debt_allocation=allocation)
        result = SOTPModel(data, inputs).analyze()

    if json_out:
        emit_json({"model": "SOTP", "result": result})
        return

    table = Table(title=f"Segment Values - {result.symbol}", expand=False)
    table.add_column("Segment", style="bold")
    for col in ("Revenue", "EBITDA", "Method", "Multiple", "Value", "% of EBITDA", "Net debt", "Equity"):
        table.add_column(col, justify="right")
    for s in result.segments:
        table.add_row(
            s.name,
            fmt_currency(s.revenue),
            fmt_currency(s.ebitda),
            s.methodology,
            fmt_multiple(s.multiple),
            fmt_currency(s.value),
            fmt_percent(s.percent_of_total),
            fmt_currency(s.allocated_net_debt),
            fmt_currency(s.equity_value),
        )
    console.print(table)

    a = result.adjustments
    lines = [
        f"[bold]Gross segment value:[/bold] {fmt_currency(result.gross_value)}",
        f"[bold]Corporate overhead:[/bold] {fmt_currency(a.corporate_overhead_value)} "
        f"({fmt_currency(a.corporate_overhead)} / yr capitalized)",
        f"[bold]Enterprise value:[/bold] {fmt_currency(result.enterprise_value)}",
        f"[bold]Net debt:[/bold] {fmt_currency(a.net_debt)}",
        f"[bold]Equity value:[/bold] {fmt_currency(result.equity_value)}",
        f"[bold]Per share:[/bold] {fmt_price(result.per_share)}",
    ]
    console.print(Panel("\n".join(lines), title="Sum of the Parts", expand=False))

    scen = Table(title="Scenarios", expand=False)
    for col in ("Scenario", "Equity value", "Per share"):
        scen.add_column(col, justify="left" if col == "Scenario" else "right")
    for s in result.scenarios:
        scen.add_row(s.name.capitalize(), fmt_currency(s.equity_value), fmt_price(s.per_share))
    console.print(scen)
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("sotp")
    def sotp_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        segments: Optional[Path] = typer.Option(None, "--segments", help="Segment JSON (default: derived split)"),
        overhead: float = typer.Option(0.02, "--overhead", help="Corporate overhead as a fraction of EBITDA"),
        allocation: str = typer.Option("ebitda", "--allocation", help="Net debt split: proportional|revenue|ebitda|equal"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Sum-of-the-parts valuation by business segment."""
        _run_sotp(symbol, data, seed, segments, overhead, allocation, json_out)
