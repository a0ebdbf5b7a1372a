"""DCF valuation and DCF-driven sensitivity / scenario commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
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
from ib_valuation.utils.format import fmt_currency, fmt_delta, fmt_percent, fmt_price


def _run_dcf(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    wacc: Optional[float] = None,
    terminal_growth: float = 0.025,
    growth: Optional[str] = None,
    sensitivity: bool = False,
    json_out: bool = False,
):
    from ib_valuation.models.dcf import DCFInputs, DCFModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        overrides: dict = {"wacc": wacc, "terminal_growth": terminal_growth}
        rates = parse_floats(growth)
        if rates:
            overrides["revenue_growth"] = rates
        model = DCFModel(data, DCFInputs(**overrides))
        result = model.calculate()
        grid = None
        if sensitivity:
            w = result.assumptions.wacc
            g = result.assumptions.terminal_growth
            wacc_range = [w - 0.02, w - 0.01, w, w + 0.01, w + 0.02]
            growth_range = [g - 0.01, g - 0.005, g, g + 0.005, g + 0.01]
            grid = (wacc_range, growth_range, model.sensitivity_analysis(wacc_range, growth_range))

    if json_out:
        payload = {"model": "DCF", "valuation": result}
        if grid is not None:
            payload["sensitivity"] = {"wacc": grid[0], "terminal_growth": grid[1], "matrix": grid[2]}
        emit_json(payload)
        return

    a = result.assumptions
    lines = [
        f"[bold]WACC:[/bold] {fmt_percent(a.wacc)}   [bold]Terminal growth:[/bold] {fmt_percent(a.terminal_growth)}",
        f"[bold]Tax rate:[/bold] {fmt_percent(a.tax_rate)}   [bold]Beta:[/bold] {a.beta:.2f}",
    ]
    console.print(Panel("\n".join(lines), title=f"DCF Assumptions - {result.symbol}", expand=False))

    table = Table(title="Free Cash Flow Projection", expand=False)
    table.add_column("Year", style="bold")
    for col in ("Revenue", "EBITDA", "NOPAT", "CapEx", "FCF", "PV"):
        table.add_column(col, justify="right")
    for p in result.projections:
        table.add_row(
            f"Y{p.year}",
            fmt_currency(p.revenue),
            fmt_currency(p.ebitda),
            fmt_currency(p.nopat),
            fmt_currency(p.capex),
            fmt_currency(p.fcf),
            fmt_currency(p.present_value),
        )
    console.print(table)

    summary = [
        f"[bold]PV of projections:[/bold] {fmt_currency(result.pv_of_projections)}",
        f"[bold]Terminal value:[/bold] {fmt_currency(result.terminal_value)} (PV {fmt_currency(result.pv_of_terminal_value)})",
        f"[bold]Enterprise value:[/bold] {fmt_currency(result.enterprise_value)}",
        f"[bold]Net debt:[/bold] {fmt_currency(result.net_debt)}",
        f"[bold]Equity value:[/bold] {fmt_currency(result.equity_value)}",
        "",
        f"[bold]Implied price:[/bold] {fmt_price(result.implied_share_price)}   "
        f"[bold]Current:[/bold] {fmt_price(result.current_price)}   "
        f"[bold]Upside:[/bold] {fmt_delta(result.upside)}",
    ]
    console.print(Panel("\n".join(summary), title="Valuation", expand=False))

    if grid is not None:
        wacc_range, growth_range, matrix = grid
        sens = Table(title="Implied Price: WACC (rows) x Terminal Growth (cols)", expand=False)
        sens.add_column("WACC", style="bold")
        for g in growth_range:
            sens.add_column(fmt_percent(g), justify="right")
        for w, row in zip(wacc_range, matrix):
            sens.add_row(fmt_percent(w), *[fmt_price(v) for v in row])
        console.print(sens)

    warnings_footer(result.warnings)


def _run_sensitivity(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    json_out: bool = False,
):
    from ib_valuation.models.sensitivity import SensitivityModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        result = SensitivityModel(data).analyze()

    if json_out:
        emit_json({"model": "Sensitivity", "result": result})
        return

    console.print(
        Panel(
            f"[bold]Base valuation:[/bold] {fmt_price(result.base_valuation)}   "
            f"[bold]Current:[/bold] {fmt_price(result.current_price)}   "
            f"[bold]Probability-weighted:[/bold] {fmt_price(result.expected_value)}",
            title=f"Sensitivity - {result.symbol}",
            expand=False,
        )
    )

    for one in result.one_way:
        table = Table(title=f"One-way: {one.variable}", expand=False)
        table.add_column("Input", style="bold")
        table.add_column("Implied price", justify="right")
        for point in one.values:
            table.add_row(fmt_percent(point.input), fmt_price(point.output))
        console.print(table)

    tw = result.two_way
    grid = Table(title=f"Two-way: {tw.variable1} (rows) x {tw.variable2} (cols)", expand=False)
    grid.add_column(tw.variable1, style="bold")
    for c in tw.col_labels:
        grid.add_column(fmt_percent(c), justify="right")
    for r, row in zip(tw.row_labels, tw.matrix):
        grid.add_row(fmt_percent(r), *[fmt_price(v) for v in row])
    console.print(grid)

    scen = Table(title="Scenarios", expand=False)
    for col in ("Scenario", "Growth", "Margin", "WACC", "Terminal g", "Price", "Prob."):
        scen.add_column(col, justify="right" if col != "Scenario" else "left")
    for s in result.scenarios:
        a = s.assumptions
        scen.add_row(
            s.name,
            fmt_percent(a["revenue_growth"]),
            fmt_percent(a["margin"]),
            fmt_percent(a["wacc"]),
            fmt_percent(a["terminal_growth"]),
            fmt_price(s.valuation),
            fmt_percent(s.probability, 0),
        )
    console.print(scen)

    be = Table(title="Break-even vs Current Price", expand=False)
    for col in ("Variable", "Threshold", "Base", "Buffer"):
        be.add_column(col)
    for b in result.breakeven:
        be.add_row(b.variable, fmt_percent(b.threshold, 2), fmt_percent(b.current_value, 2), fmt_percent(b.buffer))
    console.print(be)

    tornado = Table(title="Tornado (largest impact first)", expand=False)
    for col in ("Variable", "Low", "High", "Impact"):
        tornado.add_column(col, justify="right" if col != "Variable" else "left")
    for bar in result.tornado:
        tornado.add_row(bar.variable, fmt_price(bar.low), fmt_price(bar.high), fmt_percent(bar.impact))
    console.print(tornado)

    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("dcf")
    def dcf_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        wacc: Optional[float] = typer.Option(None, "--wacc", "-w", help="WACC (default: CAPM from beta)"),
        terminal: float = typer.Option(0.025, "--terminal", "-t", help="Terminal growth rate"),
        growth: Optional[str] = typer.Option(None, "--growth", "-g", help="Revenue growth by year, e.g. 0.15,0.12,0.10"),
        sensitivity: bool = typer.Option(False, "--sensitivity", "-s", help="Add a WACC x terminal growth grid"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """
        Discounted cash flow valuation.

        Examples:
            evm dcf AAPL
            evm dcf AAPL --wacc 0.09 --growth 0.2,0.15,0.1 -s
        """
        _run_dcf(symbol, data, seed, wacc, terminal, growth, sensitivity, json_out)

    @app.command("sensitivity")
    def sensitivity_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """One-way, two-way, scenario, break-even and tornado analysis on the DCF."""
        _run_sensitivity(symbol, data, seed, json_out)
