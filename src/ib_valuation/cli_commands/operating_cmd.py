"""Operating model command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_multiple, fmt_percent


def _run_operating(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    months: int = 36,
    customers: Optional[int] = None,
    growth: float = 0.05,
    cac: float = 100,
    arpu: float = 100,
    churn: float = 0.02,
    monthly: bool = False,
    json_out: bool = False,
):
    from ib_valuation.models.operating import OperatingInputs, OperatingModel

    with reported_errors():
        data = load_snapshot(symbol, data_path, make_rng(seed))
        inputs = OperatingInputs(
            projection_months=months,
            starting_customers=customers,
            monthly_growth=growth,
            cac=cac,
            arpu=arpu,
            churn_rate=churn,
        )
        result = OperatingModel(data, inputs).analyze()

    if json_out:
        emit_json({"model": "Operating", "result": result})
        return

    u = result.unit_economics
    recover = f"{u.months_to_recover} months" if u.months_to_recover is not None else "never"
    lines = [
        f"[bold]CAC:[/bold] {fmt_currency(u.cac, 0)}   [bold]ARPU:[/bold] {fmt_currency(u.arpu, 0)}/mo   "
        f"[bold]Churn:[/bold] {fmt_percent(u.churn_rate)}/mo",
        f"[bold]LTV:[/bold] {fmt_currency(u.ltv, 0)}   [bold]LTV/CAC:[/bold] {fmt_multiple(u.ltv_cac_ratio)}",
        f"[bold]CAC payback:[/bold] {u.payback_period:.1f} months ({recover})",
    ]
    console.print(Panel("\n".join(lines), title=f"Unit Economics - {result.symbol}", expand=False))

    if monthly:
        table = Table(title="Monthly Build", expand=False)
        table.add_column("Month", style="bold")
        for col in ("Customers", "New", "Churned", "Revenue", "EBITDA", "Cum. cash"):
            table.add_column(col, justify="right")
        for m in result.monthly:
            table.add_row(
                str(m.month),
                f"{m.customers:,}",
                f"{m.new_customers:,}",
                f"{m.churned_customers:,}",
                fmt_currency(m.revenue),
                fmt_currency(m.ebitda),
                fmt_currency(m.cumulative_cash_flow),
            )
        console.print(table)

    q = Table(title="Quarterly", expand=False)
    q.add_column("Quarter", style="bold")
    for col in ("Revenue", "Gross profit", "OpEx", "EBITDA", "Margin"):
        q.add_column(col, justify="right")
    for r in result.quarterly:
        q.add_row(
            f"Q{r.quarter}",
            fmt_currency(r.revenue),
            fmt_currency(r.gross_profit),
            fmt_currency(r.operating_expenses),
            fmt_currency(r.ebitda),
            fmt_percent(r.margin),
        )
    console.print(q)

    a = Table(title="Annual", expand=False)
    a.add_column("Year", style="bold")
    for col in ("Revenue", "EBITDA", "Net income", "Margin"):
        a.add_column(col, justify="right")
    for r in result.annual:
        a.add_row(f"Y{r.year}", fmt_currency(r.revenue), fmt_currency(r.ebitda), fmt_currency(r.net_income), fmt_percent(r.margin))
    console.print(a)

    b = result.breakeven
    if b.achieved:
        console.print(
            f"[green]EBITDA breakeven in month {b.month}[/green] at {b.customers:,} customers "
            f"({fmt_currency(b.monthly_revenue)}/mo)"
        )
    else:
        console.print(f"[red]No EBITDA breakeven within {len(result.monthly)} months[/red] ({b.customers:,} customers at end)")

    scen = Table(title="Scenarios", expand=False)
    for col in ("Scenario", "Revenue", "Cum. EBITDA", "Customers"):
        scen.add_column(col, justify="left" if col == "Scenario" else "right")
    for s in result.scenarios:
        scen.add_row(s.name, fmt_currency(s.revenue), fmt_currency(s.ebitda), f"{s.customers:,}")
    console.print(scen)
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("operating")
    def operating_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        months: int = typer.Option(36, "--months", "-m", help="Projection horizon in months"),
        customers: Optional[int] = typer.Option(None, "--customers", help="Starting customers (default: revenue / 1000)"),
        growth: float = typer.Option(0.05, "--growth", "-g", help="Monthly new-customer rate"),
        cac: float = typer.Option(100, "--cac", help="Customer acquisition cost"),
        arpu: float = typer.Option(100, "--arpu", help="Monthly revenue per customer"),
        churn: float = typer.Option(0.02, "--churn", help="Monthly churn rate"),
        monthly: bool = typer.Option(False, "--monthly", help="Print the month-by-month build"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Customer-driven operating model: unit economics, rollups and breakeven."""
        _run_operating(symbol, data, seed, months, customers, growth, cac, arpu, churn, monthly, json_out)
