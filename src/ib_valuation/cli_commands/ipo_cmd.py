"""IPO pricing command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_multiple, fmt_percent, fmt_price


def _run_ipo(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    price_low: Optional[float] = None,
    price_high: Optional[float] = None,
    primary: Optional[float] = None,
    secondary: Optional[float] = None,
    greenshoe: float = 0.15,
    json_out: bool = False,
):
    from ib_valuation.models.ipo import IPOInputs, IPOModel

    with reported_errors():
        rng = make_rng(seed)
        data = load_snapshot(symbol, data_path, rng)
        inputs = IPOInputs(
            primary_shares=primary,
            secondary_shares=secondary,
            price_low=price_low,
            price_high=price_high,
            greenshoe=greenshoe,
        )
        result = IPOModel(data, inputs, rng=rng).analyze()

    if json_out:
        emit_json({"model": "IPO", "result": result})
        return

    o = result.offering
    table = Table(title=f"IPO Offering - {result.symbol}", expand=False)
    table.add_column("", style="bold")
    for col in ("Low", "Mid", "High"):
        table.add_column(col, justify="right")
    table.add_row("Offer price", fmt_price(o.price.low), fmt_price(o.price.mid), fmt_price(o.price.high))
    for label, pr in (
        ("Primary proceeds", o.primary_proceeds),
        ("Secondary proceeds", o.secondary_proceeds),
        ("Total proceeds", o.total_proceeds),
        ("Greenshoe proceeds", o.greenshoe_proceeds),
        ("Pre-money", result.pre_money.valuation),
        ("Post-money", result.post_money.valuation),
    ):
        table.add_row(label, fmt_currency(pr.low), fmt_currency(pr.mid), fmt_currency(pr.high))
    m = result.valuation_metrics
    for label, pr in (("EV/Revenue", m.ev_revenue), ("EV/EBITDA", m.ev_ebitda), ("P/E", m.pe)):
        table.add_row(label, fmt_multiple(pr.low), fmt_multiple(pr.mid), fmt_multiple(pr.high))
    console.print(table)

    d = result.dilution
    lines = [
        f"[bold]Shares offered:[/bold] {o.primary_shares:,.0f} primary + {o.secondary_shares:,.0f} secondary "
        f"(+{o.greenshoe_shares:,.0f} greenshoe)",
        f"[bold]Shares outstanding:[/bold] {result.pre_money.shares_outstanding:,.0f} -> "
        f"{result.post_money.shares_outstanding:,.0f}",
        f"[bold]Existing holders:[/bold] {fmt_percent(d.pre_ipo_ownership)} -> {fmt_percent(d.post_ipo_ownership)} "
        f"([red]{fmt_percent(d.dilution_percent, 2)} dilution[/red])",
    ]
    console.print(Panel("\n".join(lines), title="Dilution", expand=False))

    comps = Table(title="Comparable IPOs", expand=False)
    for col in ("Company", "Date", "Offer", "Day-1 close", "Pop", "EV/Rev", "EV/EBITDA"):
        comps.add_column(col, justify="left" if col in ("Company", "Date") else "right")
    for c in result.comparable_ipos:
        comps.add_row(
            c.company,
            c.date.isoformat(),
            fmt_price(c.offer_price),
            fmt_price(c.first_day_close),
            fmt_percent(c.first_day_pop),
            fmt_multiple(c.ev_revenue),
            fmt_multiple(c.ev_ebitda),
        )
    console.print(comps)

    pop = result.first_day_pop
    console.print(
        f"[bold]Expected first-day pop:[/bold] {fmt_percent(pop.conservative)} / "
        f"{fmt_percent(pop.base)} / {fmt_percent(pop.optimistic)} (conservative / base / optimistic)"
    )
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("ipo")
    def ipo_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data and comparables"),
        price_low: Optional[float] = typer.Option(None, "--low", help="Bottom of the price range (default: current -15%)"),
        price_high: Optional[float] = typer.Option(None, "--high", help="Top of the price range (default: current +15%)"),
        primary: Optional[float] = typer.Option(None, "--primary", help="New shares issued"),
        secondary: Optional[float] = typer.Option(None, "--secondary", help="Existing shares sold"),
        greenshoe: float = typer.Option(0.15, "--greenshoe", help="Over-allotment as a fraction of the base offering"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """IPO price range, proceeds, dilution and comparable offerings."""
        _run_ipo(symbol, data, seed, price_low, price_high, primary, secondary, greenshoe, json_out)
