"""Trading comparables and precedent transaction commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.models.stats import SummaryStats, ValueRange
from ib_valuation.utils.format import fmt_currency, fmt_multiple, fmt_percent, fmt_price


def _stats_row(label: str, s: SummaryStats) -> list[str]:
    return [label, fmt_multiple(s.low), fmt_multiple(s.median), fmt_multiple(s.high), fmt_multiple(s.mean), str(s.count)]


def _range_row(label: str, value: ValueRange, price: ValueRange) -> list[str]:
    return [
        label,
        fmt_currency(value.low),
        fmt_currency(value.base),
        fmt_currency(value.high),
        f"{fmt_price(price.low)} / {fmt_price(price.base)} / {fmt_price(price.high)}",
    ]


def _multiples_table(title: str, rows: list[list[str]]) -> Table:
    table = Table(title=title, expand=False)
    table.add_column("Multiple", style="bold")
    for col in ("25th", "Median", "75th", "Mean", "N"):
        table.add_column(col, justify="right")
    for row in rows:
        table.add_row(*row)
    return table


def _valuation_table(title: str, rows: list[list[str]]) -> Table:
    table = Table(title=title, expand=False)
    table.add_column("Method", style="bold")
    for col in ("Low", "Base", "High", "Per share (L / B / H)"):
        table.add_column(col, justify="right")
    for row in rows:
        table.add_row(*row)
    return table


def _run_comps(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    json_out: bool = False,
):
    from ib_valuation.models.comps import CompsModel

    with reported_errors():
        rng = make_rng(seed)
        data = load_snapshot(symbol, data_path, rng)
        result = CompsModel(data, rng=rng).analyze()

    if json_out:
        emit_json({"model": "Comps", "result": result})
        return

    peers = Table(title=f"Peer Group - {result.target.symbol}", expand=False)
    peers.add_column("Symbol", style="bold")
    for col in ("Mkt cap", "EV", "Revenue", "EBITDA", "EV/Rev", "EV/EBITDA", "P/E"):
        peers.add_column(col, justify="right")
    for p in [*result.peers, result.target]:
        peers.add_row(
            p.symbol,
            fmt_currency(p.market_cap),
            fmt_currency(p.enterprise_value),
            fmt_currency(p.revenue),
            fmt_currency(p.ebitda),
            fmt_multiple(p.ev_revenue),
            fmt_multiple(p.ev_ebitda),
            fmt_multiple(p.pe),
        )
    console.print(peers)

    m = result.multiples
    console.print(
        _multiples_table(
            "Trading Multiples",
            [_stats_row("EV/Revenue", m.ev_revenue), _stats_row("EV/EBITDA", m.ev_ebitda), _stats_row("P/E", m.pe)],
        )
    )

    v, px = result.valuation, result.implied_share_price
    console.print(
        _valuation_table(
            "Implied Valuation",
            [
                _range_row("EV/Revenue", v.ev_revenue, px.ev_revenue),
                _range_row("EV/EBITDA", v.ev_ebitda, px.ev_ebitda),
                _range_row("P/E (equity)", v.pe, px.pe),
            ],
        )
    )
    warnings_footer(result.warnings)


def _run_precedent(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    json_out: bool = False,
):
    from ib_valuation.models.precedent import PrecedentTransactionModel

    with reported_errors():
        rng = make_rng(seed)
        data = load_snapshot(symbol, data_path, rng)
        result = PrecedentTransactionModel(data, rng=rng).analyze()

    if json_out:
        emit_json({"model": "Precedent", "result": result})
        return

    deals = Table(title=f"Precedent Transactions - {data.symbol}", expand=False)
    for col in ("Date", "Target", "Acquirer", "Value", "EV/Rev", "EV/EBITDA", "Premium", "Buyer"):
        deals.add_column(col, justify="right" if col in ("Value", "EV/Rev", "EV/EBITDA", "Premium") else "left")
    for t in result.transactions:
        deals.add_row(
            t.date.isoformat(),
            t.target,
            t.acquirer,
            fmt_currency(t.deal_value),
            fmt_multiple(t.ev_revenue),
            fmt_multiple(t.ev_ebitda),
            fmt_percent(t.premium),
            "Strategic" if t.strategic else "Financial",
        )
    console.print(deals)

    m = result.multiples
    console.print(
        _multiples_table(
            "Transaction Multiples",
            [_stats_row("EV/Revenue", m.ev_revenue), _stats_row("EV/EBITDA", m.ev_ebitda)],
        )
    )

    b, p = result.buyers, result.premiums
    lines = [
        f"[bold]Premium paid:[/bold] {fmt_percent(p.low)} / {fmt_percent(p.median)} / {fmt_percent(p.high)} (25th / median / 75th)",
        f"[bold]Strategic buyers:[/bold] {b.strategic_count} deals, median {fmt_multiple(b.strategic_median_ev_ebitda)} EBITDA",
        f"[bold]Financial buyers:[/bold] {b.financial_count} deals, median {fmt_multiple(b.financial_median_ev_ebitda)} EBITDA",
    ]
    console.print(Panel("\n".join(lines), title="Deal Terms", expand=False))

    v, px = result.valuation, result.implied_share_price
    console.print(
        _valuation_table(
            "Implied Valuation",
            [_range_row("EV/Revenue", v.ev_revenue, px.ev_revenue), _range_row("EV/EBITDA", v.ev_ebitda, px.ev_ebitda)],
        )
    )
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("comps")
    def comps_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data and peers"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Trading comparables: peer multiples and implied value."""
        _run_comps(symbol, data, seed, json_out)

    @app.command("precedent")
    def precedent_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data and deals"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Precedent M&A transactions: deal multiples, premiums and implied value."""
        _run_precedent(symbol, data, seed, json_out)
