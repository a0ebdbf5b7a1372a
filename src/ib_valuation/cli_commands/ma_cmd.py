"""Merger accretion / dilution command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_delta, fmt_multiple, fmt_percent, fmt_price


def _run_ma(
    acquirer: str,
    target: str,
    acquirer_path: Optional[Path] = None,
    target_path: Optional[Path] = None,
    seed: Optional[int] = None,
    premium: float = 0.30,
    cash: float = 0.40,
    stock: float = 0.40,
    debt: float = 0.20,
    synergies: Optional[float] = None,
    json_out: bool = False,
):
    from ib_valuation.models.ma import MAInputs, MAModel

    with reported_errors():
        rng = make_rng(seed)
        acq = load_snapshot(acquirer, acquirer_path, rng)
        tgt = load_snapshot(target, target_path, rng)
        inputs = MAInputs(
            premium=premium,
            cash_percent=cash,
            stock_percent=stock,
            debt_percent=debt,
            cost_synergies=synergies,
        )
        result = MAModel(acq, tgt, inputs).analyze()

    if json_out:
        emit_json({"model": "M&A", "result": result})
        return

    d = result.deal
    terms = [
        f"[bold]Offer:[/bold] {fmt_price(d.offer_price)} per share ({fmt_percent(d.premium)} over {fmt_price(d.target_price)})",
        f"[bold]Consideration:[/bold] {fmt_currency(d.total_consideration)}",
        f"  cash {fmt_currency(d.cash_component)} / stock {fmt_currency(d.stock_component)} / "
        f"debt {fmt_currency(d.debt_component)}",
        f"[bold]New shares issued:[/bold] {d.shares_issued:,.0f}",
    ]
    console.print(Panel("\n".join(terms), title=f"{result.acquirer} acquires {result.target}", expand=False))

    s, pf, ad, syn = result.acquirer_standalone, result.pro_forma, result.accretion_dilution, result.synergies
    table = Table(title="Accretion / Dilution", expand=False)
    table.add_column("", style="bold")
    for col in ("Standalone", "Pro forma", "With synergies"):
        table.add_column(col, justify="right")
    table.add_row("Net income", fmt_currency(s.net_income), fmt_currency(pf.net_income), fmt_currency(pf.net_income + syn.after_tax))
    table.add_row("Shares", f"{s.shares_outstanding:,.0f}", f"{pf.shares_outstanding:,.0f}", f"{pf.shares_outstanding:,.0f}")
    table.add_row("EPS", fmt_price(s.eps), fmt_price(pf.eps), fmt_price(syn.synergy_adjusted_eps))
    table.add_row("Change", "", fmt_delta(ad.percent_change, 2), fmt_delta(syn.synergy_adjusted_percent_change, 2))
    console.print(table)

    verdict = "[green]ACCRETIVE[/green]" if ad.is_accretive else "[red]DILUTIVE[/red]"
    c, be = result.credit_metrics, result.break_even
    max_premium = fmt_percent(be.max_premium) if be.max_premium is not None else "no limit"
    lines = [
        f"[bold]Verdict (before synergies):[/bold] {verdict}",
        f"[bold]Synergies:[/bold] {fmt_currency(syn.total_pretax)} pre-tax, {fmt_currency(syn.after_tax)} after tax",
        f"[bold]Synergies to break even:[/bold] {fmt_currency(be.required_synergies)}",
        f"[bold]Max premium without dilution:[/bold] {max_premium}",
        "",
        f"[bold]Leverage:[/bold] {fmt_multiple(c.leverage_pre)} -> {fmt_multiple(c.leverage_post)} Debt/EBITDA",
    ]
    console.print(Panel("\n".join(lines), title="Deal Economics", expand=False))
    warnings_footer(result.warnings)


def register(app: typer.Typer) -> None:
    @app.command("ma")
    def ma_cmd(
        acquirer: str = typer.Argument(..., help="Acquirer ticker"),
        target: str = typer.Argument(..., help="Target ticker"),
        acquirer_data: Optional[Path] = typer.Option(None, "--acquirer-data", help="Acquirer snapshot JSON"),
        target_data: Optional[Path] = typer.Option(None, "--target-data", help="Target snapshot JSON"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data"),
        premium: float = typer.Option(0.30, "--premium", "-p", help="Premium over the target price"),
        cash: float = typer.Option(0.40, "--cash", help="Cash share of consideration"),
        stock: float = typer.Option(0.40, "--stock", help="Stock share of consideration"),
        debt: float = typer.Option(0.20, "--debt", help="New-debt share of consideration"),
        synergies: Optional[float] = typer.Option(None, "--synergies", help="Annual cost synergies (default: 2% of deal)"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """
        Merger accretion / dilution analysis.

        Examples:
            evm ma MSFT ADBE
            evm ma MSFT ADBE --cash 0 --stock 1 --debt 0 --premium 0.5
        """
        _run_ma(acquirer, target, acquirer_data, target_data, seed, premium, cash, stock, debt, synergies, json_out)
