"""Investment committee memo command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ib_valuation.cli_commands.common import console, emit_json, load_snapshot, make_rng, reported_errors, warnings_footer
from ib_valuation.utils.format import fmt_currency, fmt_multiple, fmt_percent, fmt_price

_ACTION_STYLE = {"invest": "bold green", "watch": "bold yellow", "pass": "bold red"}


def _bullets(items: list[str]) -> str:
    return "\n".join(f"  • {s}" for s in items)


def _run_ic_memo(
    symbol: str,
    data_path: Optional[Path] = None,
    seed: Optional[int] = None,
    deal_type: str = "buyout",
    position: str = "lead",
    json_out: bool = False,
):
    from ib_valuation.models.ic_memo import ICMemoInputs, ICMemoModel

    with reported_errors():
        rng = make_rng(seed)
        data = load_snapshot(symbol, data_path, rng)
        memo = ICMemoModel(data, ICMemoInputs(deal_type=deal_type, position=position), rng=rng).generate()

    if json_out:
        emit_json({"model": "ICMemo", "result": memo})
        return

    es = memo.executive_summary
    console.print(
        Panel(
            f"{es.investment_thesis}\n\n[bold]Returns:[/bold] {es.expected_returns}\n[bold]Risks:[/bold] {es.key_risks}",
            title=f"Investment Committee Memo - {memo.symbol}",
            expand=False,
        )
    )

    do, ca = memo.deal_overview, memo.company_analysis
    console.print(
        Panel(
            "\n".join(
                [
                    f"[bold]Type:[/bold] {do.type}   [bold]Size:[/bold] {fmt_currency(do.size)}",
                    f"[bold]Structure:[/bold] {do.structure}",
                    f"[bold]Timeline:[/bold] {do.timeline}",
                    f"[bold]Use of proceeds:[/bold] {do.use_of_proceeds}",
                    "",
                    f"[bold]Business model:[/bold] {ca.business_model}",
                    f"[bold]Position:[/bold] {ca.competitive_position}",
                    f"[bold]Financials:[/bold] {ca.financial_performance}",
                    f"[bold]Management:[/bold] {ca.management_team}",
                ]
            ),
            title="Deal & Company",
            expand=False,
        )
    )

    ind, th = memo.industry_analysis, memo.investment_thesis
    console.print(
        Panel(
            f"[bold]Market:[/bold] {ind.market_size}, growing {ind.growth_rate}\n"
            f"[bold]Trends:[/bold]\n{_bullets(ind.trends)}\n"
            f"[bold]Competition:[/bold] {ind.competitive_dynamics}\n\n"
            f"[bold]Thesis:[/bold]\n{_bullets(th.points)}\n"
            f"[bold]Catalysts:[/bold]\n{_bullets(th.catalysts)}",
            title="Industry & Thesis",
            expand=False,
        )
    )

    v = memo.valuation
    table = Table(title="Valuation Summary", expand=False)
    for col in ("Method", "Implied price", "Weight", "Applied"):
        table.add_column(col, justify="left" if col == "Method" else "right")
    for m in v.methodologies:
        table.add_row(m.name, fmt_price(m.value), fmt_percent(m.weight, 0), fmt_percent(m.applied_weight, 0))
    table.add_row("[bold]Weighted[/bold]", f"[bold]{fmt_price(v.weighted_value)}[/bold]", "", "")
    console.print(table)
    console.print(f"[bold]Range:[/bold] {fmt_price(v.low)} - {fmt_price(v.high)}")

    r = memo.returns
    exits = Table(title=f"Returns ({r.holding_period}-year hold): IRR {fmt_percent(r.irr)}, MOIC {fmt_multiple(r.moic, 2)}", expand=False)
    for col in ("Scenario", "Exit year", "Multiple", "MOIC"):
        exits.add_column(col, justify="left" if col == "Scenario" else "right")
    for x in r.exit_scenarios:
        exits.add_row(x.scenario, str(x.year), fmt_multiple(x.multiple), fmt_multiple(x.moic, 2))
    console.print(exits)

    risks = Table(title="Key Risks", expand=False)
    for col in ("Category", "Risk", "Likelihood", "Impact", "Mitigation"):
        risks.add_column(col)
    for k in memo.risks:
        risks.add_row(k.category, k.description, k.likelihood, k.impact, k.mitigation)
    console.print(risks)

    rec = memo.recommendation
    style = _ACTION_STYLE.get(rec.action, "bold")
    console.print(
        Panel(
            f"[{style}]{rec.action.upper()}[/{style}]\n{rec.reasoning}\n\n"
            f"[bold]Conditions:[/bold]\n{_bullets(rec.conditions)}\n"
            f"[bold]Next steps:[/bold]\n{_bullets(rec.next_steps)}",
            title="Recommendation",
            expand=False,
        )
    )
    warnings_footer(memo.warnings)


def register(app: typer.Typer) -> None:
    @app.command("ic-memo")
    def ic_memo_cmd(
        symbol: str = typer.Argument(..., help="Ticker symbol"),
        data: Optional[Path] = typer.Option(None, "--data", "-d", help="Snapshot JSON (default: synthetic data)"),
        seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for synthetic data, peers and deals"),
        deal_type: str = typer.Option("buyout", "--deal-type", help="buyout|growth|venture|public"),
        position: str = typer.Option("lead", "--position", help="lead|co-lead|follow"),
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ):
        """Investment committee memo built from the DCF, comps, precedent and LBO models."""
        _run_ic_memo(symbol, data, seed, deal_type, position, json_out)
