from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    add_completion=False,
    help="""Equity valuation models: DCF, comps, LBO, M&A and more.

\b
VALUATION:
  evm dcf AAPL               Discounted cash flow
  evm comps AAPL             Trading comparables
  evm precedent AAPL         Precedent transactions
  evm sotp AAPL              Sum of the parts

\b
DEALS:
  evm lbo AAPL               Leveraged buyout returns
  evm ma MSFT ADBE           Accretion / dilution
  evm ipo AAPL               IPO pricing
  evm credit AAPL            Debt capacity and covenants

\b
PLANNING:
  evm fcf AAPL               Free cash flow quality
  evm three-statement AAPL   Linked financial statements
  evm operating AAPL         Customer-driven operating model
  evm sensitivity AAPL       Scenarios, break-even and tornado
  evm ic-memo AAPL           Investment committee memo

\b
Without --data every command runs on a synthetic snapshot
(fix it with --seed or EVM_SEED). Add --json for machine output.
Run 'evm <command> --help' for details.
""",
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    from rich.console import Console
    from rich.logging import RichHandler

    from ib_valuation.config import load_settings

    settings = load_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.EVM_LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.command("sample")
def sample_cmd(
    symbol: str = typer.Argument(..., help="Ticker symbol"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output path (default: $EVM_DATA_DIR/<SYMBOL>.json)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    periods: int = typer.Option(5, "--periods", help="Fiscal years of history"),
):
    """
    Write a synthetic company snapshot to JSON.

    Examples:
        evm sample AAPL --seed 7
        evm dcf AAPL --data data/AAPL.json
    """
    from ib_valuation.cli_commands.common import console, make_rng
    from ib_valuation.config import load_settings
    from ib_valuation.data import dump_company_data, generate_company_data

    t = symbol.strip().upper()
    path = out or Path(load_settings().EVM_DATA_DIR) / f"{t}.json"
    data = generate_company_data(t, periods=periods, rng=make_rng(seed))
    written = dump_company_data(data, path)
    console.print(f"[green]Wrote {t} snapshot ({periods} years) to {written}[/green]")


_COMMANDS_REGISTERED = False


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return

    from ib_valuation.cli_commands.dcf_cmd import register as register_dcf
    from ib_valuation.cli_commands.comps_cmd import register as register_comps
    from ib_valuation.cli_commands.lbo_cmd import register as register_lbo
    from ib_valuation.cli_commands.ma_cmd import register as register_ma
    from ib_valuation.cli_commands.ipo_cmd import register as register_ipo
    from ib_valuation.cli_commands.credit_cmd import register as register_credit
    from ib_valuation.cli_commands.sotp_cmd import register as register_sotp
    from ib_valuation.cli_commands.fcf_cmd import register as register_fcf
    from ib_valuation.cli_commands.statements_cmd import register as register_statements
    from ib_valuation.cli_commands.operating_cmd import register as register_operating
    from ib_valuation.cli_commands.memo_cmd import register as register_memo

    register_dcf(app)
    register_comps(app)
    register_lbo(app)
    register_ma(app)
    register_ipo(app)
    register_credit(app)
    register_sotp(app)
    register_fcf(app)
    register_statements(app)
    register_operating(app)
    register_memo(app)

    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Register commands when imported as a console-script entrypoint (`pyproject.toml` uses `ib_valuation.cli:app`).
_register_commands()


if __name__ == "__main__":
    main()
