"""Shared plumbing for the valuation commands: snapshot loading, seeding, error reporting."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import numpy as np
import typer
from pydantic import ValidationError
from rich.console import Console

from ib_valuation.config import load_settings
from ib_valuation.data import CompanyData, generate_company_data, load_company_data
from ib_valuation.errors import ValuationError
from ib_valuation.utils.format import dumps

logger = logging.getLogger(__name__)

console = Console()


def parse_floats(raw: Optional[str]) -> tuple[float, ...] | None:
    """'0.15,0.12, 0.10' -> (0.15, 0.12, 0.10)"""
    if raw is None or not raw.strip():
        return None
    try:
        return tuple(float(x) for x in raw.split(",") if x.strip())
    except ValueError:
        raise typer.BadParameter(f"expected comma-separated numbers, got {raw!r}")


def make_rng(seed: Optional[int]) -> np.random.Generator:
    """Seed from --seed, else EVM_SEED, else fresh entropy."""
    if seed is None:
        seed = load_settings().EVM_SEED
    return np.random.default_rng(seed)


def load_snapshot(symbol: str, data_path: Optional[Path], rng: np.random.Generator) -> CompanyData:
    t = symbol.strip().upper()
    if data_path is None:
        logger.info("No --data for %s; using a synthetic snapshot", t)
        return generate_company_data(t, rng=rng)
    data = load_company_data(data_path)
    if data.symbol.upper() != t:
        logger.warning("Snapshot %s holds %s, not %s", data_path, data.symbol, t)
    return data


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print valuation / input errors in red and exit with status 1."""
    try:
        yield
    except ValuationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        logger.debug("%s details: %s", e.error_code, e.details)
        raise typer.Exit(code=1)
    except ValidationError as e:
        console.print(f"[red]Invalid inputs: {e}[/red]")
        raise typer.Exit(code=1)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def emit_json(result: object) -> None:
    typer.echo(dumps(result))


def warnings_footer(warnings: list[str]) -> None:
    for w in warnings:
        console.print(f"[yellow]⚠ {w}[/yellow]")
