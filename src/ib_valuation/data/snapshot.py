"""Read and write `CompanyData` snapshots as local JSON files."""

from __future__ import annotations

import logging
from pathlib import Path

from ib_valuation.data.models import CompanyData

logger = logging.getLogger(__name__)


def load_company_data(path: str | Path) -> CompanyData:
    """
    Load a snapshot from JSON.

    Keys may be camelCase (`incomeStatements`, `totalDebt`) or snake_case.
    Raises pydantic.ValidationError for structurally invalid files.
    """
    p = Path(path)
    data = CompanyData.model_validate_json(p.read_text(encoding="utf-8"))
    logger.debug(
        "Loaded %s from %s (%d income / %d cash flow / %d balance periods)",
        data.symbol,
        p,
        len(data.income_statements),
        len(data.cash_flow_statements),
        len(data.balance_sheets),
    )
    return data


def dump_company_data(data: CompanyData, path: str | Path, *, by_alias: bool = True) -> Path:
    """Write a snapshot to JSON (camelCase keys by default) and return the path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(data.model_dump_json(by_alias=by_alias, indent=2), encoding="utf-8")
    logger.debug("Wrote %s snapshot to %s", data.symbol, p)
    return p
