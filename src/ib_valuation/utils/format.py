"""Number formatting for console output, and JSON conversion of result objects."""

from __future__ import annotations

import dataclasses
import json
import math
from datetime import date
from typing import Any

from pydantic import BaseModel

MISSING = "—"


def fmt_currency(value: float | None, decimals: int = 1) -> str:
    """$1.2B / $3.4M / $5.6K / $7.8"""
    if value is None or not math.isfinite(value):
        return MISSING
    sign = "-" if value < 0 else ""
    v = abs(value)
    if v >= 1e12:
        return f"{sign}${v / 1e12:.{decimals}f}T"
    if v >= 1e9:
        return f"{sign}${v / 1e9:.{decimals}f}B"
    if v >= 1e6:
        return f"{sign}${v / 1e6:.{decimals}f}M"
    if v >= 1e3:
        return f"{sign}${v / 1e3:.{decimals}f}K"
    return f"{sign}${v:.{decimals}f}"


def fmt_percent(value: float | None, decimals: int = 1) -> str:
    if value is None or not math.isfinite(value):
        return MISSING
    return f"{value * 100:.{decimals}f}%"


def fmt_multiple(value: float | None, decimals: int = 1) -> str:
    if value is None or not math.isfinite(value):
        return MISSING
    return f"{value:.{decimals}f}x"


def fmt_price(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return MISSING
    return f"${value:,.2f}"


def fmt_delta(value: float | None, decimals: int = 1) -> str:
    """Signed percent with Rich markup: green when >= 0, red otherwise."""
    if value is None or not math.isfinite(value):
        return MISSING
    style = "green" if value >= 0 else "red"
    return f"[{style}]{value * 100:+.{decimals}f}%[/{style}]"


def to_jsonable(obj: Any) -> Any:
    """
    Convert a result object into plain JSON types.

    Dataclasses and pydantic models become dicts, dates ISO strings, and
    NaN / inf become null.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, BaseModel):
        return to_jsonable(obj.model_dump())
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    return obj


def dumps(obj: Any) -> str:
    return json.dumps(to_jsonable(obj), indent=2)
