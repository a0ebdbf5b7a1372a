"""
Valuation error types.

Every failure of a single model call is one of these. The CLI catches
`ValuationError` and reports it; nothing here should take the process down.
"""

from __future__ import annotations

from typing import Any


class ValuationError(Exception):
    """Base class for all valuation failures."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class InsufficientData(ValuationError):
    """A required statement series has no periods."""

    def __init__(self, series: str, symbol: str | None = None):
        who = f" for {symbol}" if symbol else ""
        super().__init__(
            message=f"No {series} periods available{who}",
            error_code="INSUFFICIENT_DATA",
            details={"series": series, "symbol": symbol},
        )


class DegenerateInput(ValuationError):
    """A ratio or formula would divide by zero or otherwise be undefined."""

    def __init__(self, what: str, **details: Any):
        super().__init__(
            message=f"Degenerate input: {what}",
            error_code="DEGENERATE_INPUT",
            details={"what": what, **details},
        )


class EmptyDataset(ValuationError):
    """A statistic was requested over an empty set of values."""

    def __init__(self, what: str = "values"):
        super().__init__(
            message=f"Cannot compute statistics over empty {what}",
            error_code="EMPTY_DATASET",
            details={"what": what},
        )
