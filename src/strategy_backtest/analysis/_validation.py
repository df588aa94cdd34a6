from __future__ import annotations

from decimal import Decimal
from typing import Any

from strategy_backtest.core import as_decimal


def starting_capital_or_raise(value: Any, caller: str) -> Decimal:
    try:
        capital = as_decimal(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected 'starting_capital' for {caller} to be a number, got {value!r}") from exc
    if not capital.is_finite() or capital <= 0:
        raise ValueError(f"Expected 'starting_capital' for {caller} to be positive, got {value!r}")
    return capital
