"""Return-based ratios computed on float series.

``sharpe`` follows the numpy-style population standard deviation of per-trade account changes.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Sequence
from typing import Any

from strategy_backtest.backtest.trade import Trade

DEFAULT_SHARPE_COEFFICIENT = 12
DEFAULT_RISK_FREE_RATE = 0.099
_SECONDS_PER_DAY = 86_400.0


def pct_changes(values: Sequence[Any]) -> list[float]:
    # Each change is relative to the later value.
    floats = [float(v) for v in values]
    return [(cur - prev) / cur for prev, cur in zip(floats, floats[1:])]


def sharpe(
    account_values: Sequence[Any],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    coefficient: float = DEFAULT_SHARPE_COEFFICIENT,
) -> float | None:
    changes = pct_changes(account_values)
    if not changes:
        return None
    std = statistics.pstdev(changes)
    if std == 0:
        return None
    annualized_std = std * math.sqrt(float(coefficient))
    return (statistics.fmean(changes) * float(coefficient) - float(risk_free_rate)) / annualized_std


def average_daily_return(trades: Sequence[Trade]) -> float | None:
    """Summed trade returns (as fractions) divided by the summed days held."""
    if not trades:
        return None
    total_return = 0.0
    total_days = 0.0
    for trade in trades:
        total_return += float(trade.profit_pct) / 100.0
        total_days += (trade.exit_time - trade.entry_time).total_seconds() / _SECONDS_PER_DAY
    if total_days <= 0:
        return None
    return total_return / total_days


def calmar(adr: float | None, max_drawdown_pct: Any) -> float | None:
    if adr is None:
        return None
    drawdown = abs(float(max_drawdown_pct)) / 100.0
    if drawdown == 0:
        return None
    try:
        annualized = (1.0 + adr) ** 365 - 1.0
    except OverflowError:
        return None
    return annualized / drawdown
