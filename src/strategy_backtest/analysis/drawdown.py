from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from strategy_backtest.backtest.trade import Trade
from strategy_backtest.core import ZERO, decimal_math

from ._validation import starting_capital_or_raise


def compute_drawdown(starting_capital: Any, trades: Sequence[Trade]) -> list[Decimal]:
    """Drawdown from the running peak after each trade, led by a zero for the starting point."""
    capital = starting_capital_or_raise(starting_capital, "compute_drawdown")
    drawdown: list[Decimal] = [ZERO]
    working = capital
    peak = capital
    with decimal_math():
        for trade in trades:
            working = working + trade.profit
            if working < peak:
                drawdown.append(working - peak)
            else:
                peak = working
                drawdown.append(ZERO)
    return drawdown
