from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from strategy_backtest.backtest.trade import Trade
from strategy_backtest.core import decimal_math

from ._validation import starting_capital_or_raise


def compute_equity_curve(starting_capital: Any, trades: Sequence[Trade]) -> list[Decimal]:
    capital = starting_capital_or_raise(starting_capital, "compute_equity_curve")
    curve = [capital]
    with decimal_math():
        for trade in trades:
            curve.append(curve[-1] + trade.profit)
    return curve
