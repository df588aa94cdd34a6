from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from strategy_backtest.core import ZERO, as_decimal, as_decimal_optional, decimal_math
from strategy_backtest.position_management import PercentProfitTarget, PercentStopLoss, TrailingPercentStopLoss
from strategy_backtest.strategy.base import (
    Bar,
    EnterPositionFn,
    EntryRuleArgs,
    ExitPositionFn,
    PercentageOfEquity,
    PositionRuleArgs,
    PrepIndicatorsArgs,
    RuleStrategy,
)

DEFAULT_SMA_PERIOD = 30


@dataclass(frozen=True)
class SmaBar(Bar):
    sma: Decimal = ZERO

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "sma", as_decimal(self.sma))


def with_sma(bars: Sequence[Any], period: int) -> list[SmaBar]:
    """Attach a simple moving average of closes; bars before the first full window are dropped."""
    if period < 1:
        raise ValueError(f"SMA period must be a positive integer, got {period!r}")
    window: deque[Decimal] = deque(maxlen=period)
    running = ZERO
    out: list[SmaBar] = []
    with decimal_math():
        for bar in bars:
            close = as_decimal(bar.close)
            if len(window) == period:
                running -= window[0]
            window.append(close)
            running += close
            if len(window) < period:
                continue
            out.append(
                SmaBar(
                    time=bar.time,
                    open=bar.open,
                    high=bar.high,
                    low=bar.low,
                    close=close,
                    volume=getattr(bar, "volume", ZERO),
                    sma=running / period,
                )
            )
    return out


def _sma_prep(args: PrepIndicatorsArgs) -> list[SmaBar]:
    period = int(args.parameters.get("period", DEFAULT_SMA_PERIOD))
    return with_sma(args.input_series, period)


def _close_below_sma(enter_position: EnterPositionFn, args: EntryRuleArgs) -> None:
    if args.bar.close < args.bar.sma:
        enter_position(entry_reason="close-below-sma")


def _close_above_sma(exit_position: ExitPositionFn, args: PositionRuleArgs) -> None:
    if args.bar.close > args.bar.sma:
        exit_position()


def sma_reversion_strategy(
    *,
    period: int = DEFAULT_SMA_PERIOD,
    stop_loss_pct: Any = None,
    trailing_stop_pct: Any = None,
    profit_target_pct: Any = None,
    equity_pct: Any = 100,
    fee_rate: Any = None,
) -> RuleStrategy:
    """Buy closes below the moving average, sell once price closes back above it."""
    size = PercentageOfEquity(equity_pct)
    fees = as_decimal_optional(fee_rate)
    return RuleStrategy(
        entry_rule=_close_below_sma,
        exit_rule=_close_above_sma,
        stop_loss=None if stop_loss_pct is None else PercentStopLoss(stop_loss_pct),
        trailing_stop_loss=None if trailing_stop_pct is None else TrailingPercentStopLoss(trailing_stop_pct),
        profit_target=None if profit_target_pct is None else PercentProfitTarget(profit_target_pct),
        order_size=lambda: size,
        fees=lambda: fees,
        prep_indicators=_sma_prep,
        parameters={"period": period},
    )
