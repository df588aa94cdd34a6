from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from strategy_backtest.core import (
    HUNDRED,
    ONE,
    BacktestConfigError,
    PositionStateError,
    as_decimal,
    as_decimal_optional,
    decimal_math,
    floor_units,
    parse_direction,
)
from strategy_backtest.strategy.base import (
    DEFAULT_ORDER_SIZE,
    EnterPositionOptions,
    EntryRuleArgs,
    FixedUnits,
    OrderSizeType,
    PercentageOfEquity,
    PositionRuleArgs,
    PrepIndicatorsArgs,
    StrategyOptions,
)
from strategy_backtest.telemetry import get_logger

from . import pnl
from .lookback import LookbackWindow
from .position import Flat, Open, PendingEntry, PendingExit, Position, PositionStatus, StopState, TimestampedValue
from .trade import Trade, finalize_position

_LOG = get_logger(__name__)

ExecutionCallback = Callable[[dict[str, Any]], None]


@dataclass(frozen=True)
class BacktestOptions:
    strategy_options: StrategyOptions
    record_stop_price: bool = False
    record_risk: bool = False


@dataclass(frozen=True)
class BacktestResult:
    initial_capital: Decimal
    final_capital: Decimal
    trades: list[Trade]

    @property
    def net_profit(self) -> Decimal:
        with decimal_math():
            return self.final_capital - self.initial_capital

    @property
    def num_trades(self) -> int:
        return len(self.trades)


def _capability(strategy: Any, name: str) -> Callable[..., Any] | None:
    fn = getattr(strategy, name, None)
    if fn is None:
        return None
    if not callable(fn):
        raise BacktestConfigError(f"Strategy attribute '{name}' must be callable when set.")
    return fn


def _lookback_period(strategy: Any) -> int:
    raw = getattr(strategy, "lookback_period", None)
    if raw is None:
        return 1
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        raise BacktestConfigError(f"Expected 'lookback_period' to be a positive integer, got {raw!r}.")
    return raw


def _validate_run(strategy: Any, bars: list[Any], options: BacktestOptions | None) -> StrategyOptions:
    if strategy is None:
        raise BacktestConfigError("Expected a strategy object that defines the trading rules to backtest.")
    if not callable(getattr(strategy, "entry_rule", None)):
        raise BacktestConfigError("Strategy must define a callable 'entry_rule'.")
    if options is None or getattr(options, "strategy_options", None) is None:
        raise BacktestConfigError("Expected backtest options with 'strategy_options'.")
    strategy_options = options.strategy_options
    capital = strategy_options.initial_capital
    if not isinstance(capital, Decimal) or not capital.is_finite() or capital <= 0:
        raise BacktestConfigError(f"Expected a positive initial capital, got {capital!r}.")
    if not bars:
        raise BacktestConfigError("Expected the input series to contain at least 1 bar.")
    lookback_period = _lookback_period(strategy)
    if len(bars) < lookback_period:
        raise BacktestConfigError(
            f"Input series has {len(bars)} bars, fewer than the lookback period of {lookback_period}."
        )
    return strategy_options


def _resolve_order_size(strategy: Any) -> OrderSizeType:
    fn = _capability(strategy, "order_size")
    if fn is None:
        _LOG.warning("Strategy has no order_size rule; defaulting to %s%% of equity.", DEFAULT_ORDER_SIZE.percentage)
        return DEFAULT_ORDER_SIZE
    raw = fn()
    if isinstance(raw, (PercentageOfEquity, FixedUnits)):
        return raw
    try:
        return FixedUnits(as_decimal(raw))
    except (TypeError, ValueError) as exc:
        raise BacktestConfigError(f"order_size() returned an unsupported value: {raw!r}") from exc


def _resolve_fee_rate(strategy: Any) -> Decimal | None:
    fn = _capability(strategy, "fees")
    if fn is None:
        _LOG.warning("Strategy has no fees rule; trades are simulated without fees.")
        return None
    return as_decimal_optional(fn())


def position_size(
    order_size: OrderSizeType,
    working_capital: Decimal,
    entry_price: Decimal,
    strategy_options: StrategyOptions,
) -> Decimal:
    if isinstance(order_size, FixedUnits):
        return order_size.units
    leverage = strategy_options.leverage if strategy_options.leverage is not None else ONE
    multiplier = strategy_options.contract_multiplier if strategy_options.contract_multiplier is not None else ONE
    with decimal_math():
        usable = working_capital * order_size.percentage / HUNDRED
        units = usable / (entry_price * multiplier) * leverage
    return floor_units(units)


def update_position(position: Position, close_price: Decimal) -> None:
    """Mark an open position to the bar close and count the bar as held."""
    direction = position.direction
    options = position.strategy_options
    per_unit = pnl.unit_profit(direction, position.entry_price, close_price)
    position.profit = per_unit
    position.profit_pct = pnl.unit_profit_pct(direction, position.entry_price, close_price)
    if options.leverage is not None:
        multiplier = options.contract_multiplier if options.contract_multiplier is not None else ONE
        position.profit = pnl.realised_pnl(direction, position.entry_price, close_price, position.size, multiplier)
        position.profit_pct = pnl.return_on_equity(direction, position.entry_price, close_price, options.leverage)

    stop = position.stop
    if stop is not None:
        risk = pnl.unit_risk(direction, close_price, stop.cur_stop_price)
        stop.cur_risk_pct = pnl.risk_pct(risk, close_price)
        stop.cur_r_multiple = pnl.r_multiple(per_unit, stop.initial_unit_risk)

    position.holding_period += 1


def _entry_triggered(request: PendingEntry, bar: Any) -> bool:
    if request.entry_price is None:
        return True
    if request.direction.is_long:
        return as_decimal(bar.high) >= request.entry_price
    return as_decimal(bar.low) <= request.entry_price


def _stop_hit(position: Position, bar: Any) -> bool:
    stop = position.stop
    if stop is None:
        return False
    if position.direction.is_long:
        return as_decimal(bar.low) <= stop.cur_stop_price
    return as_decimal(bar.high) >= stop.cur_stop_price


def _target_hit(position: Position, bar: Any) -> bool:
    target = position.profit_target
    if target is None:
        return False
    if position.direction.is_long:
        return as_decimal(bar.high) >= target
    return as_decimal(bar.low) <= target


def run_backtest(
    bars: Iterable[Any],
    strategy: Any,
    options: BacktestOptions,
    *,
    execution_callback: ExecutionCallback | None = None,
) -> BacktestResult:
    input_series = list(bars) if bars is not None else []
    strategy_options = _validate_run(strategy, input_series, options)

    lookback_period = _lookback_period(strategy)
    parameters: Mapping[str, Any] = getattr(strategy, "parameters", None) or {}
    order_size = _resolve_order_size(strategy)
    fee_rate = _resolve_fee_rate(strategy)

    exit_rule = _capability(strategy, "exit_rule")
    stop_loss = _capability(strategy, "stop_loss")
    trailing_stop_loss = _capability(strategy, "trailing_stop_loss")
    profit_target = _capability(strategy, "profit_target")
    prep_indicators = _capability(strategy, "prep_indicators")

    if prep_indicators is not None:
        series = list(prep_indicators(PrepIndicatorsArgs(parameters=parameters, input_series=tuple(input_series))))
    else:
        series = input_series

    working_capital = strategy_options.initial_capital
    trades: list[Trade] = []
    status: PositionStatus = Flat()
    lookback = LookbackWindow(lookback_period)

    def enter_position(
        request: EnterPositionOptions | None = None,
        *,
        direction: Any = None,
        entry_price: Any = None,
        entry_reason: Any = None,
    ) -> None:
        nonlocal status
        if not isinstance(status, Flat):
            raise PositionStateError("Can only enter a position when not already in one.")
        base = request or EnterPositionOptions()
        status = PendingEntry(
            direction=parse_direction(direction if direction is not None else base.direction),
            entry_price=as_decimal_optional(entry_price if entry_price is not None else base.entry_price),
            entry_reason=entry_reason if entry_reason is not None else base.entry_reason,
        )

    def exit_position() -> None:
        nonlocal status
        if not isinstance(status, Open):
            raise PositionStateError("Can only exit a position when we are in a position.")
        status = PendingExit(status.position)

    def position_args(position: Position, bar: Any, view: tuple[Any, ...]) -> PositionRuleArgs:
        return PositionRuleArgs(
            entry_price=position.entry_price,
            position=position,
            bar=bar,
            lookback=view,
            parameters=parameters,
        )

    def close_position(position: Position, idx: int, bar: Any, exit_price: Decimal, reason: str) -> None:
        nonlocal status, working_capital
        trade = finalize_position(position, bar.time, exit_price, reason, fee_rate)
        trades.append(trade)
        working_capital = working_capital + trade.profit
        status = Flat()
        _LOG.debug(
            "closed %s size=%s exit=%s reason=%s profit=%s working_capital=%s",
            trade.direction.value,
            trade.size,
            exit_price,
            reason,
            trade.profit,
            working_capital,
        )
        if execution_callback is not None:
            execution_callback(
                {
                    "event_name": "exit",
                    "bar_index": idx,
                    "bar_time": bar.time,
                    "direction": trade.direction.value,
                    "size": str(trade.size),
                    "reason": reason,
                    "exit_price": str(exit_price),
                    "profit": str(trade.profit),
                    "working_capital": str(working_capital),
                }
            )

    def open_position(request: PendingEntry, idx: int, bar: Any, view: tuple[Any, ...]) -> Position:
        direction = request.direction
        entry_price = as_decimal(bar.open)
        position = Position(
            direction=direction,
            entry_time=bar.time,
            entry_price=entry_price,
            entry_reason=request.entry_reason,
            size=position_size(order_size, working_capital, entry_price, strategy_options),
            strategy_options=strategy_options,
        )

        stop_price: Decimal | None = None
        if stop_loss is not None:
            distance = as_decimal(stop_loss(position_args(position, bar, view)))
            stop_price = pnl.stop_price_from_distance(direction, entry_price, distance)
        if trailing_stop_loss is not None:
            distance = as_decimal(trailing_stop_loss(position_args(position, bar, view)))
            trailing_price = pnl.stop_price_from_distance(direction, entry_price, distance)
            stop_price = trailing_price if stop_price is None else pnl.tighter_stop(direction, stop_price, trailing_price)

        if stop_price is not None:
            initial_unit_risk = pnl.unit_risk(direction, entry_price, stop_price)
            initial_risk_pct = pnl.risk_pct(initial_unit_risk, entry_price)
            position.stop = StopState(
                initial_stop_price=stop_price,
                cur_stop_price=stop_price,
                initial_unit_risk=initial_unit_risk,
                initial_risk_pct=initial_risk_pct,
                cur_risk_pct=initial_risk_pct,
            )
            if options.record_stop_price:
                position.stop_price_series = [TimestampedValue(bar.time, stop_price)]
            if options.record_risk:
                position.risk_series = [TimestampedValue(bar.time, initial_risk_pct)]

        if profit_target is not None:
            distance = as_decimal(profit_target(position_args(position, bar, view)))
            position.profit_target = pnl.target_price_from_distance(direction, entry_price, distance)

        _LOG.debug(
            "entered %s size=%s entry=%s stop=%s target=%s working_capital=%s",
            direction.value,
            position.size,
            entry_price,
            position.initial_stop_price,
            position.profit_target,
            working_capital,
        )
        if execution_callback is not None:
            execution_callback(
                {
                    "event_name": "enter",
                    "bar_index": idx,
                    "bar_time": bar.time,
                    "direction": direction.value,
                    "size": str(position.size),
                    "reason": request.entry_reason,
                    "entry_price": str(entry_price),
                    "stop_price": None if stop_price is None else str(stop_price),
                    "profit_target": None if position.profit_target is None else str(position.profit_target),
                }
            )
        return position

    def step_open(position: Position, idx: int, bar: Any, view: tuple[Any, ...]) -> None:
        stop = position.stop
        if _stop_hit(position, bar):
            close_position(position, idx, bar, stop.cur_stop_price, "stop-loss")
            return

        if trailing_stop_loss is not None and stop is not None:
            distance = as_decimal(trailing_stop_loss(position_args(position, bar, view)))
            candidate = pnl.stop_price_from_distance(position.direction, as_decimal(bar.close), distance)
            stop.cur_stop_price = pnl.tighter_stop(position.direction, stop.cur_stop_price, candidate)
            if position.stop_price_series is not None:
                position.stop_price_series.append(TimestampedValue(bar.time, stop.cur_stop_price))

        if _target_hit(position, bar):
            close_position(position, idx, bar, position.profit_target, "profit-target")
            return

        update_position(position, as_decimal(bar.close))
        if stop is not None and position.risk_series is not None:
            position.risk_series.append(TimestampedValue(bar.time, stop.cur_risk_pct))

        if exit_rule is not None:
            exit_rule(exit_position, position_args(position, bar, view))

    with decimal_math():
        for idx, bar in enumerate(series):
            lookback.push(bar)
            if not lookback.is_full:
                continue
            view = lookback.view()

            if isinstance(status, Flat):
                strategy.entry_rule(enter_position, EntryRuleArgs(bar=bar, lookback=view, parameters=parameters))
            elif isinstance(status, PendingEntry):
                if not _entry_triggered(status, bar):
                    continue
                status = Open(open_position(status, idx, bar, view))
            elif isinstance(status, Open):
                step_open(status.position, idx, bar, view)
            elif isinstance(status, PendingExit):
                close_position(status.position, idx, bar, as_decimal(bar.open), "exit-rule")
            else:
                raise PositionStateError(f"Unexpected position state: {status!r}")

        if isinstance(status, (Open, PendingExit)):
            last_bar = series[-1]
            close_position(status.position, len(series) - 1, last_bar, as_decimal(last_bar.close), "finalize")

    return BacktestResult(
        initial_capital=strategy_options.initial_capital,
        final_capital=working_capital,
        trades=trades,
    )


def backtest(strategy: Any, bars: Iterable[Any], options: BacktestOptions) -> list[Trade]:
    return run_backtest(bars, strategy, options).trades
