from .data import bar_from_row, bars_from_rows, load_bars_csv, parse_timestamp
from .engine import BacktestOptions, BacktestResult, backtest, position_size, run_backtest, update_position
from .lookback import LookbackWindow
from .position import Flat, Open, PendingEntry, PendingExit, Position, PositionStatus, StopState, TimestampedValue
from .trade import Trade, finalize_position

__all__ = [
    "load_bars_csv",
    "bars_from_rows",
    "bar_from_row",
    "parse_timestamp",
    "BacktestOptions",
    "BacktestResult",
    "backtest",
    "run_backtest",
    "position_size",
    "update_position",
    "LookbackWindow",
    "Flat",
    "Open",
    "PendingEntry",
    "PendingExit",
    "Position",
    "PositionStatus",
    "StopState",
    "TimestampedValue",
    "Trade",
    "finalize_position",
]
