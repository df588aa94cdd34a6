from __future__ import annotations


class BacktestError(Exception):
    """Base class for errors raised by the backtest engine."""


class BacktestConfigError(BacktestError, ValueError):
    """The run could not start: bad strategy, options or input series."""


class PositionStateError(BacktestError, RuntimeError):
    """A position transition was requested from a state that does not allow it."""
