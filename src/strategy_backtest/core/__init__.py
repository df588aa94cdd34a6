from .direction import LONG, SHORT, TradeDirection, parse_direction
from .errors import BacktestConfigError, BacktestError, PositionStateError
from .numeric import (
    DECIMAL_CONTEXT,
    HUNDRED,
    ONE,
    ZERO,
    as_decimal,
    as_decimal_optional,
    decimal_math,
    floor_units,
)

__all__ = [
    "LONG",
    "SHORT",
    "TradeDirection",
    "parse_direction",
    "BacktestError",
    "BacktestConfigError",
    "PositionStateError",
    "DECIMAL_CONTEXT",
    "HUNDRED",
    "ONE",
    "ZERO",
    "as_decimal",
    "as_decimal_optional",
    "decimal_math",
    "floor_units",
]
