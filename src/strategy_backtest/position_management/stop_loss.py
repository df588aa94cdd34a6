from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from strategy_backtest.core import HUNDRED, as_decimal, decimal_math

if TYPE_CHECKING:
    from strategy_backtest.strategy.base import PositionRuleArgs


def _check_percent(percent: Decimal) -> Decimal:
    value = as_decimal(percent)
    if value <= 0:
        raise ValueError(f"Stop percentage must be positive, got {percent!r}")
    return value


@dataclass(frozen=True)
class FixedStopLoss:
    distance: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "distance", as_decimal(self.distance))

    def __call__(self, args: PositionRuleArgs) -> Decimal:  # noqa: ARG002
        return self.distance


@dataclass(frozen=True)
class PercentStopLoss:
    """Stop distance as a percentage of the entry price."""

    percent: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent", _check_percent(self.percent))

    def __call__(self, args: PositionRuleArgs) -> Decimal:
        with decimal_math():
            return as_decimal(args.entry_price) * self.percent / HUNDRED


@dataclass(frozen=True)
class TrailingPercentStopLoss:
    """Trailing distance as a percentage of the current bar close.

    The engine applies the distance to the entry price when the position opens and to
    each later close, keeping the tighter stop.
    """

    percent: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent", _check_percent(self.percent))

    def __call__(self, args: PositionRuleArgs) -> Decimal:
        with decimal_math():
            return as_decimal(args.bar.close) * self.percent / HUNDRED
