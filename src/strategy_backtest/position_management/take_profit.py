from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from strategy_backtest.core import HUNDRED, as_decimal, decimal_math

if TYPE_CHECKING:
    from strategy_backtest.strategy.base import PositionRuleArgs


@dataclass(frozen=True)
class PercentProfitTarget:
    percent: Decimal

    def __post_init__(self) -> None:
        value = as_decimal(self.percent)
        if value <= 0:
            raise ValueError(f"Profit target percentage must be positive, got {self.percent!r}")
        object.__setattr__(self, "percent", value)

    def __call__(self, args: PositionRuleArgs) -> Decimal:
        with decimal_math():
            return as_decimal(args.entry_price) * self.percent / HUNDRED


@dataclass(frozen=True)
class RiskRewardProfitTarget:
    """Target placed ``rrr`` times the initial unit risk away from entry.

    Needs a stop loss on the strategy: the stop is priced before the target.
    """

    rrr: Decimal = Decimal(3)

    def __post_init__(self) -> None:
        value = as_decimal(self.rrr)
        if value <= 0:
            raise ValueError(f"Reward/risk ratio must be positive, got {self.rrr!r}")
        object.__setattr__(self, "rrr", value)

    def __call__(self, args: PositionRuleArgs) -> Decimal:
        risk = args.position.initial_unit_risk
        if risk is None or risk <= 0:
            raise ValueError("RiskRewardProfitTarget requires a stop loss with positive risk")
        with decimal_math():
            return risk * self.rrr
