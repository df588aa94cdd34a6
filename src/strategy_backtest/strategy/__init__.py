from .base import (
    DEFAULT_ORDER_SIZE,
    Bar,
    EnterPositionOptions,
    EntryRuleArgs,
    FixedUnits,
    OrderSizeType,
    PercentageOfEquity,
    PositionRuleArgs,
    PrepIndicatorsArgs,
    RuleStrategy,
    Strategy,
    StrategyOptions,
)
from .mean_reversion import SmaBar, sma_reversion_strategy, with_sma
from .simple import OneShotLongStrategy

__all__ = [
    "Bar",
    "DEFAULT_ORDER_SIZE",
    "EnterPositionOptions",
    "EntryRuleArgs",
    "FixedUnits",
    "OrderSizeType",
    "PercentageOfEquity",
    "PositionRuleArgs",
    "PrepIndicatorsArgs",
    "RuleStrategy",
    "Strategy",
    "StrategyOptions",
    "OneShotLongStrategy",
    "SmaBar",
    "sma_reversion_strategy",
    "with_sma",
]
