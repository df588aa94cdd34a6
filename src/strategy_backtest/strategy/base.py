from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, Union

from strategy_backtest.core import LONG, ZERO, TradeDirection, as_decimal, as_decimal_optional

if TYPE_CHECKING:
    from strategy_backtest.backtest.position import Position

_PRICE_FIELDS = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True)
class Bar:
    time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in _PRICE_FIELDS:
            object.__setattr__(self, name, as_decimal(getattr(self, name)))

    @classmethod
    def from_close(
        cls,
        time: datetime,
        close: Any,
        *,
        open: Any = None,  # noqa: A002
        high: Any = None,
        low: Any = None,
        volume: Any = 1,
    ) -> "Bar":
        return cls(
            time=time,
            open=close if open is None else open,
            high=close if high is None else high,
            low=close if low is None else low,
            close=close,
            volume=volume,
        )


@dataclass(frozen=True)
class StrategyOptions:
    initial_capital: Decimal
    leverage: Decimal | None = None
    contract_multiplier: Decimal | None = None
    symbol: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "initial_capital", as_decimal(self.initial_capital))
        object.__setattr__(self, "leverage", as_decimal_optional(self.leverage))
        object.__setattr__(self, "contract_multiplier", as_decimal_optional(self.contract_multiplier))

    def to_dict(self) -> dict[str, Any]:
        return {
            "initial_capital": str(self.initial_capital),
            "leverage": None if self.leverage is None else str(self.leverage),
            "contract_multiplier": None if self.contract_multiplier is None else str(self.contract_multiplier),
            "symbol": self.symbol,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class PercentageOfEquity:
    percentage: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "percentage", as_decimal(self.percentage))


@dataclass(frozen=True)
class FixedUnits:
    units: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "units", as_decimal(self.units))


OrderSizeType = Union[PercentageOfEquity, FixedUnits]

DEFAULT_ORDER_SIZE = PercentageOfEquity(Decimal(90))


@dataclass(frozen=True)
class EnterPositionOptions:
    direction: TradeDirection = LONG
    entry_price: Decimal | None = None
    entry_reason: str | Sequence[str] | None = None


@dataclass(frozen=True)
class EntryRuleArgs:
    bar: Any
    lookback: tuple[Any, ...]
    parameters: Mapping[str, Any]


@dataclass(frozen=True)
class PositionRuleArgs:
    entry_price: Decimal
    position: "Position"
    bar: Any
    lookback: tuple[Any, ...]
    parameters: Mapping[str, Any]


@dataclass(frozen=True)
class PrepIndicatorsArgs:
    parameters: Mapping[str, Any]
    input_series: tuple[Any, ...]


EnterPositionFn = Callable[..., None]
ExitPositionFn = Callable[[], None]
EntryRuleFn = Callable[[EnterPositionFn, EntryRuleArgs], None]
ExitRuleFn = Callable[[ExitPositionFn, PositionRuleArgs], None]
DistanceFn = Callable[[PositionRuleArgs], Any]
PrepIndicatorsFn = Callable[[PrepIndicatorsArgs], Sequence[Any]]


class Strategy(Protocol):
    """Capability set consumed by the engine.

    Only ``entry_rule`` is required. The engine looks up ``exit_rule``, ``stop_loss``,
    ``trailing_stop_loss``, ``profit_target``, ``order_size``, ``fees``, ``prep_indicators``,
    ``parameters`` and ``lookback_period`` by name and treats a missing or ``None`` attribute
    as "not implemented".
    """

    def entry_rule(self, enter_position: EnterPositionFn, args: EntryRuleArgs) -> None:
        ...


@dataclass
class RuleStrategy:
    entry_rule: EntryRuleFn
    exit_rule: ExitRuleFn | None = None
    stop_loss: DistanceFn | None = None
    trailing_stop_loss: DistanceFn | None = None
    profit_target: DistanceFn | None = None
    order_size: Callable[[], Any] | None = None
    fees: Callable[[], Any] | None = None
    prep_indicators: PrepIndicatorsFn | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    lookback_period: int = 1
