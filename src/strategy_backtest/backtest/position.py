from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Union

from strategy_backtest.core import ZERO, TradeDirection
from strategy_backtest.strategy.base import StrategyOptions


@dataclass(frozen=True)
class TimestampedValue:
    time: datetime
    value: Decimal


@dataclass
class StopState:
    initial_stop_price: Decimal
    cur_stop_price: Decimal
    initial_unit_risk: Decimal
    initial_risk_pct: Decimal
    cur_risk_pct: Decimal
    cur_r_multiple: Decimal | None = ZERO


@dataclass
class Position:
    direction: TradeDirection
    entry_time: datetime
    entry_price: Decimal
    size: Decimal
    strategy_options: StrategyOptions
    entry_reason: str | Sequence[str] | None = None
    profit: Decimal = ZERO
    profit_pct: Decimal = ZERO
    holding_period: int = 0
    stop: StopState | None = None
    profit_target: Decimal | None = None
    stop_price_series: list[TimestampedValue] | None = None
    risk_series: list[TimestampedValue] | None = None

    @property
    def initial_stop_price(self) -> Decimal | None:
        return None if self.stop is None else self.stop.initial_stop_price

    @property
    def cur_stop_price(self) -> Decimal | None:
        return None if self.stop is None else self.stop.cur_stop_price

    @property
    def initial_unit_risk(self) -> Decimal | None:
        return None if self.stop is None else self.stop.initial_unit_risk

    @property
    def initial_risk_pct(self) -> Decimal | None:
        return None if self.stop is None else self.stop.initial_risk_pct

    @property
    def cur_risk_pct(self) -> Decimal | None:
        return None if self.stop is None else self.stop.cur_risk_pct

    @property
    def cur_r_multiple(self) -> Decimal | None:
        return None if self.stop is None else self.stop.cur_r_multiple


# Engine states. Each record carries only the data valid in that state.


@dataclass(frozen=True)
class Flat:
    pass


@dataclass(frozen=True)
class PendingEntry:
    direction: TradeDirection
    entry_price: Decimal | None = None
    entry_reason: str | Sequence[str] | None = None


@dataclass(frozen=True)
class Open:
    position: Position


@dataclass(frozen=True)
class PendingExit:
    position: Position


PositionStatus = Union[Flat, PendingEntry, Open, PendingExit]
