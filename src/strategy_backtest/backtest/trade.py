from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from strategy_backtest.core import ONE, TradeDirection, as_decimal_optional, decimal_math
from strategy_backtest.telemetry import get_logger

from . import pnl
from .position import Position, TimestampedValue

_LOG = get_logger(__name__)


@dataclass(frozen=True)
class Trade:
    direction: TradeDirection
    entry_time: datetime
    entry_price: Decimal
    exit_time: datetime
    exit_price: Decimal
    exit_reason: str
    profit: Decimal
    profit_pct: Decimal
    holding_period: int
    entry_reason: str | Sequence[str] | None = None
    risk_pct: Decimal | None = None
    rmultiple: Decimal | None = None
    stop_price: Decimal | None = None
    profit_target: Decimal | None = None
    stop_price_series: tuple[TimestampedValue, ...] | None = None
    risk_series: tuple[TimestampedValue, ...] | None = None
    size: Decimal | None = None
    leverage: Decimal | None = None
    strategy: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "entry_time": _iso(self.entry_time),
            "entry_price": _text(self.entry_price),
            "entry_reason": _reason(self.entry_reason),
            "exit_time": _iso(self.exit_time),
            "exit_price": _text(self.exit_price),
            "exit_reason": self.exit_reason,
            "profit": _text(self.profit),
            "profit_pct": _text(self.profit_pct),
            "holding_period": self.holding_period,
            "risk_pct": _text(self.risk_pct),
            "rmultiple": _text(self.rmultiple),
            "stop_price": _text(self.stop_price),
            "profit_target": _text(self.profit_target),
            "stop_price_series": _series(self.stop_price_series),
            "risk_series": _series(self.risk_series),
            "size": _text(self.size),
            "leverage": _text(self.leverage),
            "strategy": self.strategy,
        }


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _text(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _reason(value: str | Sequence[str] | None) -> str | list[str] | None:
    if value is None or isinstance(value, str):
        return value
    return [str(item) for item in value]


def _series(values: tuple[TimestampedValue, ...] | None) -> list[dict[str, str]] | None:
    if values is None:
        return None
    return [{"time": _iso(item.time), "value": str(item.value)} for item in values]


def finalize_position(
    position: Position,
    exit_time: datetime,
    exit_price: Decimal,
    exit_reason: str,
    fee_rate: Decimal | None = None,
) -> Trade:
    direction = position.direction
    entry_price = position.entry_price
    options = position.strategy_options

    per_unit = pnl.unit_profit(direction, entry_price, exit_price)
    rmultiple = pnl.r_multiple(per_unit, position.initial_unit_risk)
    profit = per_unit
    profit_pct = pnl.unit_profit_pct(direction, entry_price, exit_price)

    if options.leverage is not None:
        contract_multiplier = options.contract_multiplier if options.contract_multiplier is not None else ONE
        profit = pnl.realised_pnl(direction, entry_price, exit_price, position.size, contract_multiplier)
        profit_pct = pnl.return_on_equity(direction, entry_price, exit_price, options.leverage)

    fee_rate = as_decimal_optional(fee_rate)
    if fee_rate:
        fee = pnl.round_trip_fee(position.size, fee_rate)
        with decimal_math():
            profit = profit - fee
        _LOG.debug("fee applied size=%s fee_rate=%s fee=%s", position.size, fee_rate, fee)

    return Trade(
        direction=direction,
        entry_time=position.entry_time,
        entry_price=entry_price,
        entry_reason=position.entry_reason,
        exit_time=exit_time,
        exit_price=exit_price,
        exit_reason=exit_reason,
        profit=profit,
        profit_pct=profit_pct,
        holding_period=position.holding_period,
        risk_pct=position.initial_risk_pct,
        rmultiple=rmultiple,
        stop_price=position.initial_stop_price,
        profit_target=position.profit_target,
        stop_price_series=None if position.stop_price_series is None else tuple(position.stop_price_series),
        risk_series=None if position.risk_series is None else tuple(position.risk_series),
        size=position.size,
        leverage=options.leverage if options.leverage is not None else ONE,
        strategy=options.to_json(),
    )
