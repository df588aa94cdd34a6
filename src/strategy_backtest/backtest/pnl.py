"""Pure profit, return and risk formulas.

Every function takes its inputs explicitly and evaluates under the package decimal context.
"""

from __future__ import annotations

from decimal import Decimal

from strategy_backtest.core import HUNDRED, ZERO, TradeDirection, decimal_math


def unit_profit(direction: TradeDirection, entry_price: Decimal, exit_price: Decimal) -> Decimal:
    with decimal_math():
        if direction.is_long:
            return exit_price - entry_price
        return entry_price - exit_price


def unit_profit_pct(direction: TradeDirection, entry_price: Decimal, exit_price: Decimal) -> Decimal:
    with decimal_math():
        return unit_profit(direction, entry_price, exit_price) / entry_price * HUNDRED


def realised_pnl(
    direction: TradeDirection,
    entry_price: Decimal,
    exit_price: Decimal,
    size: Decimal,
    contract_multiplier: Decimal,
) -> Decimal:
    with decimal_math():
        return unit_profit(direction, entry_price, exit_price) * size * contract_multiplier


def return_on_equity(
    direction: TradeDirection,
    entry_price: Decimal,
    exit_price: Decimal,
    leverage: Decimal,
) -> Decimal:
    with decimal_math():
        return unit_profit(direction, entry_price, exit_price) * leverage / entry_price * HUNDRED


def unit_risk(direction: TradeDirection, price: Decimal, stop_price: Decimal) -> Decimal:
    with decimal_math():
        if direction.is_long:
            return price - stop_price
        return stop_price - price


def risk_pct(risk: Decimal, price: Decimal) -> Decimal:
    with decimal_math():
        return risk / price * HUNDRED


def r_multiple(profit_per_unit: Decimal, initial_unit_risk: Decimal | None) -> Decimal | None:
    if initial_unit_risk is None or initial_unit_risk == ZERO:
        return None
    with decimal_math():
        return profit_per_unit / initial_unit_risk


def round_trip_fee(size: Decimal, fee_rate: Decimal) -> Decimal:
    # Entry and exit are charged the same rate.
    with decimal_math():
        return size * fee_rate / HUNDRED * 2


def stop_price_from_distance(direction: TradeDirection, price: Decimal, distance: Decimal) -> Decimal:
    with decimal_math():
        if direction.is_long:
            return price - distance
        return price + distance


def target_price_from_distance(direction: TradeDirection, price: Decimal, distance: Decimal) -> Decimal:
    with decimal_math():
        if direction.is_long:
            return price + distance
        return price - distance


def tighter_stop(direction: TradeDirection, current: Decimal, candidate: Decimal) -> Decimal:
    if direction.is_long:
        return candidate if candidate > current else current
    return candidate if candidate < current else current
