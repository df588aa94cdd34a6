from __future__ import annotations

import statistics
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from strategy_backtest.backtest.trade import Trade
from strategy_backtest.core import HUNDRED, ZERO, decimal_math

from ._validation import starting_capital_or_raise
from .metrics import DEFAULT_RISK_FREE_RATE, DEFAULT_SHARPE_COEFFICIENT, average_daily_return, calmar, sharpe


@dataclass(frozen=True)
class SharpeOptions:
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE
    coefficient: float = DEFAULT_SHARPE_COEFFICIENT


@dataclass(frozen=True)
class Analysis:
    starting_capital: Decimal
    final_capital: Decimal
    profit: Decimal
    profit_pct: Decimal
    total_trades: int
    bar_count: int
    max_drawdown: Decimal
    max_drawdown_pct: Decimal
    proportion_profitable: Decimal
    percent_profitable: Decimal
    average_profit_per_trade: Decimal
    num_winning_trades: int
    num_losing_trades: int
    average_winning_trade: Decimal
    average_losing_trade: Decimal
    expected_value: Decimal
    trade_span: int | None = None
    first_trade_date: datetime | None = None
    last_trade_date: datetime | None = None
    max_risk_pct: Decimal | None = None
    expectancy: Decimal | None = None
    rmultiple_std_dev: Decimal | None = None
    system_quality: Decimal | None = None
    profit_factor: Decimal | None = None
    return_on_account: Decimal | None = None
    adr: float | None = None
    adr_pct: float | None = None
    calmar_ratio: float | None = None
    sharpe_ratio: float | None = None
    account_values: list[Decimal] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, list):
                value = [str(v) for v in value]
            out[name] = value
        return out


def analyze(starting_capital: Any, trades: Sequence[Trade], sharpe_options: SharpeOptions | None = None) -> Analysis:
    capital = starting_capital_or_raise(starting_capital, "analyze")
    sharpe_opts = sharpe_options or SharpeOptions()

    working = capital
    peak = capital
    working_drawdown = ZERO
    max_drawdown = ZERO
    max_drawdown_pct = ZERO
    total_profits = ZERO
    total_losses = ZERO
    num_winning = 0
    num_losing = 0
    bar_count = 0
    max_risk_pct: Decimal | None = None
    account_values: list[Decimal] = []

    with decimal_math():
        for trade in trades:
            if trade.risk_pct is not None:
                max_risk_pct = trade.risk_pct if max_risk_pct is None else max(max_risk_pct, trade.risk_pct)

            working = working + trade.profit
            account_values.append(working)
            bar_count += trade.holding_period

            if working < peak:
                working_drawdown = working - peak
            else:
                peak = working
                working_drawdown = ZERO

            if trade.profit > 0:
                total_profits += trade.profit
                num_winning += 1
            else:
                total_losses += trade.profit
                num_losing += 1

            max_drawdown = min(working_drawdown, max_drawdown)
            max_drawdown_pct = min(max_drawdown / peak * HUNDRED, max_drawdown_pct)

        total_trades = len(trades)
        rmultiples = [t.rmultiple for t in trades if t.rmultiple is not None]
        expectancy = statistics.mean(rmultiples) if rmultiples else None
        if not rmultiples:
            rmultiple_std_dev = None
        elif len(rmultiples) < 2:
            rmultiple_std_dev = ZERO
        else:
            rmultiple_std_dev = statistics.stdev(rmultiples)

        system_quality = None
        if expectancy is not None and rmultiple_std_dev:
            system_quality = expectancy / rmultiple_std_dev

        profit_factor = total_profits / abs(total_losses) if total_losses != 0 else None

        profit = working - capital
        profit_pct = profit / capital * HUNDRED
        proportion_winning = Decimal(num_winning) / total_trades if total_trades else ZERO
        proportion_losing = Decimal(num_losing) / total_trades if total_trades else ZERO
        average_winning = total_profits / num_winning if num_winning else ZERO
        average_losing = total_losses / num_losing if num_losing else ZERO
        return_on_account = profit_pct / abs(max_drawdown_pct) if max_drawdown_pct != 0 else None
        average_profit = profit / total_trades if total_trades else ZERO
        expected_value = proportion_winning * average_winning + proportion_losing * average_losing

    first_trade_date = trades[0].entry_time if trades else None
    last_trade_date = trades[-1].entry_time if trades else None
    trade_span = None
    if first_trade_date is not None and last_trade_date is not None:
        trade_span = int(abs((last_trade_date - first_trade_date).total_seconds()) // 86_400)

    adr = average_daily_return(trades)
    return Analysis(
        starting_capital=capital,
        final_capital=working,
        profit=profit,
        profit_pct=profit_pct,
        total_trades=total_trades,
        bar_count=bar_count,
        trade_span=trade_span,
        first_trade_date=first_trade_date,
        last_trade_date=last_trade_date,
        max_drawdown=max_drawdown,
        max_drawdown_pct=max_drawdown_pct,
        max_risk_pct=max_risk_pct,
        expectancy=expectancy,
        rmultiple_std_dev=rmultiple_std_dev,
        system_quality=system_quality,
        profit_factor=profit_factor,
        proportion_profitable=proportion_winning,
        percent_profitable=proportion_winning * HUNDRED,
        return_on_account=return_on_account,
        average_profit_per_trade=average_profit,
        num_winning_trades=num_winning,
        num_losing_trades=num_losing,
        average_winning_trade=average_winning,
        average_losing_trade=average_losing,
        expected_value=expected_value,
        adr=adr,
        adr_pct=None if adr is None else adr * 100.0,
        calmar_ratio=calmar(adr, max_drawdown_pct),
        sharpe_ratio=sharpe(account_values, sharpe_opts.risk_free_rate, sharpe_opts.coefficient),
        account_values=account_values,
    )
