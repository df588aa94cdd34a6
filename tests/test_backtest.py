from dataclasses import dataclass
from decimal import Decimal

import pytest

from strategy_backtest.backtest import BacktestOptions, backtest, run_backtest
from strategy_backtest.core import BacktestConfigError, PositionStateError
from strategy_backtest.strategy import Bar, FixedUnits, PercentageOfEquity, RuleStrategy, StrategyOptions


def _enter_always(enter_position, args):  # noqa: ARG001
    enter_position()


def _never(*args):  # noqa: ARG001
    return None


def _opts(strategy_options, **kwargs):
    return BacktestOptions(strategy_options=strategy_options, **kwargs)


@dataclass(frozen=True)
class _SignalBar(Bar):
    go_long: int = 0


def test_no_trades_when_entry_never_taken(make_bars, strategy_options):
    result = run_backtest(make_bars(2), RuleStrategy(entry_rule=_never, exit_rule=_never), _opts(strategy_options))
    assert result.trades == []
    assert result.final_capital == result.initial_capital == Decimal(1000)
    assert result.net_profit == 0


def test_empty_bars_rejected(strategy_options):
    with pytest.raises(BacktestConfigError):
        run_backtest([], RuleStrategy(entry_rule=_never), _opts(strategy_options))


def test_missing_strategy_and_entry_rule_rejected(make_bars, strategy_options):
    with pytest.raises(BacktestConfigError):
        run_backtest(make_bars(1, 2), None, _opts(strategy_options))
    with pytest.raises(BacktestConfigError):
        run_backtest(make_bars(1, 2), object(), _opts(strategy_options))


def test_missing_or_invalid_options_rejected(make_bars):
    strategy = RuleStrategy(entry_rule=_enter_always)
    with pytest.raises(BacktestConfigError):
        run_backtest(make_bars(1, 2), strategy, None)
    with pytest.raises(BacktestConfigError):
        run_backtest(make_bars(1, 2), strategy, BacktestOptions(strategy_options=StrategyOptions(initial_capital=0)))
    with pytest.raises(BacktestConfigError):
        run_backtest(make_bars(1, 2), strategy, BacktestOptions(strategy_options=StrategyOptions(initial_capital=-5)))


def test_unconditional_entry_without_exit_creates_single_finalized_trade(make_bars, strategy_options):
    trades = backtest(RuleStrategy(entry_rule=_enter_always), make_bars(1, 2, 3, 4, 5), _opts(strategy_options))
    assert len(trades) == 1
    assert trades[0].exit_reason == "finalize"
    assert trades[0].exit_price == 5


def test_enters_at_open_on_bar_after_signal(make_bars, strategy_options):
    bars = make_bars({"close": 2, "open": 1}, {"close": 4, "open": 3}, {"close": 6, "open": 5})
    trades = backtest(RuleStrategy(entry_rule=_enter_always), bars, _opts(strategy_options))
    assert trades[0].entry_price == 3
    assert trades[0].entry_time == bars[1].time
    assert trades[0].exit_price == 6


def test_conditional_entry_signal_triggers_next_bar(make_bars, strategy_options):
    def entry(enter_position, args):
        if args.bar.close > 5:
            enter_position()

    bars = make_bars(
        {"close": 2, "open": 1},
        {"close": 4, "open": 3},
        {"close": 6, "open": 5},
        {"close": 8, "open": 7},
        {"close": 10, "open": 9},
    )
    trades = backtest(RuleStrategy(entry_rule=entry, exit_rule=_never), bars, _opts(strategy_options))
    assert len(trades) == 1
    assert trades[0].entry_time == bars[3].time
    assert trades[0].entry_price == 7


def test_entry_not_taken_when_condition_never_met(make_bars, strategy_options):
    def entry(enter_position, args):
        if args.bar.close > 10:
            enter_position()

    trades = backtest(RuleStrategy(entry_rule=entry), make_bars(1, 2, 3, 4, 5), _opts(strategy_options))
    assert trades == []


def test_exit_rule_closes_at_next_open(make_bars, strategy_options):
    def exit_rule(exit_position, args):
        if args.bar.close > 5:
            exit_position()

    bars = make_bars(
        {"close": 2, "open": 1},
        {"close": 4, "open": 3},
        {"close": 6, "open": 5},
        {"close": 8, "open": 7},
        {"close": 10, "open": 9},
    )
    trades = backtest(RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule), bars, _opts(strategy_options))
    assert len(trades) == 1
    first = trades[0]
    assert first.exit_reason == "exit-rule"
    assert first.exit_time == bars[3].time
    assert first.exit_price == 7
    assert first.holding_period == 1


def test_exit_on_intra_trade_profit_pct(make_bars, strategy_options):
    def exit_rule(exit_position, args):
        if args.position.profit_pct <= -50:
            exit_position()

    bars = make_bars(100, 100, 20, 10, 1)
    trades = backtest(RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule), bars, _opts(strategy_options))
    assert trades[0].exit_time == bars[3].time
    assert trades[0].exit_price == 10


def test_exit_after_max_holding_period(make_bars, strategy_options):
    def exit_rule(exit_position, args):
        if args.position.holding_period >= 3:
            exit_position()

    bars = make_bars(1, 2, 3, 4, 5, 6, 7)
    trades = backtest(RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule), bars, _opts(strategy_options))
    assert trades[0].exit_time == bars[5].time
    assert trades[0].exit_price == 6
    assert trades[0].holding_period == 3


def test_can_execute_multiple_trades(make_bars, strategy_options):
    def entry(enter_position, args):
        if args.bar.close - args.bar.open > 0:
            enter_position()

    def exit_rule(exit_position, args):
        if args.position.profit_pct > Decimal("1.5"):
            exit_position()

    rows = []
    for _ in range(2):
        rows += [
            {"close": 1, "open": 1},
            {"close": 3, "open": 2},
            {"close": 4, "open": 4},
            {"close": 6, "open": 5},
            {"close": 10, "open": 9},
        ]
    rows.append({"close": 11, "open": 11})
    trades = backtest(RuleStrategy(entry_rule=entry, exit_rule=exit_rule), make_bars(*rows), _opts(strategy_options))
    assert len(trades) == 2
    assert all(t.exit_reason == "exit-rule" for t in trades)


def test_custom_bar_type_drives_rules(day, strategy_options):
    rows = [(1, 2, 0), (3, 4, 1), (5, 6, 1), (7, 8, 0), (9, 10, 0), (11, 12, 0)]
    bars = [
        _SignalBar(time=day(idx), open=open_, high=close, low=open_, close=close, go_long=go_long)
        for idx, (open_, close, go_long) in enumerate(rows)
    ]

    def entry(enter_position, args):
        if args.bar.go_long > 0:
            enter_position()

    def exit_rule(exit_position, args):
        if args.bar.go_long < 1:
            exit_position()

    trades = backtest(RuleStrategy(entry_rule=entry, exit_rule=exit_rule), bars, _opts(strategy_options))
    assert len(trades) == 1
    assert trades[0].entry_time == day(2)
    assert trades[0].entry_price == 5
    assert trades[0].exit_time == day(4)
    assert trades[0].exit_price == 9


def test_prep_indicators_output_feeds_rules(make_bars, strategy_options):
    seen = []

    def prep(args):
        return [bar for bar in args.input_series if bar.close >= args.parameters["min_close"]]

    def entry(enter_position, args):
        seen.append(args.bar.close)

    strategy = RuleStrategy(entry_rule=entry, prep_indicators=prep, parameters={"min_close": 3})
    backtest(strategy, make_bars(1, 2, 3, 4), _opts(strategy_options))
    assert seen == [3, 4]


def test_entry_rule_exception_propagates(make_bars, strategy_options):
    def entry(enter_position, args):  # noqa: ARG001
        raise KeyError("boom")

    with pytest.raises(KeyError):
        backtest(RuleStrategy(entry_rule=entry), make_bars(1, 2, 3), _opts(strategy_options))


def test_exit_rule_exception_propagates(make_bars, strategy_options):
    def exit_rule(exit_position, args):  # noqa: ARG001
        raise KeyError("boom")

    with pytest.raises(KeyError):
        backtest(RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule), make_bars(1, 2, 3), _opts(strategy_options))


def test_entering_twice_raises_position_state_error(make_bars, strategy_options):
    def entry(enter_position, args):  # noqa: ARG001
        enter_position()
        enter_position()

    with pytest.raises(PositionStateError):
        backtest(RuleStrategy(entry_rule=entry), make_bars(1, 2), _opts(strategy_options))


def test_exiting_twice_raises_position_state_error(make_bars, strategy_options):
    def exit_rule(exit_position, args):  # noqa: ARG001
        exit_position()
        exit_position()

    with pytest.raises(PositionStateError):
        backtest(RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule), make_bars(1, 2, 3), _opts(strategy_options))


def test_lookback_window_passed_to_entry_and_exit_rules(make_bars, strategy_options):
    entry_windows = []
    exit_windows = []

    def entry(enter_position, args):
        entry_windows.append(tuple(bar.close for bar in args.lookback))
        enter_position()

    def exit_rule(exit_position, args):  # noqa: ARG001
        exit_windows.append(tuple(bar.close for bar in args.lookback))

    strategy = RuleStrategy(entry_rule=entry, exit_rule=exit_rule, lookback_period=2)
    backtest(strategy, make_bars(1, 2, 3, 4), _opts(strategy_options))
    assert entry_windows == [(1, 2)]
    assert exit_windows == [(3, 4)]


def test_lookback_longer_than_series_rejected(make_bars, strategy_options):
    strategy = RuleStrategy(entry_rule=_enter_always, lookback_period=30)
    with pytest.raises(BacktestConfigError):
        backtest(strategy, make_bars(1, 2, 3), _opts(strategy_options))


def test_invalid_lookback_period_rejected(make_bars, strategy_options):
    strategy = RuleStrategy(entry_rule=_enter_always, lookback_period=0)
    with pytest.raises(BacktestConfigError):
        backtest(strategy, make_bars(1, 2, 3), _opts(strategy_options))


def test_default_order_size_is_ninety_percent_of_equity(make_bars, strategy_options, caplog):
    with caplog.at_level("WARNING", logger="strategy_backtest"):
        trades = backtest(RuleStrategy(entry_rule=_enter_always), make_bars(10, 10, 12), _opts(strategy_options))
    assert trades[0].size == 90
    assert any("order_size" in rec.getMessage() for rec in caplog.records)
    assert any("fees" in rec.getMessage() for rec in caplog.records)


def test_fixed_units_and_bare_number_order_sizes(make_bars, strategy_options):
    fixed = RuleStrategy(entry_rule=_enter_always, order_size=lambda: FixedUnits(3))
    bare = RuleStrategy(entry_rule=_enter_always, order_size=lambda: 7)
    assert backtest(fixed, make_bars(10, 10, 12), _opts(strategy_options))[0].size == 3
    assert backtest(bare, make_bars(10, 10, 12), _opts(strategy_options))[0].size == 7


def test_percentage_size_floors_with_leverage_and_multiplier(make_bars):
    options = StrategyOptions(initial_capital=1000, leverage=7, contract_multiplier="0.001")
    strategy = RuleStrategy(entry_rule=_enter_always, order_size=lambda: PercentageOfEquity(90))
    trades = backtest(strategy, make_bars(100, 100, 120), BacktestOptions(strategy_options=options))
    assert trades[0].size == 63000
    # (120 - 100) * 63000 * 0.001
    assert trades[0].profit == Decimal("1260")
    assert trades[0].leverage == 7


def test_working_capital_accumulates_trade_profits(make_bars, strategy_options):
    def exit_rule(exit_position, args):  # noqa: ARG001
        exit_position()

    strategy = RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule, order_size=lambda: FixedUnits(1))
    result = run_backtest(make_bars(10, 10, 12, 14, 13, 15, 16), strategy, _opts(strategy_options))
    assert result.num_trades == 2
    assert result.final_capital == Decimal(1000) + sum(t.profit for t in result.trades)
    assert result.trades[-1].exit_reason == "finalize"


def test_sizing_uses_working_capital_after_earlier_trades(make_bars, strategy_options):
    def exit_rule(exit_position, args):  # noqa: ARG001
        exit_position()

    strategy = RuleStrategy(entry_rule=_enter_always, exit_rule=exit_rule)
    # Without leverage profit is the per-unit move: 10 -> 110 earns 100.
    trades = backtest(strategy, make_bars(10, 10, 10, 110, 10, 10), _opts(strategy_options))
    assert trades[0].size == 90
    assert trades[0].profit == 100
    # 1100 * 0.9 / 10
    assert trades[1].size == 99


def test_fees_subtracted_from_profit(make_bars, strategy_options):
    strategy = RuleStrategy(entry_rule=_enter_always, order_size=lambda: FixedUnits(10), fees=lambda: Decimal("0.5"))
    trades = backtest(strategy, make_bars(100, 100, 110), _opts(strategy_options))
    # Unit profit 10 minus 10 * 0.5 / 100 * 2.
    assert trades[0].profit == Decimal("9.9")


def test_pending_entry_that_never_fills_produces_no_trade(make_bars, strategy_options):
    def entry(enter_position, args):  # noqa: ARG001
        enter_position(entry_price=1000)

    result = run_backtest(make_bars(1, 2, 3), RuleStrategy(entry_rule=entry), _opts(strategy_options))
    assert result.trades == []
    assert result.final_capital == 1000


def test_record_trailing_stop_series(make_bars, strategy_options):
    strategy = RuleStrategy(entry_rule=_enter_always, trailing_stop_loss=lambda args: args.bar.close * Decimal("0.5"))
    bars = make_bars(100, 200, 300, 200, 500, 400, 800)
    trades = backtest(strategy, bars, _opts(strategy_options, record_stop_price=True))
    assert len(trades) == 1
    series = trades[0].stop_price_series
    assert [item.time for item in series] == [bar.time for bar in bars[1:]]
    assert [item.value for item in series] == [100, 150, 150, 250, 250, 400]


def test_stop_series_not_recorded_by_default(make_bars, strategy_options):
    strategy = RuleStrategy(entry_rule=_enter_always, trailing_stop_loss=lambda args: args.bar.close * Decimal("0.5"))
    trades = backtest(strategy, make_bars(100, 200, 300), _opts(strategy_options))
    assert trades[0].stop_price_series is None
    assert trades[0].risk_series is None


def test_stop_loss_wins_when_bar_hits_both_stop_and_target(make_bars, strategy_options):
    strategy = RuleStrategy(
        entry_rule=_enter_always,
        stop_loss=lambda args: args.entry_price * Decimal("0.1"),
        profit_target=lambda args: args.entry_price * Decimal("0.1"),
    )
    bars = make_bars(100, 100, {"close": 100, "high": 120, "low": 80})
    trades = backtest(strategy, bars, _opts(strategy_options))
    assert trades[0].exit_reason == "stop-loss"
    assert trades[0].exit_price == 90


def test_execution_callback_receives_enter_and_exit_events(make_bars, strategy_options):
    events = []
    run_backtest(
        make_bars(10, 10, 12),
        RuleStrategy(entry_rule=_enter_always),
        _opts(strategy_options),
        execution_callback=events.append,
    )
    assert [e["event_name"] for e in events] == ["enter", "exit"]
    assert events[0]["bar_index"] == 1
    assert events[0]["entry_price"] == "10"
    assert events[1]["reason"] == "finalize"
    assert events[1]["exit_price"] == "12"


def test_rerun_is_deterministic(make_bars, strategy_options):
    strategy = RuleStrategy(entry_rule=_enter_always, stop_loss=lambda args: args.entry_price * Decimal("0.2"))
    bars = make_bars(100, 100, 90, 80, 70, 95, 110)
    first = backtest(strategy, bars, _opts(strategy_options))
    second = backtest(strategy, bars, _opts(strategy_options))
    assert first == second


def test_trade_carries_strategy_options_snapshot(make_bars):
    options = StrategyOptions(initial_capital=1000, leverage=7, contract_multiplier="0.001", symbol="XBTUSDTM")
    trades = backtest(RuleStrategy(entry_rule=_enter_always), make_bars(100, 100, 101), BacktestOptions(options))
    assert trades[0].strategy == options.to_json()
    assert '"symbol":"XBTUSDTM"' in trades[0].strategy
