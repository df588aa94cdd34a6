from decimal import Decimal

from strategy_backtest.backtest import pnl
from strategy_backtest.core import LONG, SHORT


def test_unit_profit_follows_direction():
    assert pnl.unit_profit(LONG, Decimal(100), Decimal(110)) == 10
    assert pnl.unit_profit(SHORT, Decimal(100), Decimal(110)) == -10


def test_unit_profit_pct_is_relative_to_entry():
    assert pnl.unit_profit_pct(LONG, Decimal(200), Decimal(250)) == 25
    assert pnl.unit_profit_pct(SHORT, Decimal(200), Decimal(150)) == 25


def test_realised_pnl_scales_by_size_and_multiplier():
    assert pnl.realised_pnl(LONG, Decimal(5), Decimal(10), Decimal(1260000), Decimal("0.001")) == 6300


def test_return_on_equity_includes_leverage():
    assert pnl.return_on_equity(SHORT, Decimal(10), Decimal(5), Decimal(7)) == 350


def test_risk_and_r_multiple():
    risk = pnl.unit_risk(LONG, Decimal(100), Decimal(80))
    assert risk == 20
    assert pnl.risk_pct(risk, Decimal(100)) == 20
    assert pnl.r_multiple(Decimal(-20), risk) == -1
    assert pnl.r_multiple(Decimal(10), None) is None
    assert pnl.r_multiple(Decimal(10), Decimal(0)) is None


def test_round_trip_fee_charges_both_legs():
    assert pnl.round_trip_fee(Decimal(90), Decimal("5.5")) == Decimal("9.9")


def test_stop_and_target_prices_from_distance():
    assert pnl.stop_price_from_distance(LONG, Decimal(100), Decimal(20)) == 80
    assert pnl.stop_price_from_distance(SHORT, Decimal(100), Decimal(20)) == 120
    assert pnl.target_price_from_distance(LONG, Decimal(100), Decimal(10)) == 110
    assert pnl.target_price_from_distance(SHORT, Decimal(100), Decimal(10)) == 90


def test_tighter_stop_never_loosens():
    assert pnl.tighter_stop(LONG, Decimal(80), Decimal(70)) == 80
    assert pnl.tighter_stop(LONG, Decimal(80), Decimal(90)) == 90
    assert pnl.tighter_stop(SHORT, Decimal(120), Decimal(130)) == 120
    assert pnl.tighter_stop(SHORT, Decimal(120), Decimal(110)) == 110
