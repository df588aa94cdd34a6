from datetime import datetime, timedelta, timezone
from pathlib import Path
import shutil
import sys
from uuid import uuid4

import pytest

# Keep import bootstrap in one place for local pytest runs without installation.
SRC_PATH = str(Path(__file__).resolve().parent / "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from strategy_backtest.strategy.base import Bar, StrategyOptions  # noqa: E402

BASE_TIME = datetime(2018, 10, 20, tzinfo=timezone.utc)


def _day(offset: int) -> datetime:
    return BASE_TIME + timedelta(days=offset)


def _make_bars(*rows) -> list[Bar]:
    """Daily bars from closes, or from dicts holding a close plus open/high/low overrides."""
    bars = []
    for idx, row in enumerate(rows):
        if isinstance(row, dict):
            fields = dict(row)
            close = fields.pop("close")
            bars.append(Bar.from_close(_day(idx), close, **fields))
        else:
            bars.append(Bar.from_close(_day(idx), row))
    return bars


@pytest.fixture
def day():
    return _day


@pytest.fixture
def make_bars():
    return _make_bars


@pytest.fixture
def strategy_options() -> StrategyOptions:
    return StrategyOptions(initial_capital=1000)


@pytest.fixture
def tmp_path():
    """Per-test writable directory inside the repo workspace, removed afterwards."""
    root = Path(__file__).resolve().parent / "tmp_testdata"
    root.mkdir(parents=True, exist_ok=True)
    test_dir = root / f"case_{uuid4().hex[:10]}"
    test_dir.mkdir(parents=True, exist_ok=True)
    try:
        yield test_dir
    finally:
        shutil.rmtree(test_dir, ignore_errors=True)
