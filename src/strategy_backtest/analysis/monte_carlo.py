from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from strategy_backtest.backtest.trade import Trade
from strategy_backtest.telemetry import get_logger

from .analyze import analyze

_LOG = get_logger(__name__)


def monte_carlo(
    trades: Sequence[Trade],
    num_iterations: int,
    num_samples: int,
    *,
    seed: int | None = None,
    rng: random.Random | None = None,
) -> list[list[Trade]]:
    """Resample ``trades`` with replacement into ``num_iterations`` sequences of ``num_samples``."""
    if num_iterations < 0 or num_samples < 0:
        raise ValueError("num_iterations and num_samples must be non-negative")
    if not trades:
        return []
    source = rng if rng is not None else random.Random(seed)
    population = list(trades)
    return [source.choices(population, k=num_samples) for _ in range(num_iterations)]


@dataclass(frozen=True)
class MonteCarloSummary:
    iterations: int
    final_capital_p5: Decimal
    final_capital_p50: Decimal
    final_capital_p95: Decimal
    max_drawdown_pct_p5: Decimal
    max_drawdown_pct_p50: Decimal
    max_drawdown_pct_p95: Decimal


def _percentile(sorted_values: Sequence[Decimal], pct: int) -> Decimal:
    # Nearest-rank on an ascending list.
    idx = max(0, min(len(sorted_values) - 1, round(pct / 100 * (len(sorted_values) - 1))))
    return sorted_values[idx]


def summarize_monte_carlo(starting_capital: Any, samples: Sequence[Sequence[Trade]]) -> MonteCarloSummary | None:
    if not samples:
        return None
    analyses = [analyze(starting_capital, list(sample)) for sample in samples]
    finals = sorted(a.final_capital for a in analyses)
    drawdowns = sorted(a.max_drawdown_pct for a in analyses)
    _LOG.debug("monte carlo summary iterations=%d", len(analyses))
    return MonteCarloSummary(
        iterations=len(analyses),
        final_capital_p5=_percentile(finals, 5),
        final_capital_p50=_percentile(finals, 50),
        final_capital_p95=_percentile(finals, 95),
        max_drawdown_pct_p5=_percentile(drawdowns, 5),
        max_drawdown_pct_p50=_percentile(drawdowns, 50),
        max_drawdown_pct_p95=_percentile(drawdowns, 95),
    )
