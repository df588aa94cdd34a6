from __future__ import annotations

import copy
import dataclasses
import itertools
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from strategy_backtest.backtest.engine import BacktestOptions, run_backtest
from strategy_backtest.backtest.trade import Trade
from strategy_backtest.core import as_decimal, decimal_math
from strategy_backtest.telemetry import get_logger

_LOG = get_logger(__name__)

SearchDirection = Literal["max", "min"]
ObjectiveFn = Callable[[list[Trade]], Any]


@dataclass(frozen=True)
class ParameterDef:
    name: str
    starting_value: Decimal
    ending_value: Decimal
    step_size: Decimal

    def __post_init__(self) -> None:
        for attr in ("starting_value", "ending_value", "step_size"):
            object.__setattr__(self, attr, as_decimal(getattr(self, attr)))
        if self.step_size <= 0:
            raise ValueError(f"Parameter {self.name!r} needs a positive step_size, got {self.step_size}")
        if self.ending_value < self.starting_value:
            raise ValueError(f"Parameter {self.name!r} ends before it starts")

    def values(self) -> list[Decimal]:
        out: list[Decimal] = []
        value = self.starting_value
        with decimal_math():
            while value <= self.ending_value:
                out.append(value)
                value = value + self.step_size
        return out


@dataclass(frozen=True)
class OptimizationOptions:
    search_direction: SearchDirection = "max"
    record_all_results: bool = False


@dataclass(frozen=True)
class IterationResult:
    parameter_values: dict[str, Decimal]
    result: Any
    num_trades: int


@dataclass(frozen=True)
class OptimizationResult:
    best_result: Any
    best_parameter_values: dict[str, Decimal]
    all_results: list[IterationResult] | None = field(default=None)


def with_parameters(strategy: Any, values: dict[str, Any]) -> Any:
    merged = {**(getattr(strategy, "parameters", None) or {}), **values}
    if dataclasses.is_dataclass(strategy) and not isinstance(strategy, type):
        return dataclasses.replace(strategy, parameters=merged)
    clone = copy.copy(strategy)
    clone.parameters = merged
    return clone


def _is_better(candidate: Any, best: Any, direction: SearchDirection) -> bool:
    if direction == "max":
        return candidate > best
    return candidate < best


def optimize(
    strategy: Any,
    parameters: Sequence[ParameterDef],
    objective: ObjectiveFn,
    bars: Sequence[Any],
    options: OptimizationOptions | None = None,
    *,
    backtest_options: BacktestOptions,
) -> OptimizationResult:
    """Grid search every parameter combination; the first combination wins ties."""
    opts = options or OptimizationOptions()
    if opts.search_direction not in ("max", "min"):
        raise ValueError(f"search_direction must be 'max' or 'min', got {opts.search_direction!r}")
    if not parameters:
        raise ValueError("Expected at least one parameter to optimize")

    names = [p.name for p in parameters]
    grids = [p.values() for p in parameters]
    series = list(bars)

    best_result: Any = None
    best_values: dict[str, Decimal] = {}
    all_results: list[IterationResult] = []

    for combo in itertools.product(*grids):
        values = dict(zip(names, combo))
        result = run_backtest(series, with_parameters(strategy, values), backtest_options)
        score = objective(result.trades)
        _LOG.debug("optimize values=%s result=%s trades=%d", values, score, result.num_trades)
        if opts.record_all_results:
            all_results.append(IterationResult(parameter_values=values, result=score, num_trades=result.num_trades))
        if best_result is None or _is_better(score, best_result, opts.search_direction):
            best_result = score
            best_values = values

    return OptimizationResult(
        best_result=best_result,
        best_parameter_values=best_values,
        all_results=all_results if opts.record_all_results else None,
    )
