from .analyze import Analysis, SharpeOptions, analyze
from .drawdown import compute_drawdown
from .equity_curve import compute_equity_curve
from .metrics import average_daily_return, calmar, pct_changes, sharpe
from .monte_carlo import MonteCarloSummary, monte_carlo, summarize_monte_carlo
from .optimize import (
    IterationResult,
    OptimizationOptions,
    OptimizationResult,
    ParameterDef,
    optimize,
    with_parameters,
)

__all__ = [
    "Analysis",
    "SharpeOptions",
    "analyze",
    "compute_drawdown",
    "compute_equity_curve",
    "average_daily_return",
    "calmar",
    "pct_changes",
    "sharpe",
    "MonteCarloSummary",
    "monte_carlo",
    "summarize_monte_carlo",
    "IterationResult",
    "OptimizationOptions",
    "OptimizationResult",
    "ParameterDef",
    "optimize",
    "with_parameters",
]
