from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from strategy_backtest.analysis import Analysis, analyze, monte_carlo, summarize_monte_carlo
from strategy_backtest.backtest import BacktestResult, load_bars_csv, run_backtest
from strategy_backtest.config import BacktestSettings, load_backtest_settings
from strategy_backtest.strategy import OneShotLongStrategy, sma_reversion_strategy
from strategy_backtest.telemetry import TelemetryRouter, configure_logging, get_logger

_LOG = get_logger(__name__)


@dataclass(frozen=True)
class RunOptions:
    data_path: str
    strategy: str = "oneshot"
    hold_bars: int = 20
    sma_period: int = 30
    stop_loss_pct: Decimal | None = None
    trailing_stop_pct: Decimal | None = None
    profit_target_pct: Decimal | None = None
    telemetry_dir: str | None = None
    mc_iterations: int | None = None
    mc_samples: int | None = None
    debug: bool = False


def _strategy_from_name(options: RunOptions, settings: BacktestSettings) -> Any:
    key = options.strategy.strip().lower()
    if key in {"oneshot", "one_shot", "one-shot"}:
        return OneShotLongStrategy(
            hold_bars=options.hold_bars,
            fee_rate=settings.fee_rate,
            lookback_period=settings.lookback_period,
        )
    if key in {"sma_reversion", "mean_reversion", "sma"}:
        strategy = sma_reversion_strategy(
            period=options.sma_period,
            stop_loss_pct=options.stop_loss_pct,
            trailing_stop_pct=options.trailing_stop_pct,
            profit_target_pct=options.profit_target_pct,
            fee_rate=settings.fee_rate,
        )
        strategy.lookback_period = settings.lookback_period
        return strategy
    raise ValueError(f"Unsupported strategy: {options.strategy}")


def _print_summary(result: BacktestResult, analysis: Analysis, bar_count: int) -> None:
    print(f"bars={bar_count} trades={result.num_trades}")
    print(f"initial_capital={result.initial_capital} final_capital={result.final_capital}")
    print(f"net_profit={result.net_profit} profit_pct={analysis.profit_pct:.2f}")
    print(f"win_rate_pct={analysis.percent_profitable:.2f} max_drawdown_pct={analysis.max_drawdown_pct:.2f}")
    if analysis.expectancy is not None:
        print(f"expectancy={analysis.expectancy:.4f} system_quality={analysis.system_quality}")
    if analysis.profit_factor is not None:
        print(f"profit_factor={analysis.profit_factor:.4f}")
    if analysis.sharpe_ratio is not None:
        print(f"sharpe_ratio={analysis.sharpe_ratio:.4f}")


def run(options: RunOptions) -> BacktestResult:
    settings = load_backtest_settings()
    configure_logging("DEBUG" if options.debug else settings.log_level)

    bars = load_bars_csv(options.data_path)
    strategy = _strategy_from_name(options, settings)
    _LOG.info("backtest start strategy=%s bars=%d data=%s", options.strategy, len(bars), options.data_path)

    telemetry_dir = options.telemetry_dir or settings.telemetry_dir
    telemetry = None
    if telemetry_dir:
        telemetry = TelemetryRouter.from_env(strategy=options.strategy, telemetry_dir=telemetry_dir, echo=options.debug)

    result = run_backtest(
        bars,
        strategy,
        settings.to_backtest_options(),
        execution_callback=telemetry.emit_execution if telemetry is not None else None,
    )
    analysis = analyze(result.initial_capital, result.trades, settings.to_sharpe_options())
    if telemetry is not None:
        for trade in result.trades:
            telemetry.emit_trade(trade.to_dict())
        telemetry.emit_summary({"input_bars": len(bars), **analysis.to_dict()})
        print(f"trades_jsonl={telemetry.trades_path}")
        print(f"executions_jsonl={telemetry.executions_path}")
        print(f"summary_jsonl={telemetry.summary_path}")
    _print_summary(result, analysis, len(bars))

    iterations = options.mc_iterations if options.mc_iterations is not None else settings.mc_iterations
    samples = options.mc_samples if options.mc_samples is not None else settings.mc_samples
    if iterations > 0 and samples > 0:
        sampled = monte_carlo(result.trades, iterations, samples, seed=settings.mc_seed)
        summary = summarize_monte_carlo(result.initial_capital, sampled)
        if summary is None:
            print("monte_carlo=skipped reason=no-trades")
        else:
            print(
                f"monte_carlo iterations={summary.iterations} "
                f"final_capital_p5={summary.final_capital_p5} "
                f"final_capital_p50={summary.final_capital_p50} "
                f"final_capital_p95={summary.final_capital_p95}"
            )
            print(
                f"monte_carlo max_drawdown_pct_p5={summary.max_drawdown_pct_p5:.2f} "
                f"max_drawdown_pct_p50={summary.max_drawdown_pct_p50:.2f} "
                f"max_drawdown_pct_p95={summary.max_drawdown_pct_p95:.2f}"
            )
    return result
