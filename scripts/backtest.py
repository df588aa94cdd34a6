import argparse
from decimal import Decimal

from strategy_backtest.runtime import RunOptions, run


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a bar-by-bar strategy backtest over a CSV of OHLC bars.")
    parser.add_argument("--data-csv", required=True, help="CSV with time/open/high/low/close[/volume] columns.")
    parser.add_argument("--strategy", default="oneshot", help="Strategy key (oneshot, sma_reversion).")
    parser.add_argument("--hold-bars", type=int, default=20, help="Hold duration for oneshot strategy.")
    parser.add_argument("--sma-period", type=int, default=30, help="Moving average period for sma_reversion.")
    parser.add_argument("--stop-loss-pct", type=Decimal, default=None)
    parser.add_argument("--trailing-stop-pct", type=Decimal, default=None)
    parser.add_argument("--profit-target-pct", type=Decimal, default=None)
    parser.add_argument("--telemetry-dir", default=None, help="Write trades/executions JSONL here.")
    parser.add_argument("--mc-iterations", type=int, default=None, help="Monte Carlo iterations (0 disables).")
    parser.add_argument("--mc-samples", type=int, default=None, help="Trades drawn per Monte Carlo iteration.")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    run(
        RunOptions(
            data_path=args.data_csv,
            strategy=args.strategy,
            hold_bars=args.hold_bars,
            sma_period=args.sma_period,
            stop_loss_pct=args.stop_loss_pct,
            trailing_stop_pct=args.trailing_stop_pct,
            profit_target_pct=args.profit_target_pct,
            telemetry_dir=args.telemetry_dir,
            mc_iterations=args.mc_iterations,
            mc_samples=args.mc_samples,
            debug=args.debug,
        )
    )


if __name__ == "__main__":
    main()
