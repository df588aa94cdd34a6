from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from strategy_backtest.analysis.analyze import SharpeOptions
from strategy_backtest.analysis.metrics import DEFAULT_RISK_FREE_RATE, DEFAULT_SHARPE_COEFFICIENT
from strategy_backtest.backtest.engine import BacktestOptions
from strategy_backtest.config.env import (
    env_bool,
    env_decimal,
    env_decimal_optional,
    env_float,
    env_int,
    env_int_optional,
    env_str_optional,
)
from strategy_backtest.config.symbol_profile import get_symbol_profile
from strategy_backtest.strategy.base import StrategyOptions


@dataclass(frozen=True)
class BacktestSettings:
    initial_capital: Decimal
    leverage: Decimal | None
    contract_multiplier: Decimal | None
    symbol: str | None
    record_stop_price: bool
    record_risk: bool
    lookback_period: int
    fee_rate: Decimal | None
    mc_iterations: int
    mc_samples: int
    mc_seed: int | None
    risk_free_rate: float
    sharpe_coefficient: float
    telemetry_dir: str | None
    log_level: str

    def to_strategy_options(self) -> StrategyOptions:
        return StrategyOptions(
            initial_capital=self.initial_capital,
            leverage=self.leverage,
            contract_multiplier=self.contract_multiplier,
            symbol=self.symbol,
        )

    def to_backtest_options(self) -> BacktestOptions:
        return BacktestOptions(
            strategy_options=self.to_strategy_options(),
            record_stop_price=self.record_stop_price,
            record_risk=self.record_risk,
        )

    def to_sharpe_options(self) -> SharpeOptions:
        return SharpeOptions(risk_free_rate=self.risk_free_rate, coefficient=self.sharpe_coefficient)


def load_backtest_settings() -> BacktestSettings:
    symbol = env_str_optional("SYMBOL", upper=True)
    contract_multiplier = env_decimal_optional("CONTRACT_MULTIPLIER")
    if contract_multiplier is None and symbol is not None:
        contract_multiplier = get_symbol_profile(symbol).contract_multiplier
    initial_capital = env_decimal("INITIAL_CAPITAL", 10_000)
    if initial_capital <= 0:
        raise RuntimeError(f"INITIAL_CAPITAL must be positive, got {initial_capital}")
    return BacktestSettings(
        initial_capital=initial_capital,
        leverage=env_decimal_optional("LEVERAGE"),
        contract_multiplier=contract_multiplier,
        symbol=symbol,
        record_stop_price=env_bool("RECORD_STOP_PRICE"),
        record_risk=env_bool("RECORD_RISK"),
        lookback_period=env_int("LOOKBACK_PERIOD", 1),
        fee_rate=env_decimal_optional("FEE_RATE"),
        mc_iterations=env_int("MC_ITERATIONS", 0),
        mc_samples=env_int("MC_SAMPLES", 0),
        mc_seed=env_int_optional("MC_SEED"),
        risk_free_rate=env_float("SHARPE_RISK_FREE_RATE", DEFAULT_RISK_FREE_RATE),
        sharpe_coefficient=env_float("SHARPE_COEFFICIENT", DEFAULT_SHARPE_COEFFICIENT),
        telemetry_dir=env_str_optional("TELEMETRY_DIR"),
        log_level=env_str_optional("LOG_LEVEL", upper=True) or "INFO",
    )
