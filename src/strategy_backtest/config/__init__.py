from .env import env_bool, env_decimal, env_decimal_optional, env_float, env_int, env_int_optional, env_str_optional
from .settings import BacktestSettings, load_backtest_settings
from .symbol_profile import SymbolProfile, get_symbol_profile

__all__ = [
    "BacktestSettings",
    "load_backtest_settings",
    "env_str_optional",
    "env_int",
    "env_int_optional",
    "env_float",
    "env_bool",
    "env_decimal",
    "env_decimal_optional",
    "SymbolProfile",
    "get_symbol_profile",
]
