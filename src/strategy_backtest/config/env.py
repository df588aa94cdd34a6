from __future__ import annotations

import os
from decimal import Decimal

from dotenv import load_dotenv

from strategy_backtest.core import as_decimal

load_dotenv()

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})


def _raw(name: str) -> str:
    # Quotes survive some shells and .env editors.
    return (os.getenv(name) or "").strip().strip('"').strip("'").strip()


def env_str_optional(name: str, *, upper: bool = False) -> str | None:
    raw = _raw(name)
    if not raw:
        return None
    return raw.upper() if upper else raw


def env_int(name: str, default: int) -> int:
    raw = _raw(name)
    return int(raw) if raw else default


def env_int_optional(name: str) -> int | None:
    raw = _raw(name)
    return int(raw) if raw else None


def env_float(name: str, default: float) -> float:
    raw = _raw(name)
    return float(raw) if raw else default


def env_bool(name: str, default: bool = False) -> bool:
    raw = _raw(name).lower()
    if not raw:
        return default
    return raw in _TRUE_VALUES


def env_decimal(name: str, default: Decimal | int | str) -> Decimal:
    raw = _raw(name)
    return as_decimal(raw if raw else default)


def env_decimal_optional(name: str) -> Decimal | None:
    raw = _raw(name)
    return as_decimal(raw) if raw else None
