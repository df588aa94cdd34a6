from __future__ import annotations

from enum import Enum


class TradeDirection(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def is_long(self) -> bool:
        return self is TradeDirection.LONG


LONG = TradeDirection.LONG
SHORT = TradeDirection.SHORT


def parse_direction(raw: str | TradeDirection | None) -> TradeDirection:
    if isinstance(raw, TradeDirection):
        return raw
    value = (raw or "").strip().lower()
    if not value:
        return LONG
    if value in {"long", "buy", "0"}:
        return LONG
    if value in {"short", "sell", "1"}:
        return SHORT
    raise ValueError("Invalid direction value. Use long/short or buy/sell.")
