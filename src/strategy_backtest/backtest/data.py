from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from strategy_backtest.strategy.base import Bar

_TIME_KEYS = ("time", "timestamp", "date", "datetime", "ts")


def _lowered(row: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k).strip().lower(): v for k, v in row.items() if k is not None}


def _pick(row: dict[str, Any], *keys: str) -> str:
    for key in keys:
        if key in row:
            return str(row[key])
    raise KeyError(f"Missing one of columns: {keys}")


def _pick_optional(row: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = row.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text != "":
            return text
    return None


def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw if raw.tzinfo is not None else raw.replace(tzinfo=timezone.utc)
    text = str(raw).strip()
    if text == "":
        raise ValueError("Empty timestamp")

    try:
        whole = int(text)
    except ValueError:
        whole = None
    if whole is not None:
        # Unix seconds or milliseconds.
        if abs(whole) >= 100_000_000_000:
            return datetime.fromtimestamp(whole / 1000.0, tz=timezone.utc)
        return datetime.fromtimestamp(float(whole), tz=timezone.utc)

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def bar_from_row(row: Mapping[str, Any]) -> Bar:
    lowered = _lowered(row)
    close = _pick(lowered, "close", "c", "price", "last")
    return Bar(
        time=parse_timestamp(_pick(lowered, *_TIME_KEYS)),
        open=_pick_optional(lowered, "open", "o") or close,
        high=_pick_optional(lowered, "high", "h") or close,
        low=_pick_optional(lowered, "low", "l") or close,
        close=close,
        volume=_pick_optional(lowered, "volume", "vol", "v") or "0",
    )


def bars_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[Bar]:
    bars: list[Bar] = []
    for idx, row in enumerate(rows, start=1):
        try:
            bars.append(bar_from_row(row))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid bar at row {idx}: {exc}") from exc
    return bars


def load_bars_csv(path: str | Path) -> list[Bar]:
    csv_path = Path(path)
    with csv_path.open("r", newline="", encoding="utf-8-sig") as f:
        return bars_from_rows(csv.DictReader(f))
