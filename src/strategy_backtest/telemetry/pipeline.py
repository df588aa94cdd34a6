from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

from .logging import get_logger

TRADES_STREAM = "trades"
EXECUTIONS_STREAM = "executions"
SUMMARY_STREAM = "summary"


def _stamp(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return _stamp(value)
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


@dataclass(frozen=True)
class TelemetryConfig:
    strategy: str
    run_id: str
    telemetry_dir: str
    trades_file: str = "trades.jsonl"
    executions_file: str = "executions.jsonl"
    summary_file: str = "summary.jsonl"
    echo: bool = False

    def stream_file(self, stream: str) -> str:
        files = {
            TRADES_STREAM: self.trades_file,
            EXECUTIONS_STREAM: self.executions_file,
            SUMMARY_STREAM: self.summary_file,
        }
        try:
            return files[stream]
        except KeyError:
            raise ValueError(f"Unknown telemetry stream: {stream}") from None


class TelemetryRouter:
    """Appends one JSON object per line for each backtest stream."""

    def __init__(self, cfg: TelemetryConfig) -> None:
        self.cfg = cfg
        self._logger = get_logger("strategy_backtest.telemetry")
        self._root = Path(cfg.telemetry_dir)
        self._root.mkdir(parents=True, exist_ok=True)
        self._counts = {TRADES_STREAM: 0, EXECUTIONS_STREAM: 0, SUMMARY_STREAM: 0}

    @classmethod
    def from_env(cls, *, strategy: str, telemetry_dir: str | None = None, echo: bool = False) -> "TelemetryRouter":
        run_id = (os.getenv("TELEMETRY_RUN_ID") or "").strip()
        if not run_id:
            run_id = f"{strategy.strip() or 'backtest'}-{datetime.now(timezone.utc):%Y%m%dT%H%M%SZ}"
        return cls(
            TelemetryConfig(
                strategy=strategy.strip(),
                run_id=run_id,
                telemetry_dir=(telemetry_dir or os.getenv("TELEMETRY_DIR") or "artifacts/telemetry").strip(),
                trades_file=(os.getenv("TELEMETRY_TRADES_FILE") or "trades.jsonl").strip(),
                executions_file=(os.getenv("TELEMETRY_EXECUTIONS_FILE") or "executions.jsonl").strip(),
                summary_file=(os.getenv("TELEMETRY_SUMMARY_FILE") or "summary.jsonl").strip(),
                echo=echo,
            )
        )

    def path_for(self, stream: str) -> str:
        return str(self._root / self.cfg.stream_file(stream))

    @property
    def trades_path(self) -> str:
        return self.path_for(TRADES_STREAM)

    @property
    def executions_path(self) -> str:
        return self.path_for(EXECUTIONS_STREAM)

    @property
    def summary_path(self) -> str:
        return self.path_for(SUMMARY_STREAM)

    def count(self, stream: str) -> int:
        return self._counts[stream]

    def emit_trade(self, payload: Mapping[str, Any]) -> None:
        self._append(TRADES_STREAM, payload)

    def emit_execution(self, payload: Mapping[str, Any]) -> None:
        self._append(EXECUTIONS_STREAM, payload)

    def emit_summary(self, payload: Mapping[str, Any]) -> None:
        self._append(SUMMARY_STREAM, payload)

    def _append(self, stream: str, payload: Mapping[str, Any]) -> None:
        self._counts[stream] += 1
        record: dict[str, Any] = {
            "recorded_at": _stamp(datetime.now(timezone.utc)),
            "stream": stream,
            "seq": self._counts[stream],
            "run_id": self.cfg.run_id,
            "strategy": self.cfg.strategy,
            **payload,
        }
        line = json.dumps(record, default=_encode, separators=(",", ":"))
        with open(self.path_for(stream), "a", encoding="utf-8") as f:
            f.write(line + "\n")
        if self.cfg.echo:
            self._logger.info("telemetry %s", line)
