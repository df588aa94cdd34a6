from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from strategy_backtest.core import LONG, as_decimal_optional
from strategy_backtest.strategy.base import EnterPositionFn, EntryRuleArgs, ExitPositionFn, FixedUnits, PositionRuleArgs


@dataclass(frozen=True)
class OneShotLongStrategy:
    hold_bars: int = 20
    units: int = 1
    fee_rate: Decimal | None = None
    lookback_period: int = 1
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def entry_rule(self, enter_position: EnterPositionFn, args: EntryRuleArgs) -> None:  # noqa: ARG002
        enter_position(direction=LONG, entry_reason="oneshot-entry")

    def exit_rule(self, exit_position: ExitPositionFn, args: PositionRuleArgs) -> None:
        hold_bars = int(self.parameters.get("hold_bars", self.hold_bars))
        if args.position.holding_period >= hold_bars:
            exit_position()

    def order_size(self) -> FixedUnits:
        return FixedUnits(self.units)

    def fees(self) -> Decimal | None:
        return as_decimal_optional(self.fee_rate)
