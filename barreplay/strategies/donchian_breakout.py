"""barreplay.strategies.donchian_breakout

Channel breakout with resting stop orders.

While flat, a buy stop sits at the channel high (and a sell stop at the
channel low when allow_short). Orders are cancelled and re-placed every
``refresh`` bars so they track the channel. A long exits when the close
drops below the previous bar's channel low, a short when it rises above
the previous bar's channel high.
"""

from __future__ import annotations

from dataclasses import dataclass

from barreplay.backtest.actions import HOLD, Action, Cancel, Entry, Exit
from barreplay.core.types import OrderKind
from barreplay.strategies.base import Strategy, at, held_side, lookup
from barreplay.strategies.registry import register


@register("donchian_breakout", description="Stop entries at the Donchian channel bounds.")
@dataclass(frozen=True, slots=True)
class DonchianBreakoutStrategy(Strategy):
    period: int = 20
    refresh: int = 5
    allow_short: bool = False

    def __post_init__(self) -> None:
        if self.period < 2:
            raise ValueError("period must be >= 2")
        if self.refresh < 3:
            raise ValueError("refresh must be >= 3")

    def __call__(self, candles, index, indicators, params, open_positions) -> Action:
        bands = lookup(indicators, "donchian", self.period, period=self.period)
        upper, lower = at(bands["upper"], index), at(bands["lower"], index)
        prev_upper, prev_lower = at(bands["upper"], index - 1), at(bands["lower"], index - 1)
        if upper is None or lower is None or prev_upper is None or prev_lower is None:
            return HOLD

        close = candles[index].close
        held = held_side(open_positions)
        if held == "long":
            return Exit() if close < prev_lower else HOLD
        if held == "short":
            return Exit() if close > prev_upper else HOLD

        slot = index % self.refresh
        if slot == 0:
            return Cancel()
        if slot == 1:
            return Entry.long(OrderKind.STOP, upper)
        if slot == 2 and self.allow_short:
            return Entry.short(OrderKind.STOP, lower)
        return HOLD
