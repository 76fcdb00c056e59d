"""barreplay.strategies.ma_crossover

Moving average crossover:
- enter long on the bar the fast MA crosses above the slow MA
- enter short on the opposite cross (when allow_short)
- exit whenever the held side disagrees with the MA order
"""

from __future__ import annotations

from dataclasses import dataclass

from barreplay.backtest.actions import HOLD, Action, Entry, Exit
from barreplay.strategies.base import Strategy, at, held_side, lookup
from barreplay.strategies.registry import register


@register("ma_crossover", description="Fast/slow moving average crossover.")
@dataclass(frozen=True, slots=True)
class MACrossoverStrategy(Strategy):
    fast: int = 10
    slow: int = 50
    average: str = "ema"
    allow_short: bool = False

    def __post_init__(self) -> None:
        if self.fast <= 0 or self.slow <= 0 or self.fast >= self.slow:
            raise ValueError("need 0 < fast < slow")
        if self.average not in ("ema", "sma"):
            raise ValueError("average must be 'ema' or 'sma'")

    def __call__(self, candles, index, indicators, params, open_positions) -> Action:
        fast = lookup(indicators, self.average, self.fast, period=self.fast)
        slow = lookup(indicators, self.average, self.slow, period=self.slow)

        f_now, s_now = at(fast, index), at(slow, index)
        f_prev, s_prev = at(fast, index - 1), at(slow, index - 1)
        if f_now is None or s_now is None or f_prev is None or s_prev is None:
            return HOLD

        held = held_side(open_positions)
        if held == "long" and f_now < s_now:
            return Exit()
        if held == "short" and f_now > s_now:
            return Exit()
        if held is None:
            if f_prev <= s_prev and f_now > s_now:
                return Entry.long()
            if self.allow_short and f_prev >= s_prev and f_now < s_now:
                return Entry.short()
        return HOLD
