"""barreplay.strategies.supertrend_follow

Follow the SuperTrend direction: enter on a flip, exit on the next flip.
"""

from __future__ import annotations

from dataclasses import dataclass

from barreplay.backtest.actions import HOLD, Action, Entry, Exit
from barreplay.strategies.base import Strategy, at, held_side, lookup, param_key
from barreplay.strategies.registry import register


@register("supertrend_follow", description="Trade SuperTrend direction flips.")
@dataclass(frozen=True, slots=True)
class SupertrendFollowStrategy(Strategy):
    period: int = 10
    multiplier: float = 3.0
    allow_short: bool = True

    def __post_init__(self) -> None:
        if self.period < 1:
            raise ValueError("period must be >= 1")
        if self.multiplier <= 0:
            raise ValueError("multiplier must be > 0")

    def __call__(self, candles, index, indicators, params, open_positions) -> Action:
        st = lookup(
            indicators,
            "supertrend",
            param_key(self.period, self.multiplier),
            period=self.period,
            multiplier=self.multiplier,
        )
        now, prev = at(st["direction"], index), at(st["direction"], index - 1)
        if now is None or prev is None:
            return HOLD

        held = held_side(open_positions)
        if held == "long" and now < 0:
            return Exit()
        if held == "short" and now > 0:
            return Exit()
        if held is None and now != prev:
            if now > 0:
                return Entry.long()
            if self.allow_short:
                return Entry.short()
        return HOLD
