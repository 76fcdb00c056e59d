"""barreplay.strategies.rsi_reversion

RSI reversion (long-only):
- long when RSI < oversold
- exit when RSI > exit_level
"""

from __future__ import annotations

from dataclasses import dataclass

from barreplay.backtest.actions import HOLD, Action, Entry, Exit
from barreplay.strategies.base import Strategy, at, held_side, lookup
from barreplay.strategies.registry import register


@register("rsi_reversion", description="Buy oversold RSI, exit on recovery.")
@dataclass(frozen=True, slots=True)
class RSIReversionStrategy(Strategy):
    period: int = 14
    oversold: float = 30.0
    exit_level: float = 50.0

    def __post_init__(self) -> None:
        if self.period < 2:
            raise ValueError("period must be >= 2")
        if not 0.0 <= self.oversold < self.exit_level <= 100.0:
            raise ValueError("need 0 <= oversold < exit_level <= 100")

    def __call__(self, candles, index, indicators, params, open_positions) -> Action:
        r = at(lookup(indicators, "rsi", self.period, period=self.period), index)
        if r is None:
            return HOLD

        held = held_side(open_positions)
        if held is None and r < self.oversold:
            return Entry.long()
        if held is not None and r > self.exit_level:
            return Exit()
        return HOLD
