"""barreplay.strategies.bollinger_reversion

Band reversion with resting limit orders.

While flat, a buy limit sits at the lower band (and a sell limit at the
upper band when allow_short), refreshed every ``refresh`` bars. Positions
exit once the close crosses back to the middle band.
"""

from __future__ import annotations

from dataclasses import dataclass

from barreplay.backtest.actions import HOLD, Action, Cancel, Entry, Exit
from barreplay.core.types import OrderKind
from barreplay.strategies.base import Strategy, at, held_side, lookup, param_key
from barreplay.strategies.registry import register


@register("bollinger_reversion", description="Limit entries at the Bollinger bands, exit at the middle.")
@dataclass(frozen=True, slots=True)
class BollingerReversionStrategy(Strategy):
    period: int = 20
    deviation: float = 2.0
    refresh: int = 5
    allow_short: bool = False

    def __post_init__(self) -> None:
        if self.period < 2:
            raise ValueError("period must be >= 2")
        if self.deviation <= 0:
            raise ValueError("deviation must be > 0")
        if self.refresh < 3:
            raise ValueError("refresh must be >= 3")

    def __call__(self, candles, index, indicators, params, open_positions) -> Action:
        bands = lookup(
            indicators,
            "bb",
            param_key(self.period, self.deviation),
            period=self.period,
            deviation=self.deviation,
        )
        upper, middle, lower = at(bands["upper"], index), at(bands["middle"], index), at(bands["lower"], index)
        if upper is None or middle is None or lower is None:
            return HOLD

        close = candles[index].close
        held = held_side(open_positions)
        if held == "long":
            return Exit() if close >= middle else HOLD
        if held == "short":
            return Exit() if close <= middle else HOLD

        slot = index % self.refresh
        if slot == 0:
            return Cancel()
        if slot == 1:
            return Entry.long(OrderKind.LIMIT, lower)
        if slot == 2 and self.allow_short:
            return Entry.short(OrderKind.LIMIT, upper)
        return HOLD
