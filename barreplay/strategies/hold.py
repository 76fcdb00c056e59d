"""barreplay.strategies.hold

Never trades. Useful as a baseline and for checking that a candle set runs.
"""

from __future__ import annotations

from dataclasses import dataclass

from barreplay.backtest.actions import HOLD, Action
from barreplay.strategies.base import Strategy
from barreplay.strategies.registry import register


@register("hold", description="Never trades.")
@dataclass(frozen=True, slots=True)
class HoldStrategy(Strategy):
    def __call__(self, candles, index, indicators, params, open_positions) -> Action:
        return HOLD
