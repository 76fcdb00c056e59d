"""barreplay.strategies.base

Built-in decision functions.

A strategy is a frozen dataclass of its parameters whose ``__call__`` has
the decision-function signature. It reads precomputed indicators where the
catalogue has its parameters and computes (once per run) where it does not.

Strategies see the open positions but not the pending orders, so the ones
that work resting stop/limit orders refresh them on a fixed bar cadence:
cancel on one bar, re-place on the next.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

import numpy as np

from barreplay.backtest.actions import Action
from barreplay.core.types import Candle
from barreplay.indicators.precompute import IndicatorSet
from barreplay.indicators.registry import Series


class Strategy:
    name: ClassVar[str] = "strategy"
    description: ClassVar[str] = ""

    def __call__(
        self,
        candles: Sequence[Candle],
        index: int,
        indicators: IndicatorSet,
        params: Mapping[str, Any],
        open_positions: Sequence[Mapping[str, Any]],
    ) -> Action:
        raise NotImplementedError


def lookup(indicators: IndicatorSet, name: str, key: Any, **params: Any) -> Series:
    """The catalogue entry under ``key`` if there is one, else computed with ``params``."""

    entry = indicators[name]
    if isinstance(entry, Mapping) and key in entry:
        return entry[key]
    return indicators.compute(name, **params)


def param_key(*values: float) -> str:
    """Catalogue key for multi-parameter entries: ``(20, 2.0) -> "20_2"``."""

    return "_".join(f"{v:g}" for v in values)


def at(series: np.ndarray, index: int) -> float | None:
    if index < 0:
        return None
    v = float(series[index])
    return None if math.isnan(v) else v


def held_side(open_positions: Sequence[Mapping[str, Any]]) -> str | None:
    return str(open_positions[0]["side"]) if open_positions else None
