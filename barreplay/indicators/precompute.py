"""barreplay.indicators.precompute

One pass over the candle set before the replay starts.

Every catalogue entry is computed exactly once per run. Lookups are
``indicators["ema"][20][i]`` for keyed entries, ``indicators["ao"][i]`` for
flat ones, and ``indicators["macd"]["12_26_9"]["signal"][i]`` for
multi-output ones. Composite keys join parameters with ``_``.

Nothing is cached across runs: a new candle set means a new IndicatorSet.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import numpy as np

from barreplay.core.types import Candle
from barreplay.indicators import levels, moving_averages as ma, oscillators as osc, trend, volatility as vol, volume
from barreplay.indicators.registry import Series, calculators, compute

IndicatorValue = np.ndarray | Mapping[Any, Any]


@dataclass(frozen=True, slots=True)
class RawSeries:
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    close: np.ndarray
    volume: np.ndarray

    @classmethod
    def from_candles(cls, candles: Sequence[Candle]) -> RawSeries:
        def col(name: str) -> np.ndarray:
            arr = np.fromiter((getattr(c, name) for c in candles), dtype=np.float64, count=len(candles))
            arr.setflags(write=False)
            return arr

        return cls(open=col("open"), high=col("high"), low=col("low"), close=col("close"), volume=col("volume"))

    def as_mapping(self) -> Mapping[str, np.ndarray]:
        return MappingProxyType(
            {"open": self.open, "high": self.high, "low": self.low, "close": self.close, "volume": self.volume}
        )

    def __len__(self) -> int:
        return int(self.close.size)


def _freeze(value: Any) -> Any:
    """Read-only view of a computed entry: arrays lose write access, dicts become proxies."""

    if isinstance(value, np.ndarray):
        value.setflags(write=False)
        return value
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


class IndicatorSet(Mapping[str, IndicatorValue]):
    """Read-only lookup of precomputed indicators for one candle set."""

    __slots__ = ("_entries", "_custom", "raw", "calc")

    def __init__(self, entries: Mapping[str, Any], raw: RawSeries) -> None:
        self._entries: Mapping[str, IndicatorValue] = MappingProxyType({k: _freeze(v) for k, v in entries.items()})
        self.raw = raw
        self.calc: Mapping[str, Callable[..., Series]] = calculators()
        self._custom: dict[tuple[Any, ...], Series] = {}

    def __getitem__(self, name: str) -> IndicatorValue:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def series(self, name: str, key: Any = None, output: str | None = None) -> np.ndarray:
        """Resolve one array: ``series("stoch", "14_3", "k")``, ``series("rsi", 14)``, ``series("sar")``."""

        value: Any = self._entries[name]
        if key is not None:
            value = value[key]
        if output is not None:
            value = value[output]
        if not isinstance(value, np.ndarray):
            raise KeyError(f"{name}: key/output does not resolve to a series")
        return value

    def compute(self, name: str, **params: Any) -> Series:
        """Compute a catalogue indicator at custom parameters over this run's raw arrays.

        Results are kept for the life of this set, so a decision function may
        call this on every bar.
        """

        key = (name, *sorted(params.items()))
        hit = self._custom.get(key)
        if hit is None:
            hit = _freeze(compute(name, self.raw.as_mapping(), **params))
            self._custom[key] = hit
        return hit


def precompute_indicators(candles: Sequence[Candle]) -> IndicatorSet:
    raw = RawSeries.from_candles(candles)
    h, l, c, v = raw.high, raw.low, raw.close, raw.volume

    entries: dict[str, Any] = {
        # Moving averages
        "ema": {p: ma.ema(c, p) for p in (5, 8, 10, 12, 20, 21, 26, 50, 100, 200)},
        "sma": {p: ma.sma(c, p) for p in (5, 10, 20, 50, 100, 200)},
        "wma": {20: ma.wma(c, 20)},
        "hma": {20: ma.hma(c, 20)},
        "dema": {20: ma.dema(c, 20)},
        "tema": {20: ma.tema(c, 20)},
        "smma": {14: ma.smma(c, 14)},
        "vwma": {20: ma.vwma(c, v, 20)},
        # Oscillators
        "rsi": {p: osc.rsi(c, p) for p in (7, 14, 21)},
        "stoch": {
            "14_3": osc.stochastic(h, l, c, 14, 3),
            "5_3": osc.stochastic(h, l, c, 5, 3),
            "21_7": osc.stochastic(h, l, c, 21, 7),
        },
        "stoch_rsi": {"14_14_3_3": osc.stoch_rsi(c, 14, 14, 3, 3)},
        "macd": {"12_26_9": osc.macd(c, 12, 26, 9)},
        "cci": {p: osc.cci(h, l, c, p) for p in (14, 20)},
        "momentum": {p: osc.momentum(c, p) for p in (10, 14)},
        "roc": {10: osc.roc(c, 10)},
        "williams_r": {14: osc.williams_r(h, l, c, 14)},
        "ao": osc.ao(h, l),
        "ac": osc.ac(h, l),
        "kdj": {"9_3_3": osc.kdj(h, l, c, 9, 3, 3)},
        "trix": {15: osc.trix(c, 15)},
        "uo": {"7_14_28": osc.ultimate_oscillator(h, l, c, 7, 14, 28)},
        # Bands & channels
        "bb": {"20_2": vol.bollinger_bands(c, 20, 2.0)},
        "keltner": {"20_1.5": vol.keltner(h, l, c, 20, 1.5)},
        "donchian": {20: vol.donchian(h, l, 20)},
        "envelopes": {"20_2.5": vol.envelopes(c, 20, 2.5)},
        "std_dev": {20: vol.std_dev(c, 20)},
        "atr": {14: vol.atr(h, l, c, 14)},
        # Trend
        "adx": {14: trend.adx(h, l, c, 14)},
        "supertrend": {"10_3": trend.supertrend(h, l, c, 10, 3.0)},
        "sar": trend.sar(h, l),
        "aroon": {25: trend.aroon(h, l, 25)},
        "ichimoku": trend.ichimoku(h, l, c),
        "alligator": trend.alligator(h, l),
        "gator": trend.gator(h, l),
        # Volume
        "obv": volume.obv(c, v),
        "mfi": {14: volume.mfi(h, l, c, v, 14)},
        "vwap": {20: volume.vwap(h, l, c, v, 20)},
        "cmf": {20: volume.cmf(h, l, c, v, 20)},
        "ad": volume.ad(h, l, c, v),
        # Levels
        "pivot": levels.pivot(h, l, c),
    }
    return IndicatorSet(entries, raw)
