"""barreplay.indicators.volatility

Bands, channels, and range measures.
"""

from __future__ import annotations

import numpy as np

from barreplay.indicators._util import (
    ArrayLike,
    as_array,
    check_period,
    nulls,
    rolling_max,
    rolling_min,
    true_range,
    windows,
)
from barreplay.indicators.moving_averages import ema, sma


def std_dev(prices: ArrayLike, period: int = 20) -> np.ndarray:
    """Population standard deviation around the window's SMA."""

    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size < n:
        return out

    mean = sma(p, n)[n - 1 :]
    dev = windows(p, n) - mean[:, None]
    out[n - 1 :] = np.sqrt((dev * dev).sum(axis=1) / n)
    return out


def bollinger_bands(prices: ArrayLike, period: int = 20, deviation: float = 2.0) -> dict[str, np.ndarray]:
    p = as_array(prices)
    middle = sma(p, period)
    sd = std_dev(p, period)
    return {
        "upper": middle + float(deviation) * sd,
        "middle": middle,
        "lower": middle - float(deviation) * sd,
    }


def atr(high: ArrayLike, low: ArrayLike, close: ArrayLike, period: int = 14) -> np.ndarray:
    """Wilder ATR seeded with the mean TR of the first ``period`` bars (``tr[0] = high - low``)."""

    h, l, c = as_array(high), as_array(low), as_array(close)
    n = check_period(period)
    out = nulls(c.size)
    if c.size < n:
        return out

    tr = true_range(h, l, c).tolist()
    total = 0.0
    for i in range(n):
        total += tr[i]
    prev = total / n
    out[n - 1] = prev
    for i in range(n, len(tr)):
        prev = (prev * (n - 1) + tr[i]) / n
        out[i] = prev
    return out


def keltner(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 20,
    multiplier: float = 1.5,
) -> dict[str, np.ndarray]:
    """EMA middle line with bands ``multiplier`` ATRs away (same period for both)."""

    middle = ema(close, period)
    width = float(multiplier) * atr(high, low, close, period)
    return {"upper": middle + width, "middle": middle, "lower": middle - width}


def donchian(high: ArrayLike, low: ArrayLike, period: int = 20) -> dict[str, np.ndarray]:
    h, l = as_array(high), as_array(low)
    n = check_period(period)
    upper = rolling_max(h, n)
    lower = rolling_min(l, n)
    return {"upper": upper, "middle": (upper + lower) / 2.0, "lower": lower}


def envelopes(prices: ArrayLike, period: int = 20, deviation: float = 2.5) -> dict[str, np.ndarray]:
    """SMA envelope; ``deviation`` is in percent."""

    middle = sma(prices, period)
    pct = float(deviation) / 100.0
    return {"upper": middle * (1.0 + pct), "middle": middle, "lower": middle * (1.0 - pct)}
