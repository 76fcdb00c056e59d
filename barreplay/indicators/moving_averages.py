"""barreplay.indicators.moving_averages

Moving averages. Recursive ones (EMA, SMMA) seed from the simple average of
the first ``period`` samples; that seed feeds every later value, so it is
reproduced exactly rather than approximated with pandas-style ``adjust``.
"""

from __future__ import annotations

import math

import numpy as np

from barreplay.indicators._util import ArrayLike, as_array, check_period, compact_apply, nulls, rolling_sum, windows


def sma(prices: ArrayLike, period: int) -> np.ndarray:
    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size < n:
        return out

    vals = p.tolist()
    total = 0.0
    for i in range(n):
        total += vals[i]
    out[n - 1] = total / n
    for i in range(n, len(vals)):
        total += vals[i] - vals[i - n]
        out[i] = total / n
    return out


def ema(prices: ArrayLike, period: int) -> np.ndarray:
    """EMA with ``k = 2/(period+1)``, seeded by the SMA of the first window.

    The step is ``price*k + prev*(1-k)`` evaluated in exactly that order;
    reordering it changes the low bits of every later value.
    """

    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size < n:
        return out

    vals = p.tolist()
    total = 0.0
    for i in range(n):
        total += vals[i]
    prev = total / n
    out[n - 1] = prev

    k = 2.0 / (n + 1)
    for i in range(n, len(vals)):
        prev = vals[i] * k + prev * (1.0 - k)
        out[i] = prev
    return out


def smma(prices: ArrayLike, period: int = 14) -> np.ndarray:
    """Wilder's smoothed moving average: ``(prev*(n-1) + x) / n``."""

    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size < n:
        return out

    vals = p.tolist()
    total = 0.0
    for i in range(n):
        total += vals[i]
    prev = total / n
    out[n - 1] = prev
    for i in range(n, len(vals)):
        prev = (prev * (n - 1) + vals[i]) / n
        out[i] = prev
    return out


def wma(prices: ArrayLike, period: int = 20) -> np.ndarray:
    """Linearly weighted: newest sample weight ``period``, oldest weight 1."""

    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size < n:
        return out

    weights = np.arange(1, n + 1, dtype=np.float64)
    out[n - 1 :] = windows(p, n) @ weights / weights.sum()
    return out


def hma(prices: ArrayLike, period: int = 20) -> np.ndarray:
    """Hull MA: ``WMA(2*WMA(n/2) - WMA(n), floor(sqrt(n)))``."""

    n = check_period(period)
    half = max(n // 2, 1)
    root = max(int(math.sqrt(n)), 1)
    raw = 2.0 * wma(prices, half) - wma(prices, n)
    return compact_apply(raw, wma, root)


def dema(prices: ArrayLike, period: int = 20) -> np.ndarray:
    n = check_period(period)
    e1 = ema(prices, n)
    e2 = compact_apply(e1, ema, n)
    return 2.0 * e1 - e2


def tema(prices: ArrayLike, period: int = 20) -> np.ndarray:
    n = check_period(period)
    e1 = ema(prices, n)
    e2 = compact_apply(e1, ema, n)
    e3 = compact_apply(e2, ema, n)
    return 3.0 * e1 - 3.0 * e2 + e3


def vwma(prices: ArrayLike, volumes: ArrayLike, period: int = 20) -> np.ndarray:
    """Volume-weighted MA; a window with zero total volume falls back to the SMA."""

    p = as_array(prices)
    v = as_array(volumes)
    n = check_period(period)

    pv = rolling_sum(p * v, n)
    vol = rolling_sum(v, n)
    plain = sma(p, n)
    out = nulls(p.size)
    if p.size < n:
        return out

    tail = slice(n - 1, None)
    with np.errstate(divide="ignore", invalid="ignore"):
        out[tail] = np.where(vol[tail] == 0.0, plain[tail], pv[tail] / vol[tail])
    return out
