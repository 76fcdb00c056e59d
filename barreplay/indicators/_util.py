"""Shared plumbing for indicator functions.

NaN is the null marker: every output array has the input's length and holds
NaN wherever the indicator is not yet defined.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

ArrayLike = Sequence[float] | np.ndarray


def as_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def nulls(n: int) -> np.ndarray:
    return np.full(n, np.nan, dtype=np.float64)


def check_period(period: int, name: str = "period") -> int:
    p = int(period)
    if p < 1:
        raise ValueError(f"{name} must be >= 1")
    return p


def windows(x: np.ndarray, n: int) -> np.ndarray:
    """Rolling windows ending at index n-1 .. len-1, shape (len-n+1, n)."""

    return sliding_window_view(x, n)


def rolling_max(x: np.ndarray, n: int) -> np.ndarray:
    out = nulls(x.size)
    if x.size >= n:
        out[n - 1 :] = windows(x, n).max(axis=1)
    return out


def rolling_min(x: np.ndarray, n: int) -> np.ndarray:
    out = nulls(x.size)
    if x.size >= n:
        out[n - 1 :] = windows(x, n).min(axis=1)
    return out


def rolling_sum(x: np.ndarray, n: int) -> np.ndarray:
    out = nulls(x.size)
    if x.size >= n:
        out[n - 1 :] = windows(x, n).sum(axis=1)
    return out


def compact_apply(series: np.ndarray, fn: Callable[..., np.ndarray], *args: object) -> np.ndarray:
    """Apply ``fn`` to the defined entries only, then scatter results back.

    Used when one indicator is a smoothing of another (MACD signal line,
    DEMA/TEMA chains): the inner warm-up must not count the outer one's nulls.
    """

    mask = ~np.isnan(series)
    out = nulls(series.size)
    if not mask.any():
        return out
    out[mask] = fn(series[mask], *args)
    return out


def typical_price(high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    return (high + low + close) / 3.0


def true_range(high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    """TR with ``tr[0] = high[0] - low[0]``."""

    tr = high - low
    if close.size > 1:
        prev_close = close[:-1]
        tr[1:] = np.maximum.reduce([high[1:] - low[1:], np.abs(high[1:] - prev_close), np.abs(low[1:] - prev_close)])
    return tr
