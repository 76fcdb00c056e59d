"""barreplay.indicators.volume

Volume-weighted flows. OBV and A/D are running totals with no warm-up.
"""

from __future__ import annotations

import numpy as np

from barreplay.indicators._util import ArrayLike, as_array, check_period, nulls, rolling_sum, typical_price


def obv(close: ArrayLike, volume: ArrayLike) -> np.ndarray:
    c, v = as_array(close), np.nan_to_num(as_array(volume))
    out = np.zeros(c.size, dtype=np.float64)
    if c.size == 0:
        return out

    cv, vv = c.tolist(), v.tolist()
    running = vv[0]
    out[0] = running
    for i in range(1, len(cv)):
        if cv[i] > cv[i - 1]:
            running += vv[i]
        elif cv[i] < cv[i - 1]:
            running -= vv[i]
        out[i] = running
    return out


def mfi(high: ArrayLike, low: ArrayLike, close: ArrayLike, volume: ArrayLike, period: int = 14) -> np.ndarray:
    """Money Flow Index from index ``period``; no negative flow reads 100."""

    tp = typical_price(as_array(high), as_array(low), as_array(close))
    v = as_array(volume)
    n = check_period(period)
    out = nulls(tp.size)
    if tp.size <= n:
        return out

    flow = tp * v
    pos = np.zeros(tp.size, dtype=np.float64)
    neg = np.zeros(tp.size, dtype=np.float64)
    pos[1:] = np.where(tp[1:] > tp[:-1], flow[1:], 0.0)
    neg[1:] = np.where(tp[1:] < tp[:-1], flow[1:], 0.0)

    pos_sum = rolling_sum(pos, n)[n:]
    neg_sum = rolling_sum(neg, n)[n:]
    with np.errstate(divide="ignore", invalid="ignore"):
        out[n:] = np.where(neg_sum == 0.0, 100.0, 100.0 - (100.0 / (1.0 + pos_sum / neg_sum)))
    return out


def vwap(high: ArrayLike, low: ArrayLike, close: ArrayLike, volume: ArrayLike, period: int = 20) -> np.ndarray:
    """Rolling VWAP of the typical price; a zero-volume window reads the typical price."""

    tp = typical_price(as_array(high), as_array(low), as_array(close))
    v = as_array(volume)
    n = check_period(period)
    out = nulls(tp.size)
    if tp.size < n:
        return out

    pv = rolling_sum(tp * v, n)[n - 1 :]
    vol = rolling_sum(v, n)[n - 1 :]
    with np.errstate(divide="ignore", invalid="ignore"):
        out[n - 1 :] = np.where(vol == 0.0, tp[n - 1 :], pv / vol)
    return out


def _money_flow_volume(high: np.ndarray, low: np.ndarray, close: np.ndarray, volume: np.ndarray) -> np.ndarray:
    rng = high - low
    with np.errstate(divide="ignore", invalid="ignore"):
        multiplier = np.where(rng == 0.0, 0.0, ((close - low) - (high - close)) / rng)
    return multiplier * volume


def cmf(high: ArrayLike, low: ArrayLike, close: ArrayLike, volume: ArrayLike, period: int = 20) -> np.ndarray:
    """Chaikin Money Flow; zero-range bars and zero-volume windows read 0."""

    h, l, c, v = as_array(high), as_array(low), as_array(close), as_array(volume)
    n = check_period(period)
    out = nulls(c.size)
    if c.size < n:
        return out

    mfv = rolling_sum(_money_flow_volume(h, l, c, v), n)[n - 1 :]
    vol = rolling_sum(v, n)[n - 1 :]
    with np.errstate(divide="ignore", invalid="ignore"):
        out[n - 1 :] = np.where(vol == 0.0, 0.0, mfv / vol)
    return out


def ad(high: ArrayLike, low: ArrayLike, close: ArrayLike, volume: ArrayLike) -> np.ndarray:
    """Accumulation/Distribution line (running total of money flow volume)."""

    mfv = _money_flow_volume(as_array(high), as_array(low), as_array(close), as_array(volume))
    return np.cumsum(mfv)
