"""barreplay.indicators.oscillators

Bounded and unbounded momentum oscillators.

Anything that divides by a range or a magnitude has a fixed fallback for a
zero denominator (noted per function), so flat markets produce numbers, not
NaN or inf.
"""

from __future__ import annotations

import numpy as np

from barreplay.indicators._util import (
    ArrayLike,
    as_array,
    check_period,
    compact_apply,
    nulls,
    rolling_max,
    rolling_min,
    rolling_sum,
    typical_price,
    windows,
)
from barreplay.indicators.moving_averages import ema, sma


def rsi(prices: ArrayLike, period: int = 14) -> np.ndarray:
    """Wilder RSI. First value at index ``period``; zero average loss reads 100."""

    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size < n + 1:
        return out

    vals = p.tolist()
    gain_sum = 0.0
    loss_sum = 0.0
    for i in range(1, n + 1):
        change = vals[i] - vals[i - 1]
        if change > 0:
            gain_sum += change
        else:
            loss_sum -= change

    avg_gain = gain_sum / n
    avg_loss = loss_sum / n
    out[n] = 100.0 if avg_loss == 0 else 100.0 - (100.0 / (1.0 + avg_gain / avg_loss))

    for i in range(n + 1, len(vals)):
        change = vals[i] - vals[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (n - 1) + gain) / n
        avg_loss = (avg_loss * (n - 1) + loss) / n
        out[i] = 100.0 if avg_loss == 0 else 100.0 - (100.0 / (1.0 + avg_gain / avg_loss))
    return out


def _range_position(value: np.ndarray, hh: np.ndarray, ll: np.ndarray, *, flat: float) -> np.ndarray:
    rng = hh - ll
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(rng == 0.0, flat, (value - ll) / rng * 100.0)


def stochastic(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    k_period: int = 14,
    d_period: int = 3,
) -> dict[str, np.ndarray]:
    """%K over ``k_period`` (flat range reads 50); %D is the SMA of %K."""

    h, l, c = as_array(high), as_array(low), as_array(close)
    kp = check_period(k_period, "k_period")
    dp = check_period(d_period, "d_period")

    k = nulls(c.size)
    if c.size >= kp:
        tail = slice(kp - 1, None)
        k[tail] = _range_position(c[tail], rolling_max(h, kp)[tail], rolling_min(l, kp)[tail], flat=50.0)
    d = compact_apply(k, sma, dp)
    return {"k": k, "d": d}


def _stoch_of(values: np.ndarray, period: int) -> np.ndarray:
    out = nulls(values.size)
    if values.size < period:
        return out
    tail = slice(period - 1, None)
    out[tail] = _range_position(values[tail], rolling_max(values, period)[tail], rolling_min(values, period)[tail], flat=50.0)
    return out


def stoch_rsi(
    prices: ArrayLike,
    rsi_period: int = 14,
    stoch_period: int = 14,
    k_smooth: int = 3,
    d_smooth: int = 3,
) -> dict[str, np.ndarray]:
    """Stochastic of RSI. A flat RSI window reads 50."""

    r = rsi(prices, rsi_period)
    raw = compact_apply(r, _stoch_of, check_period(stoch_period, "stoch_period"))
    k = compact_apply(raw, sma, check_period(k_smooth, "k_smooth"))
    d = compact_apply(k, sma, check_period(d_smooth, "d_smooth"))
    return {"k": k, "d": d}


def macd(prices: ArrayLike, fast: int = 12, slow: int = 26, signal: int = 9) -> dict[str, np.ndarray]:
    """MACD line from index ``slow-1``; signal is the EMA of the defined MACD values."""

    p = as_array(prices)
    fast_ema = ema(p, check_period(fast, "fast"))
    slow_ema = ema(p, check_period(slow, "slow"))

    line = nulls(p.size)
    start = int(slow) - 1
    if p.size > start:
        diff = fast_ema[start:] - slow_ema[start:]
        line[start:] = diff

    sig = compact_apply(line, ema, check_period(signal, "signal"))
    return {"macd": line, "signal": sig, "histogram": line - sig}


def cci(high: ArrayLike, low: ArrayLike, close: ArrayLike, period: int = 20) -> np.ndarray:
    """Commodity Channel Index; a flat window (zero mean deviation) reads 0."""

    tp = typical_price(as_array(high), as_array(low), as_array(close))
    n = check_period(period)
    out = nulls(tp.size)
    if tp.size < n:
        return out

    w = windows(tp, n)
    mean = w.mean(axis=1)
    mad = np.abs(w - mean[:, None]).mean(axis=1)
    # the mean of a flat window need not equal its samples, so test flatness directly
    flat = (w.max(axis=1) == w.min(axis=1)) | (mad == 0.0)
    cur = tp[n - 1 :]
    with np.errstate(divide="ignore", invalid="ignore"):
        out[n - 1 :] = np.where(flat, 0.0, (cur - mean) / (0.015 * mad))
    return out


def momentum(prices: ArrayLike, period: int = 10) -> np.ndarray:
    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size > n:
        out[n:] = p[n:] - p[:-n]
    return out


def roc(prices: ArrayLike, period: int = 10) -> np.ndarray:
    """Rate of change in percent; a zero base price reads 0."""

    p = as_array(prices)
    n = check_period(period)
    out = nulls(p.size)
    if p.size > n:
        base = p[:-n]
        with np.errstate(divide="ignore", invalid="ignore"):
            out[n:] = np.where(base == 0.0, 0.0, (p[n:] - base) / base * 100.0)
    return out


def williams_r(high: ArrayLike, low: ArrayLike, close: ArrayLike, period: int = 14) -> np.ndarray:
    """Williams %R in [-100, 0]; a flat range reads -50."""

    h, l, c = as_array(high), as_array(low), as_array(close)
    n = check_period(period)
    out = nulls(c.size)
    if c.size < n:
        return out

    tail = slice(n - 1, None)
    hh = rolling_max(h, n)[tail]
    ll = rolling_min(l, n)[tail]
    rng = hh - ll
    with np.errstate(divide="ignore", invalid="ignore"):
        out[tail] = np.where(rng == 0.0, -50.0, (hh - c[tail]) / rng * -100.0)
    return out


def ao(high: ArrayLike, low: ArrayLike, fast: int = 5, slow: int = 34) -> np.ndarray:
    """Awesome Oscillator: SMA(fast) - SMA(slow) of bar midpoints."""

    mid = (as_array(high) + as_array(low)) / 2.0
    return sma(mid, fast) - sma(mid, slow)


def ac(high: ArrayLike, low: ArrayLike, fast: int = 5, slow: int = 34, signal: int = 5) -> np.ndarray:
    """Accelerator Oscillator: AO minus its own ``signal``-bar SMA."""

    a = ao(high, low, fast, slow)
    return a - compact_apply(a, sma, check_period(signal, "signal"))


def kdj(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 9,
    k_smooth: int = 3,
    d_smooth: int = 3,
) -> dict[str, np.ndarray]:
    """KDJ.

    RSV is the stochastic %K over ``period`` (flat range reads 50). K and D
    both start from 50 and smooth with ``((m-1)*prev + x) / m``; J = 3K - 2D.
    First defined value at index ``period - 1``.
    """

    h, l, c = as_array(high), as_array(low), as_array(close)
    n = check_period(period)
    m1 = check_period(k_smooth, "k_smooth")
    m2 = check_period(d_smooth, "d_smooth")

    k = nulls(c.size)
    d = nulls(c.size)
    if c.size < n:
        return {"k": k, "d": d, "j": nulls(c.size)}

    tail = slice(n - 1, None)
    rsv = _range_position(c[tail], rolling_max(h, n)[tail], rolling_min(l, n)[tail], flat=50.0).tolist()

    k_prev = 50.0
    d_prev = 50.0
    for offset, x in enumerate(rsv):
        k_prev = ((m1 - 1) * k_prev + x) / m1
        d_prev = ((m2 - 1) * d_prev + k_prev) / m2
        k[n - 1 + offset] = k_prev
        d[n - 1 + offset] = d_prev

    return {"k": k, "d": d, "j": 3.0 * k - 2.0 * d}


def trix(prices: ArrayLike, period: int = 15) -> np.ndarray:
    """One-bar percent change of a triple-smoothed EMA; a zero base reads 0."""

    n = check_period(period)
    e1 = ema(prices, n)
    e2 = compact_apply(e1, ema, n)
    e3 = compact_apply(e2, ema, n)

    out = nulls(e3.size)
    if e3.size > 1:
        prev = e3[:-1]
        with np.errstate(divide="ignore", invalid="ignore"):
            out[1:] = np.where(prev == 0.0, 0.0, (e3[1:] - prev) / prev * 100.0)
        # 0.0 fallback must not leak into the warm-up
        out[1:][np.isnan(prev) | np.isnan(e3[1:])] = np.nan
    return out


def ultimate_oscillator(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    short: int = 7,
    medium: int = 14,
    long: int = 28,
) -> np.ndarray:
    """Ultimate Oscillator. First value at index ``long``; a window with no range averages 0.5."""

    h, l, c = as_array(high), as_array(low), as_array(close)
    periods = (check_period(short, "short"), check_period(medium, "medium"), check_period(long, "long"))
    longest = max(periods)
    out = nulls(c.size)
    if c.size <= longest:
        return out

    prev_close = c[:-1]
    true_low = np.minimum(l[1:], prev_close)
    bp = c[1:] - true_low
    tr = np.maximum(h[1:], prev_close) - true_low

    def avg(n: int) -> np.ndarray:
        # sums over bp/tr index j cover bars j+1; align to bars longest..len-1
        s_bp = rolling_sum(bp, n)[longest - 1 :]
        s_tr = rolling_sum(tr, n)[longest - 1 :]
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.where(s_tr == 0.0, 0.5, s_bp / s_tr)

    a_s, a_m, a_l = (avg(n) for n in periods)
    out[longest:] = 100.0 * (4.0 * a_s + 2.0 * a_m + a_l) / 7.0
    return out
