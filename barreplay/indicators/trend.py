"""barreplay.indicators.trend

Trend strength, trailing stops, and the forward-plotted Bill Williams /
Ichimoku lines.

Forward-shifted outputs (Ichimoku senkou spans, Alligator jaw/teeth/lips)
write the value computed at bar ``i`` into ``i + shift``, so the leading
``shift`` entries past the warm-up stay NaN and nothing is written past the
last bar.
"""

from __future__ import annotations

import math

import numpy as np

from barreplay.indicators._util import ArrayLike, as_array, check_period, nulls, rolling_max, rolling_min, windows
from barreplay.indicators.moving_averages import sma
from barreplay.indicators.volatility import atr


def _shift_forward(src: np.ndarray, shift: int) -> np.ndarray:
    out = nulls(src.size)
    if shift < src.size:
        out[shift:] = src[: src.size - shift]
    return out


def adx(high: ArrayLike, low: ArrayLike, close: ArrayLike, period: int = 14) -> dict[str, np.ndarray]:
    """ADX with +DI/-DI.

    Needs at least ``2*period`` bars. DI values start at index ``period + 1``,
    ADX (mean of the first ``period`` DX values, then Wilder) at ``2*period``.
    """

    h, l, c = as_array(high), as_array(low), as_array(close)
    n = check_period(period)
    length = c.size
    adx_out = nulls(length)
    plus_di = nulls(length)
    minus_di = nulls(length)
    if length < n * 2:
        return {"adx": adx_out, "plus_di": plus_di, "minus_di": minus_di}

    hv, lv, cv = h.tolist(), l.tolist(), c.tolist()
    tr: list[float] = []
    plus_dm: list[float] = []
    minus_dm: list[float] = []
    for i in range(1, length):
        tr.append(max(hv[i] - lv[i], abs(hv[i] - cv[i - 1]), abs(lv[i] - cv[i - 1])))
        up_move = hv[i] - hv[i - 1]
        down_move = lv[i - 1] - lv[i]
        plus_dm.append(up_move if up_move > down_move and up_move > 0 else 0.0)
        minus_dm.append(down_move if down_move > up_move and down_move > 0 else 0.0)

    s_tr = s_pdm = s_mdm = 0.0
    for i in range(n):
        s_tr += tr[i]
        s_pdm += plus_dm[i]
        s_mdm += minus_dm[i]

    dx_values: list[float] = []
    prev_adx = math.nan
    for i in range(n, len(tr)):
        if i != n:
            s_tr = s_tr - s_tr / n + tr[i]
            s_pdm = s_pdm - s_pdm / n + plus_dm[i]
            s_mdm = s_mdm - s_mdm / n + minus_dm[i]

        pdi = 0.0 if s_tr == 0 else (s_pdm / s_tr) * 100.0
        mdi = 0.0 if s_tr == 0 else (s_mdm / s_tr) * 100.0
        plus_di[i + 1] = pdi
        minus_di[i + 1] = mdi

        di_sum = pdi + mdi
        dx = 0.0 if di_sum == 0 else (abs(pdi - mdi) / di_sum) * 100.0
        dx_values.append(dx)

        if len(dx_values) == n:
            total = 0.0
            for v in dx_values:
                total += v
            prev_adx = total / n
            adx_out[i + 1] = prev_adx
        elif len(dx_values) > n:
            prev_adx = (prev_adx * (n - 1) + dx) / n
            adx_out[i + 1] = prev_adx

    return {"adx": adx_out, "plus_di": plus_di, "minus_di": minus_di}


def supertrend(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 10,
    multiplier: float = 3.0,
) -> dict[str, np.ndarray]:
    """SuperTrend line and direction (1.0 up, -1.0 down), starting at index ``period``."""

    h, l, c = as_array(high), as_array(low), as_array(close)
    n = check_period(period)
    m = float(multiplier)
    length = c.size
    line = nulls(length)
    direction = nulls(length)
    if length < n:
        return {"supertrend": line, "direction": direction}

    a = atr(h, l, c, n).tolist()
    hv, lv, cv = h.tolist(), l.tolist(), c.tolist()

    upper = lower = 0.0
    cur_dir = 0.0
    for i in range(n, length):
        hl2 = (hv[i] + lv[i]) / 2.0
        basic_upper = hl2 + m * a[i]
        basic_lower = hl2 - m * a[i]

        if i == n:
            upper, lower = basic_upper, basic_lower
            cur_dir = 1.0 if cv[i] > upper else -1.0
        else:
            upper = basic_upper if basic_upper < upper or cv[i - 1] > upper else upper
            lower = basic_lower if basic_lower > lower or cv[i - 1] < lower else lower
            if cur_dir == 1.0:
                cur_dir = -1.0 if cv[i] < lower else 1.0
            else:
                cur_dir = 1.0 if cv[i] > upper else -1.0

        direction[i] = cur_dir
        line[i] = lower if cur_dir == 1.0 else upper

    return {"supertrend": line, "direction": direction}


def sar(high: ArrayLike, low: ArrayLike, accel_start: float = 0.02, accel_max: float = 0.2) -> np.ndarray:
    """Parabolic SAR. Defined from index 0 once there are two bars.

    The first trend is long if the second bar's high exceeds the first's.
    A zero price is treated as missing when looking back (prior SAR, or the
    low/high two bars back), falling back to the nearer value.
    """

    h, l = as_array(high), as_array(low)
    length = h.size
    out = nulls(length)
    if length < 2:
        return out

    hv, lv = h.tolist(), l.tolist()
    step = float(accel_start)
    cap = float(accel_max)

    is_long = hv[1] > hv[0]
    af = step
    ep = hv[0] if is_long else lv[0]
    prev = lv[0] if is_long else hv[0]
    out[0] = prev

    for i in range(1, length):
        if prev == 0 or math.isnan(prev):
            prev = lv[0] if is_long else hv[0]
        cur = prev + af * (ep - prev)

        if is_long:
            if i >= 2:
                cur = min(cur, lv[i - 1], lv[i - 2] or lv[i - 1])
            if lv[i] < cur:
                is_long = False
                cur = ep
                ep = lv[i]
                af = step
            elif hv[i] > ep:
                ep = hv[i]
                af = min(af + step, cap)
        else:
            if i >= 2:
                cur = max(cur, hv[i - 1], hv[i - 2] or hv[i - 1])
            if hv[i] > cur:
                is_long = True
                cur = ep
                ep = hv[i]
                af = step
            elif lv[i] < ep:
                ep = lv[i]
                af = min(af + step, cap)

        out[i] = cur
        prev = cur

    return out


def aroon(high: ArrayLike, low: ArrayLike, period: int = 25) -> dict[str, np.ndarray]:
    """Aroon up/down over ``period + 1`` bars; ties go to the most recent bar."""

    h, l = as_array(high), as_array(low)
    n = check_period(period)
    up = nulls(h.size)
    down = nulls(h.size)
    if h.size <= n:
        return {"up": up, "down": down}

    # reversed windows: position 0 is the current bar, argmax/argmin keep the first hit
    since_high = windows(h, n + 1)[:, ::-1].argmax(axis=1)
    since_low = windows(l, n + 1)[:, ::-1].argmin(axis=1)
    up[n:] = (n - since_high) / n * 100.0
    down[n:] = (n - since_low) / n * 100.0
    return {"up": up, "down": down}


def _midline(h: np.ndarray, l: np.ndarray, n: int) -> np.ndarray:
    return (rolling_max(h, n) + rolling_min(l, n)) / 2.0


def ichimoku(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike | None = None,
    tenkan_period: int = 9,
    kijun_period: int = 26,
    senkou_b_period: int = 52,
) -> dict[str, np.ndarray]:
    """Ichimoku cloud.

    Senkou A/B are computed from index ``senkou_b_period - 1`` and plotted
    ``kijun_period`` bars ahead. Chikou is the close plotted ``kijun_period``
    bars back, so its last ``kijun_period`` entries are NaN; without
    ``close`` it stays all-NaN. Charting libraries that leave chikou as an
    all-null placeholder disagree with this series everywhere it is defined.
    """

    h, l = as_array(high), as_array(low)
    tp = check_period(tenkan_period, "tenkan_period")
    kp = check_period(kijun_period, "kijun_period")
    sp = check_period(senkou_b_period, "senkou_b_period")
    length = h.size

    tenkan = _midline(h, l, tp)
    kijun = _midline(h, l, kp)
    span_b = _midline(h, l, sp)

    senkou_a = nulls(length)
    senkou_b = nulls(length)
    start = sp - 1
    if length > start + kp:
        src = slice(start, length - kp)
        dst = slice(start + kp, length)
        senkou_a[dst] = (tenkan[src] + kijun[src]) / 2.0
        senkou_b[dst] = span_b[src]

    chikou = nulls(length)
    if close is not None:
        c = as_array(close)
        if length > kp:
            chikou[: length - kp] = c[kp:]

    return {"tenkan": tenkan, "kijun": kijun, "senkou_a": senkou_a, "senkou_b": senkou_b, "chikou": chikou}


def alligator(
    high: ArrayLike,
    low: ArrayLike,
    jaw_period: int = 13,
    jaw_shift: int = 8,
    teeth_period: int = 8,
    teeth_shift: int = 5,
    lips_period: int = 5,
    lips_shift: int = 3,
) -> dict[str, np.ndarray]:
    """Williams Alligator: SMAs of bar midpoints, each plotted ahead by its shift."""

    mid = (as_array(high) + as_array(low)) / 2.0
    return {
        "jaw": _shift_forward(sma(mid, jaw_period), int(jaw_shift)),
        "teeth": _shift_forward(sma(mid, teeth_period), int(teeth_shift)),
        "lips": _shift_forward(sma(mid, lips_period), int(lips_shift)),
    }


def gator(high: ArrayLike, low: ArrayLike) -> dict[str, np.ndarray]:
    """Gator oscillator: ``|jaw - teeth|`` above zero, ``-|teeth - lips|`` below."""

    lines = alligator(high, low)
    return {
        "upper": np.abs(lines["jaw"] - lines["teeth"]),
        "lower": -np.abs(lines["teeth"] - lines["lips"]),
    }
