"""Indicators against straightforward scalar loops over one fixed random walk.

Each reference below is the textbook per-bar loop for the indicator, with
``None`` for "no value". The vectorised library versions must agree with
them everywhere, including where the warm-up ends.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from barreplay.indicators.moving_averages import ema, sma
from barreplay.indicators.oscillators import ao, cci, macd, momentum, rsi, stochastic, williams_r
from barreplay.indicators.trend import adx, alligator, aroon, ichimoku, sar, supertrend
from barreplay.indicators.volatility import atr, bollinger_bands, donchian, envelopes, keltner
from barreplay.indicators.volume import mfi, obv
from tests.unit._candles import ohlcv, random_walk

N = 400


@pytest.fixture(scope="module")
def bars() -> dict[str, list[float]]:
    arrays = ohlcv(random_walk(N, seed=3))
    return {name: values.tolist() for name, values in arrays.items()}


def _arr(values: list[float | None]) -> np.ndarray:
    return np.array([math.nan if v is None else v for v in values], dtype=np.float64)


def assert_matches(actual: np.ndarray, expected: list[float | None]) -> None:
    exp = _arr(expected)
    assert actual.shape == exp.shape
    np.testing.assert_array_equal(np.isnan(actual), np.isnan(exp))
    np.testing.assert_allclose(actual, exp, rtol=1e-9, atol=1e-9, equal_nan=True)


def _hl(highs: list[float], lows: list[float], start: int, end: int) -> tuple[float, float]:
    hh, ll = -math.inf, math.inf
    for j in range(start, end + 1):
        hh = max(hh, highs[j])
        ll = min(ll, lows[j])
    return hh, ll


# reference loops


def ref_sma(p: list[float], n: int) -> list[float | None]:
    out: list[float | None] = [None] * len(p)
    if len(p) < n:
        return out
    s = 0.0
    for i in range(n):
        s += p[i]
    out[n - 1] = s / n
    for i in range(n, len(p)):
        s += p[i] - p[i - n]
        out[i] = s / n
    return out


def ref_ema(p: list[float], n: int) -> list[float | None]:
    out: list[float | None] = [None] * len(p)
    if len(p) < n:
        return out
    s = 0.0
    for i in range(n):
        s += p[i]
    out[n - 1] = s / n
    k = 2 / (n + 1)
    for i in range(n, len(p)):
        out[i] = p[i] * k + out[i - 1] * (1 - k)
    return out


def ref_rsi(p: list[float], n: int) -> list[float | None]:
    out: list[float | None] = [None] * len(p)
    gain = loss = 0.0
    for i in range(1, n + 1):
        ch = p[i] - p[i - 1]
        if ch > 0:
            gain += ch
        else:
            loss -= ch
    avg_gain, avg_loss = gain / n, loss / n
    out[n] = 100.0 if avg_loss == 0 else 100 - 100 / (1 + avg_gain / avg_loss)
    for i in range(n + 1, len(p)):
        ch = p[i] - p[i - 1]
        avg_gain = (avg_gain * (n - 1) + max(ch, 0.0)) / n
        avg_loss = (avg_loss * (n - 1) + max(-ch, 0.0)) / n
        out[i] = 100.0 if avg_loss == 0 else 100 - 100 / (1 + avg_gain / avg_loss)
    return out


def ref_stoch(h, l, c, kp: int, dp: int) -> dict[str, list[float | None]]:
    k: list[float | None] = [None] * len(c)
    d: list[float | None] = [None] * len(c)
    for i in range(kp - 1, len(c)):
        hh, ll = _hl(h, l, i - kp + 1, i)
        k[i] = 50.0 if hh == ll else (c[i] - ll) / (hh - ll) * 100
    for i in range(kp + dp - 2, len(c)):
        d[i] = sum(k[j] for j in range(i - dp + 1, i + 1)) / dp
    return {"k": k, "d": d}


def ref_macd(p: list[float], fast: int, slow: int, sig: int) -> dict[str, list[float | None]]:
    ef, es = ref_ema(p, fast), ref_ema(p, slow)
    line: list[float | None] = [None] * len(p)
    for i in range(slow - 1, len(p)):
        line[i] = ef[i] - es[i]
    signal: list[float | None] = [None] * len(p)
    hist: list[float | None] = [None] * len(p)
    defined = [v for v in line if v is not None]
    sig_ema = ref_ema(defined, sig)
    idx = 0
    for i, v in enumerate(line):
        if v is None:
            continue
        if sig_ema[idx] is not None:
            signal[i] = sig_ema[idx]
            hist[i] = v - sig_ema[idx]
        idx += 1
    return {"macd": line, "signal": signal, "histogram": hist}


def ref_bb(p: list[float], n: int, dev: float) -> dict[str, list[float | None]]:
    mid = ref_sma(p, n)
    upper: list[float | None] = [None] * len(p)
    lower: list[float | None] = [None] * len(p)
    for i in range(n - 1, len(p)):
        sq = sum((p[j] - mid[i]) ** 2 for j in range(i - n + 1, i + 1))
        sd = math.sqrt(sq / n)
        upper[i] = mid[i] + dev * sd
        lower[i] = mid[i] - dev * sd
    return {"upper": upper, "middle": mid, "lower": lower}


def _true_range(h, l, c) -> list[float]:
    tr = [h[0] - l[0]]
    for i in range(1, len(c)):
        tr.append(max(h[i] - l[i], abs(h[i] - c[i - 1]), abs(l[i] - c[i - 1])))
    return tr


def ref_atr(h, l, c, n: int) -> list[float | None]:
    tr = _true_range(h, l, c)
    out: list[float | None] = [None] * len(c)
    out[n - 1] = sum(tr[:n]) / n
    for i in range(n, len(c)):
        out[i] = (out[i - 1] * (n - 1) + tr[i]) / n
    return out


def ref_cci(h, l, c, n: int) -> list[float | None]:
    tp = [(h[i] + l[i] + c[i]) / 3 for i in range(len(c))]
    out: list[float | None] = [None] * len(c)
    for i in range(n - 1, len(c)):
        window = tp[i - n + 1 : i + 1]
        mean = sum(window) / n
        mad = sum(abs(x - mean) for x in window) / n
        out[i] = 0.0 if mad == 0 else (tp[i] - mean) / (0.015 * mad)
    return out


def ref_momentum(p: list[float], n: int) -> list[float | None]:
    return [None if i < n else p[i] - p[i - n] for i in range(len(p))]


def ref_williams(h, l, c, n: int) -> list[float | None]:
    out: list[float | None] = [None] * len(c)
    for i in range(n - 1, len(c)):
        hh, ll = _hl(h, l, i - n + 1, i)
        out[i] = -50.0 if hh == ll else (hh - c[i]) / (hh - ll) * -100
    return out


def ref_adx(h, l, c, n: int) -> dict[str, list[float | None]]:
    size = len(c)
    adx_out: list[float | None] = [None] * size
    pdi_out: list[float | None] = [None] * size
    mdi_out: list[float | None] = [None] * size
    tr = _true_range(h, l, c)[1:]
    pdm, mdm = [], []
    for i in range(1, size):
        up, down = h[i] - h[i - 1], l[i - 1] - l[i]
        pdm.append(up if up > down and up > 0 else 0.0)
        mdm.append(down if down > up and down > 0 else 0.0)
    s_tr, s_p, s_m = sum(tr[:n]), sum(pdm[:n]), sum(mdm[:n])
    dxs: list[float] = []
    for i in range(n, len(tr)):
        if i != n:
            s_tr = s_tr - s_tr / n + tr[i]
            s_p = s_p - s_p / n + pdm[i]
            s_m = s_m - s_m / n + mdm[i]
        pdi = 0.0 if s_tr == 0 else s_p / s_tr * 100
        mdi = 0.0 if s_tr == 0 else s_m / s_tr * 100
        pdi_out[i + 1], mdi_out[i + 1] = pdi, mdi
        dx = 0.0 if pdi + mdi == 0 else abs(pdi - mdi) / (pdi + mdi) * 100
        dxs.append(dx)
        if len(dxs) == n:
            adx_out[i + 1] = sum(dxs) / n
        elif len(dxs) > n:
            adx_out[i + 1] = (adx_out[i] * (n - 1) + dx) / n
    return {"adx": adx_out, "plus_di": pdi_out, "minus_di": mdi_out}


def ref_supertrend(h, l, c, n: int, mult: float) -> dict[str, list[float | None]]:
    a = ref_atr(h, l, c, n)
    line: list[float | None] = [None] * len(c)
    direction: list[float | None] = [None] * len(c)
    upper = lower = 0.0
    for i in range(n, len(c)):
        hl2 = (h[i] + l[i]) / 2
        bu, bl = hl2 + mult * a[i], hl2 - mult * a[i]
        if i == n:
            upper, lower = bu, bl
            direction[i] = 1.0 if c[i] > upper else -1.0
        else:
            upper = bu if bu < upper or c[i - 1] > upper else upper
            lower = bl if bl > lower or c[i - 1] < lower else lower
            if direction[i - 1] == 1.0:
                direction[i] = -1.0 if c[i] < lower else 1.0
            else:
                direction[i] = 1.0 if c[i] > upper else -1.0
        line[i] = lower if direction[i] == 1.0 else upper
    return {"supertrend": line, "direction": direction}


def ref_obv(c, v) -> list[float]:
    out = [v[0]]
    for i in range(1, len(c)):
        if c[i] > c[i - 1]:
            out.append(out[-1] + v[i])
        elif c[i] < c[i - 1]:
            out.append(out[-1] - v[i])
        else:
            out.append(out[-1])
    return out


def ref_mfi(h, l, c, v, n: int) -> list[float | None]:
    tp = [(h[i] + l[i] + c[i]) / 3 for i in range(len(c))]
    out: list[float | None] = [None] * len(c)
    for i in range(n, len(c)):
        pos = neg = 0.0
        for j in range(i - n + 1, i + 1):
            if tp[j] > tp[j - 1]:
                pos += tp[j] * v[j]
            elif tp[j] < tp[j - 1]:
                neg += tp[j] * v[j]
        out[i] = 100.0 if neg == 0 else 100 - 100 / (1 + pos / neg)
    return out


def ref_donchian(h, l, n: int) -> dict[str, list[float | None]]:
    upper: list[float | None] = [None] * len(h)
    lower: list[float | None] = [None] * len(h)
    middle: list[float | None] = [None] * len(h)
    for i in range(n - 1, len(h)):
        hh, ll = _hl(h, l, i - n + 1, i)
        upper[i], lower[i], middle[i] = hh, ll, (hh + ll) / 2
    return {"upper": upper, "middle": middle, "lower": lower}


def ref_ao(h, l) -> list[float | None]:
    mid = [(h[i] + l[i]) / 2 for i in range(len(h))]
    fast, slow = ref_sma(mid, 5), ref_sma(mid, 34)
    return [None if slow[i] is None else fast[i] - slow[i] for i in range(len(h))]


def ref_envelopes(p, n: int, dev: float) -> dict[str, list[float | None]]:
    mid = ref_sma(p, n)
    return {
        "upper": [None if m is None else m * (1 + dev / 100) for m in mid],
        "middle": mid,
        "lower": [None if m is None else m * (1 - dev / 100) for m in mid],
    }


def ref_keltner(h, l, c, n: int, mult: float) -> dict[str, list[float | None]]:
    mid, a = ref_ema(c, n), ref_atr(h, l, c, n)
    return {
        "upper": [None if m is None else m + mult * a[i] for i, m in enumerate(mid)],
        "middle": mid,
        "lower": [None if m is None else m - mult * a[i] for i, m in enumerate(mid)],
    }


def ref_aroon(h, l, n: int) -> dict[str, list[float | None]]:
    up: list[float | None] = [None] * len(h)
    down: list[float | None] = [None] * len(h)
    for i in range(n, len(h)):
        hi_idx = lo_idx = 0
        hh, ll = -math.inf, math.inf
        for j in range(n + 1):
            if h[i - j] > hh:
                hh, hi_idx = h[i - j], j
            if l[i - j] < ll:
                ll, lo_idx = l[i - j], j
        up[i] = (n - hi_idx) / n * 100
        down[i] = (n - lo_idx) / n * 100
    return {"up": up, "down": down}


def ref_sar(h, l, start: float, cap: float) -> list[float]:
    is_long = h[1] > h[0]
    af = start
    ep = h[0] if is_long else l[0]
    out = [l[0] if is_long else h[0]]
    for i in range(1, len(h)):
        prev = out[i - 1] or (l[0] if is_long else h[0])
        cur = prev + af * (ep - prev)
        if is_long:
            if i >= 2:
                cur = min(cur, l[i - 1], l[i - 2] or l[i - 1])
            if l[i] < cur:
                is_long, cur, ep, af = False, ep, l[i], start
            elif h[i] > ep:
                ep, af = h[i], min(af + start, cap)
        else:
            if i >= 2:
                cur = max(cur, h[i - 1], h[i - 2] or h[i - 1])
            if h[i] > cur:
                is_long, cur, ep, af = True, ep, h[i], start
            elif l[i] < ep:
                ep, af = l[i], min(af + start, cap)
        out.append(cur)
    return out


def ref_ichimoku(h, l, c, tp: int, kp: int, sp: int) -> dict[str, list[float | None]]:
    size = len(h)
    tenkan: list[float | None] = [None] * size
    kijun: list[float | None] = [None] * size
    span_a: list[float | None] = [None] * size
    span_b: list[float | None] = [None] * size
    chikou: list[float | None] = [None] * size
    for i in range(size):
        if i >= tp - 1:
            tenkan[i] = sum(_hl(h, l, i - tp + 1, i)) / 2
        if i >= kp - 1:
            kijun[i] = sum(_hl(h, l, i - kp + 1, i)) / 2
        if i >= sp - 1 and i + kp < size:
            span_a[i + kp] = (tenkan[i] + kijun[i]) / 2
            span_b[i + kp] = sum(_hl(h, l, i - sp + 1, i)) / 2
        if i >= kp:
            chikou[i - kp] = c[i]
    return {"tenkan": tenkan, "kijun": kijun, "senkou_a": span_a, "senkou_b": span_b, "chikou": chikou}


def ref_alligator(h, l) -> dict[str, list[float | None]]:
    mid = [(h[i] + l[i]) / 2 for i in range(len(h))]
    out: dict[str, list[float | None]] = {}
    for name, period, shift in (("jaw", 13, 8), ("teeth", 8, 5), ("lips", 5, 3)):
        base = ref_sma(mid, period)
        out[name] = [None if i < shift else base[i - shift] for i in range(len(h))]
    return out


# comparisons


@pytest.mark.parametrize("period", [5, 20, 50, 200])
def test_ema_is_bit_identical_to_the_explicit_recurrence(bars, period: int) -> None:
    np.testing.assert_array_equal(ema(bars["close"], period), _arr(ref_ema(bars["close"], period)))


@pytest.mark.parametrize("period", [5, 20, 200])
def test_sma(bars, period: int) -> None:
    np.testing.assert_array_equal(sma(bars["close"], period), _arr(ref_sma(bars["close"], period)))


@pytest.mark.parametrize("period", [7, 14, 21])
def test_rsi(bars, period: int) -> None:
    assert_matches(rsi(bars["close"], period), ref_rsi(bars["close"], period))


@pytest.mark.parametrize(("kp", "dp"), [(14, 3), (5, 3), (21, 7)])
def test_stochastic(bars, kp: int, dp: int) -> None:
    got = stochastic(bars["high"], bars["low"], bars["close"], kp, dp)
    for key, expected in ref_stoch(bars["high"], bars["low"], bars["close"], kp, dp).items():
        assert_matches(got[key], expected)


def test_macd(bars) -> None:
    got = macd(bars["close"], 12, 26, 9)
    for key, expected in ref_macd(bars["close"], 12, 26, 9).items():
        assert_matches(got[key], expected)


def test_bollinger_bands(bars) -> None:
    got = bollinger_bands(bars["close"], 20, 2.0)
    for key, expected in ref_bb(bars["close"], 20, 2.0).items():
        assert_matches(got[key], expected)


def test_atr(bars) -> None:
    assert_matches(atr(bars["high"], bars["low"], bars["close"], 14), ref_atr(bars["high"], bars["low"], bars["close"], 14))


@pytest.mark.parametrize("period", [14, 20])
def test_cci(bars, period: int) -> None:
    assert_matches(
        cci(bars["high"], bars["low"], bars["close"], period), ref_cci(bars["high"], bars["low"], bars["close"], period)
    )


@pytest.mark.parametrize("period", [10, 14])
def test_momentum(bars, period: int) -> None:
    assert_matches(momentum(bars["close"], period), ref_momentum(bars["close"], period))


def test_williams_r(bars) -> None:
    assert_matches(
        williams_r(bars["high"], bars["low"], bars["close"], 14), ref_williams(bars["high"], bars["low"], bars["close"], 14)
    )


def test_adx(bars) -> None:
    got = adx(bars["high"], bars["low"], bars["close"], 14)
    for key, expected in ref_adx(bars["high"], bars["low"], bars["close"], 14).items():
        assert_matches(got[key], expected)


def test_supertrend(bars) -> None:
    got = supertrend(bars["high"], bars["low"], bars["close"], 10, 3.0)
    for key, expected in ref_supertrend(bars["high"], bars["low"], bars["close"], 10, 3.0).items():
        assert_matches(got[key], expected)


def test_obv(bars) -> None:
    assert_matches(obv(bars["close"], bars["volume"]), ref_obv(bars["close"], bars["volume"]))


def test_mfi(bars) -> None:
    assert_matches(
        mfi(bars["high"], bars["low"], bars["close"], bars["volume"], 14),
        ref_mfi(bars["high"], bars["low"], bars["close"], bars["volume"], 14),
    )


def test_donchian(bars) -> None:
    got = donchian(bars["high"], bars["low"], 20)
    for key, expected in ref_donchian(bars["high"], bars["low"], 20).items():
        assert_matches(got[key], expected)


def test_ao(bars) -> None:
    assert_matches(ao(bars["high"], bars["low"]), ref_ao(bars["high"], bars["low"]))


def test_envelopes(bars) -> None:
    got = envelopes(bars["close"], 20, 2.5)
    for key, expected in ref_envelopes(bars["close"], 20, 2.5).items():
        assert_matches(got[key], expected)


def test_keltner(bars) -> None:
    got = keltner(bars["high"], bars["low"], bars["close"], 20, 1.5)
    for key, expected in ref_keltner(bars["high"], bars["low"], bars["close"], 20, 1.5).items():
        assert_matches(got[key], expected)


def test_aroon(bars) -> None:
    got = aroon(bars["high"], bars["low"], 25)
    for key, expected in ref_aroon(bars["high"], bars["low"], 25).items():
        assert_matches(got[key], expected)


def test_sar(bars) -> None:
    assert_matches(sar(bars["high"], bars["low"], 0.02, 0.2), ref_sar(bars["high"], bars["low"], 0.02, 0.2))


def test_ichimoku(bars) -> None:
    got = ichimoku(bars["high"], bars["low"], bars["close"], 9, 26, 52)
    for key, expected in ref_ichimoku(bars["high"], bars["low"], bars["close"], 9, 26, 52).items():
        assert_matches(got[key], expected)


def test_alligator(bars) -> None:
    got = alligator(bars["high"], bars["low"])
    for key, expected in ref_alligator(bars["high"], bars["low"]).items():
        assert_matches(got[key], expected)
