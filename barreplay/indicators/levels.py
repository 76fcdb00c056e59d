"""barreplay.indicators.levels

Classic floor pivots, computed from the ``period`` bars before the current one.
"""

from __future__ import annotations

import numpy as np

from barreplay.indicators._util import ArrayLike, as_array, check_period, nulls, rolling_max, rolling_min


def pivot(high: ArrayLike, low: ArrayLike, close: ArrayLike, period: int = 1) -> dict[str, np.ndarray]:
    h, l, c = as_array(high), as_array(low), as_array(close)
    n = check_period(period)
    length = c.size
    names = ("pivot", "r1", "r2", "r3", "s1", "s2", "s3")
    out = {k: nulls(length) for k in names}
    if length <= n:
        return out

    # prior window ending at i-1
    hh = rolling_max(h, n)[n - 1 : length - 1]
    ll = rolling_min(l, n)[n - 1 : length - 1]
    pc = c[n - 1 : length - 1]

    p = (hh + ll + pc) / 3.0
    rng = hh - ll
    tail = slice(n, None)
    out["pivot"][tail] = p
    out["r1"][tail] = 2.0 * p - ll
    out["s1"][tail] = 2.0 * p - hh
    out["r2"][tail] = p + rng
    out["s2"][tail] = p - rng
    out["r3"][tail] = hh + 2.0 * (p - ll)
    out["s3"][tail] = ll - 2.0 * (hh - p)
    return out
