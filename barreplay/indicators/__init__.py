"""barreplay.indicators

Pure array transforms over price and volume series, plus the once-per-run
precomputation pass that feeds decision functions.

Every function returns arrays of the input's length, NaN during warm-up.
"""

from barreplay.indicators.levels import pivot
from barreplay.indicators.moving_averages import dema, ema, hma, sma, smma, tema, vwma, wma
from barreplay.indicators.oscillators import (
    ac,
    ao,
    cci,
    kdj,
    macd,
    momentum,
    roc,
    rsi,
    stoch_rsi,
    stochastic,
    trix,
    ultimate_oscillator,
    williams_r,
)
from barreplay.indicators.precompute import IndicatorSet, RawSeries, precompute_indicators
from barreplay.indicators.registry import IndicatorSpec, compute, get_indicator, list_indicators
from barreplay.indicators.trend import adx, alligator, aroon, gator, ichimoku, sar, supertrend
from barreplay.indicators.volatility import atr, bollinger_bands, donchian, envelopes, keltner, std_dev
from barreplay.indicators.volume import ad, cmf, mfi, obv, vwap

__all__ = [
    "IndicatorSet",
    "IndicatorSpec",
    "RawSeries",
    "compute",
    "get_indicator",
    "list_indicators",
    "precompute_indicators",
    # moving averages
    "sma",
    "ema",
    "wma",
    "hma",
    "dema",
    "tema",
    "smma",
    "vwma",
    # oscillators
    "rsi",
    "stochastic",
    "stoch_rsi",
    "macd",
    "cci",
    "momentum",
    "roc",
    "williams_r",
    "ao",
    "ac",
    "kdj",
    "trix",
    "ultimate_oscillator",
    # volatility
    "bollinger_bands",
    "atr",
    "keltner",
    "donchian",
    "envelopes",
    "std_dev",
    # trend
    "adx",
    "supertrend",
    "sar",
    "aroon",
    "ichimoku",
    "alligator",
    "gator",
    # volume
    "obv",
    "mfi",
    "vwap",
    "cmf",
    "ad",
    # levels
    "pivot",
]
