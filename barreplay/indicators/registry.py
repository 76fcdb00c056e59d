"""barreplay.indicators.registry

Every calculator, by name, with the raw inputs it reads and its default
parameters. The registry backs three things:

- ``IndicatorSet.calc`` (the bare functions, for decision callbacks)
- ``IndicatorSet.compute`` (custom parameters without re-deriving inputs)
- the catalogue served by the CLI and the HTTP service
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import numpy as np

from barreplay.core.exceptions import UnknownIndicatorError
from barreplay.indicators import levels, moving_averages, oscillators, trend, volatility, volume

Series = np.ndarray | dict[str, np.ndarray]

RAW_FIELDS = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True, slots=True)
class IndicatorSpec:
    name: str
    fn: Callable[..., Series]
    inputs: tuple[str, ...]
    group: str
    params: Mapping[str, Any] = field(default_factory=dict)
    outputs: tuple[str, ...] = ()

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "group": self.group,
            "inputs": list(self.inputs),
            "params": dict(self.params),
            "outputs": list(self.outputs),
        }


_REGISTRY: dict[str, IndicatorSpec] = {}


def register(
    name: str,
    fn: Callable[..., Series],
    *,
    inputs: tuple[str, ...],
    group: str,
    params: Mapping[str, Any] | None = None,
    outputs: tuple[str, ...] = (),
) -> IndicatorSpec:
    if name in _REGISTRY and _REGISTRY[name].fn is not fn:
        raise ValueError(f"indicator already registered: {name}")
    unknown = [i for i in inputs if i not in RAW_FIELDS]
    if unknown:
        raise ValueError(f"unknown raw inputs for {name}: {unknown}")

    spec = IndicatorSpec(
        name=name,
        fn=fn,
        inputs=inputs,
        group=group,
        params=MappingProxyType(dict(params or {})),
        outputs=outputs,
    )
    _REGISTRY[name] = spec
    return spec


def get_indicator(name: str) -> IndicatorSpec:
    spec = _REGISTRY.get(name)
    if spec is None:
        raise UnknownIndicatorError(f"unknown indicator: {name}")
    return spec


def list_indicators() -> list[str]:
    return sorted(_REGISTRY)


def calculators() -> Mapping[str, Callable[..., Series]]:
    return MappingProxyType({name: spec.fn for name, spec in sorted(_REGISTRY.items())})


def compute(name: str, raw: Mapping[str, np.ndarray], **params: Any) -> Series:
    """Run one calculator over raw arrays with defaults overridden by ``params``."""

    spec = get_indicator(name)
    extra = sorted(set(params) - set(spec.params))
    if extra:
        raise ValueError(f"unknown parameters for {name}: {', '.join(extra)}")

    args = [raw[field_name] for field_name in spec.inputs]
    kwargs = {**spec.params, **params}
    return spec.fn(*args, **kwargs)


# Moving averages
register("sma", moving_averages.sma, inputs=("close",), group="moving_average", params={"period": 20})
register("ema", moving_averages.ema, inputs=("close",), group="moving_average", params={"period": 20})
register("wma", moving_averages.wma, inputs=("close",), group="moving_average", params={"period": 20})
register("hma", moving_averages.hma, inputs=("close",), group="moving_average", params={"period": 20})
register("dema", moving_averages.dema, inputs=("close",), group="moving_average", params={"period": 20})
register("tema", moving_averages.tema, inputs=("close",), group="moving_average", params={"period": 20})
register("smma", moving_averages.smma, inputs=("close",), group="moving_average", params={"period": 14})
register("vwma", moving_averages.vwma, inputs=("close", "volume"), group="moving_average", params={"period": 20})

# Oscillators
register("rsi", oscillators.rsi, inputs=("close",), group="oscillator", params={"period": 14})
register(
    "stoch",
    oscillators.stochastic,
    inputs=("high", "low", "close"),
    group="oscillator",
    params={"k_period": 14, "d_period": 3},
    outputs=("k", "d"),
)
register(
    "stoch_rsi",
    oscillators.stoch_rsi,
    inputs=("close",),
    group="oscillator",
    params={"rsi_period": 14, "stoch_period": 14, "k_smooth": 3, "d_smooth": 3},
    outputs=("k", "d"),
)
register(
    "macd",
    oscillators.macd,
    inputs=("close",),
    group="oscillator",
    params={"fast": 12, "slow": 26, "signal": 9},
    outputs=("macd", "signal", "histogram"),
)
register("cci", oscillators.cci, inputs=("high", "low", "close"), group="oscillator", params={"period": 20})
register("momentum", oscillators.momentum, inputs=("close",), group="oscillator", params={"period": 10})
register("roc", oscillators.roc, inputs=("close",), group="oscillator", params={"period": 10})
register("williams_r", oscillators.williams_r, inputs=("high", "low", "close"), group="oscillator", params={"period": 14})
register("ao", oscillators.ao, inputs=("high", "low"), group="oscillator", params={"fast": 5, "slow": 34})
register("ac", oscillators.ac, inputs=("high", "low"), group="oscillator", params={"fast": 5, "slow": 34, "signal": 5})
register(
    "kdj",
    oscillators.kdj,
    inputs=("high", "low", "close"),
    group="oscillator",
    params={"period": 9, "k_smooth": 3, "d_smooth": 3},
    outputs=("k", "d", "j"),
)
register("trix", oscillators.trix, inputs=("close",), group="oscillator", params={"period": 15})
register(
    "uo",
    oscillators.ultimate_oscillator,
    inputs=("high", "low", "close"),
    group="oscillator",
    params={"short": 7, "medium": 14, "long": 28},
)

# Volatility
register(
    "bb",
    volatility.bollinger_bands,
    inputs=("close",),
    group="volatility",
    params={"period": 20, "deviation": 2.0},
    outputs=("upper", "middle", "lower"),
)
register("atr", volatility.atr, inputs=("high", "low", "close"), group="volatility", params={"period": 14})
register(
    "keltner",
    volatility.keltner,
    inputs=("high", "low", "close"),
    group="volatility",
    params={"period": 20, "multiplier": 1.5},
    outputs=("upper", "middle", "lower"),
)
register(
    "donchian",
    volatility.donchian,
    inputs=("high", "low"),
    group="volatility",
    params={"period": 20},
    outputs=("upper", "middle", "lower"),
)
register(
    "envelopes",
    volatility.envelopes,
    inputs=("close",),
    group="volatility",
    params={"period": 20, "deviation": 2.5},
    outputs=("upper", "middle", "lower"),
)
register("std_dev", volatility.std_dev, inputs=("close",), group="volatility", params={"period": 20})

# Trend
register(
    "adx",
    trend.adx,
    inputs=("high", "low", "close"),
    group="trend",
    params={"period": 14},
    outputs=("adx", "plus_di", "minus_di"),
)
register(
    "supertrend",
    trend.supertrend,
    inputs=("high", "low", "close"),
    group="trend",
    params={"period": 10, "multiplier": 3.0},
    outputs=("supertrend", "direction"),
)
register("sar", trend.sar, inputs=("high", "low"), group="trend", params={"accel_start": 0.02, "accel_max": 0.2})
register("aroon", trend.aroon, inputs=("high", "low"), group="trend", params={"period": 25}, outputs=("up", "down"))
register(
    "ichimoku",
    trend.ichimoku,
    inputs=("high", "low", "close"),
    group="trend",
    params={"tenkan_period": 9, "kijun_period": 26, "senkou_b_period": 52},
    outputs=("tenkan", "kijun", "senkou_a", "senkou_b", "chikou"),
)
register(
    "alligator",
    trend.alligator,
    inputs=("high", "low"),
    group="trend",
    params={
        "jaw_period": 13,
        "jaw_shift": 8,
        "teeth_period": 8,
        "teeth_shift": 5,
        "lips_period": 5,
        "lips_shift": 3,
    },
    outputs=("jaw", "teeth", "lips"),
)
register("gator", trend.gator, inputs=("high", "low"), group="trend", outputs=("upper", "lower"))

# Volume
register("obv", volume.obv, inputs=("close", "volume"), group="volume")
register("mfi", volume.mfi, inputs=("high", "low", "close", "volume"), group="volume", params={"period": 14})
register("vwap", volume.vwap, inputs=("high", "low", "close", "volume"), group="volume", params={"period": 20})
register("cmf", volume.cmf, inputs=("high", "low", "close", "volume"), group="volume", params={"period": 20})
register("ad", volume.ad, inputs=("high", "low", "close", "volume"), group="volume")

# Levels
register(
    "pivot",
    levels.pivot,
    inputs=("high", "low", "close"),
    group="levels",
    params={"period": 1},
    outputs=("pivot", "r1", "r2", "r3", "s1", "s2", "s3"),
)
