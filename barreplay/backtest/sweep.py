"""barreplay.backtest.sweep

Parameter sweep harness.

A grid maps parameter names to candidate values; every combination is one
independent run of a named strategy over the same candles. Indicators are
computed once and shared read-only between runs.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from barreplay.backtest.engine import run_backtest
from barreplay.backtest.settings import BacktestSettings
from barreplay.core.exceptions import ConfigError
from barreplay.core.types import Candle, as_candle
from barreplay.indicators.precompute import IndicatorSet, precompute_indicators
from barreplay.strategies.registry import build_strategy

logger = logging.getLogger(__name__)


def expand_grid(grid: Mapping[str, Sequence[Any]]) -> list[dict[str, Any]]:
    """Cartesian product in key order, last key varying fastest."""

    if not grid:
        return [{}]
    keys = list(grid)
    for k in keys:
        if isinstance(grid[k], (str, bytes)) or not isinstance(grid[k], Sequence) or not grid[k]:
            raise ConfigError(f"grid values for {k!r} must be a non-empty list")
    return [dict(zip(keys, combo)) for combo in itertools.product(*(grid[k] for k in keys))]


@dataclass(frozen=True, slots=True)
class SweepResult:
    strategy: str
    items: list[dict[str, Any]]

    @property
    def best(self) -> dict[str, Any] | None:
        return self.items[0] if self.items else None


def _evaluate(
    strategy: str,
    candles: Sequence[Candle],
    indicators: IndicatorSet,
    settings: BacktestSettings,
    point: dict[str, Any],
) -> dict[str, Any]:
    params = {**settings.params, **point}
    decide = build_strategy(strategy, params)
    run_settings = replace(settings, params=MappingProxyType(params))
    report = run_backtest(decide, candles, run_settings, indicators=indicators)
    summary = report.summary()
    return {
        "params": point,
        "roi": summary["roi"],
        "mdd": summary["mdd"],
        "win_rate": summary["win_rate"],
        "total_trades": summary["total_trades"],
        "final_balance": summary["final_balance"],
    }


def run_sweep(
    strategy: str,
    candles: Sequence[Candle | Mapping[str, Any]],
    grid: Mapping[str, Sequence[Any]],
    settings: BacktestSettings | None = None,
    *,
    max_workers: int = 1,
    max_points: int | None = None,
) -> SweepResult:
    """Run every grid point and rank by ROI (best first, then lower drawdown)."""

    settings = settings or BacktestSettings()
    points = expand_grid(grid)
    if max_points is not None and len(points) > max_points:
        raise ConfigError(f"grid has {len(points)} points, limit is {max_points}")

    # Fail on a bad name or bad values before any run starts.
    for point in points:
        build_strategy(strategy, {**settings.params, **point})

    bars = tuple(as_candle(c) for c in candles)
    indicators = precompute_indicators(bars)

    logger.info("sweep_started", extra={"strategy": strategy, "points": len(points), "workers": max_workers})
    if max_workers > 1 and len(points) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            items = list(pool.map(lambda p: _evaluate(strategy, bars, indicators, settings, p), points))
    else:
        items = [_evaluate(strategy, bars, indicators, settings, p) for p in points]

    items.sort(key=lambda it: (-it["roi"], it["mdd"]))
    logger.info("sweep_finished", extra={"strategy": strategy, "points": len(items)})
    return SweepResult(strategy=strategy, items=items)
