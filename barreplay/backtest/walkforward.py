"""barreplay.backtest.walkforward

Walk-forward validation harness.

Goal: prevent self-deception.
- Rolling train/test windows
- Optional embargo between train and test
- Strategy evaluated out-of-sample per window

Each test window is replayed together with the ``WARMUP_BARS`` candles
right before it, so the engine's first decision lands on the first test
bar. Built-in strategies have no fit step; the train window is there to
keep the layout honest when one is added.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from barreplay import WARMUP_BARS
from barreplay.backtest.engine import DecisionFn, run_backtest
from barreplay.backtest.models import round_half_up
from barreplay.backtest.report import BacktestReport
from barreplay.backtest.settings import BacktestSettings
from barreplay.core.types import Candle, as_candle


@dataclass(frozen=True, slots=True)
class Window:
    train_start: int
    train_end: int
    test_start: int
    test_end: int


def build_windows(
    *,
    t_len: int,
    train_size: int,
    test_size: int,
    step_size: int,
    embargo: int = 0,
) -> list[Window]:
    if t_len <= 0:
        return []
    if train_size <= 0 or test_size <= 0 or step_size <= 0:
        raise ValueError("train_size/test_size/step_size must be > 0")
    if embargo < 0:
        raise ValueError("embargo must be >= 0")

    out: list[Window] = []
    start = 0
    while True:
        train_start = start
        train_end = train_start + train_size
        test_start = train_end + embargo
        test_end = test_start + test_size
        if test_end > t_len:
            break
        out.append(Window(train_start=train_start, train_end=train_end, test_start=test_start, test_end=test_end))
        start += step_size
    return out


@dataclass(frozen=True, slots=True)
class WalkForwardResult:
    windows: list[Window]
    reports: list[BacktestReport]

    @property
    def summary(self) -> dict[str, Any]:
        if not self.reports:
            return {"windows": 0, "mean_roi": 0.0, "worst_mdd": 0.0, "total_trades": 0}
        return {
            "windows": len(self.reports),
            "mean_roi": round_half_up(sum(r.roi for r in self.reports) / len(self.reports), 2),
            "worst_mdd": round_half_up(max(r.mdd for r in self.reports), 2),
            "total_trades": sum(r.total_trades for r in self.reports),
        }

    def window_metrics(self) -> list[dict[str, Any]]:
        return [
            {
                "test_start": w.test_start,
                "test_end": w.test_end,
                "roi": round_half_up(r.roi, 2),
                "mdd": round_half_up(r.mdd, 2),
                "win_rate": round_half_up(r.win_rate, 2),
                "total_trades": r.total_trades,
            }
            for w, r in zip(self.windows, self.reports)
        ]


def run_walkforward(
    decide: DecisionFn,
    candles: Sequence[Candle | Mapping[str, Any]],
    *,
    train_size: int,
    test_size: int,
    step_size: int,
    embargo: int = 0,
    settings: BacktestSettings | None = None,
) -> WalkForwardResult:
    if train_size + embargo < WARMUP_BARS:
        raise ValueError(f"train_size + embargo must be >= {WARMUP_BARS} to cover the warm-up")

    bars = tuple(as_candle(c) for c in candles)
    windows = build_windows(
        t_len=len(bars), train_size=train_size, test_size=test_size, step_size=step_size, embargo=embargo
    )

    reports: list[BacktestReport] = []
    for w in windows:
        segment = bars[w.test_start - WARMUP_BARS : w.test_end]
        reports.append(run_backtest(decide, segment, settings))

    return WalkForwardResult(windows=windows, reports=reports)
