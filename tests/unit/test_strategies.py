from __future__ import annotations

import numpy as np
import pytest

from barreplay.backtest.actions import HOLD, Cancel, Entry, Exit, Hold
from barreplay.backtest.engine import run_backtest
from barreplay.backtest.settings import BacktestSettings
from barreplay.core.exceptions import ConfigError, UnknownStrategyError
from barreplay.core.types import OrderKind, Side
from barreplay.indicators.precompute import precompute_indicators
from barreplay.strategies import build_strategy, describe_strategy, get_strategy, list_strategies
from barreplay.strategies.base import at, param_key
from tests.unit._candles import candles_from_closes, flat_candles

BUILT_IN = {"hold", "ma_crossover", "rsi_reversion", "donchian_breakout", "bollinger_reversion", "supertrend_follow"}


def test_all_built_ins_registered() -> None:
    assert BUILT_IN <= set(list_strategies())


def test_unknown_strategy() -> None:
    with pytest.raises(UnknownStrategyError):
        get_strategy("does_not_exist")


def test_describe_lists_defaults() -> None:
    info = describe_strategy("ma_crossover")
    assert info["params"] == {"fast": 10, "slow": 50, "average": "ema", "allow_short": False}
    assert info["description"]


def test_build_coerces_and_ignores_unknown() -> None:
    s = build_strategy("ma_crossover", {"fast": "5", "slow": 20.0, "other": 1})
    assert (s.fast, s.slow) == (5, 20)
    assert isinstance(s.fast, int)

    b = build_strategy("bollinger_reversion", {"deviation": 3})
    assert b.deviation == 3.0 and isinstance(b.deviation, float)


@pytest.mark.parametrize(
    "name, params",
    [
        ("ma_crossover", {"fast": 50, "slow": 10}),
        ("ma_crossover", {"fast": 2.5}),
        ("ma_crossover", {"allow_short": "yes"}),
        ("ma_crossover", {"average": "kama"}),
        ("rsi_reversion", {"oversold": 60, "exit_level": 50}),
        ("donchian_breakout", {"refresh": 1}),
    ],
)
def test_build_rejects_bad_params(name, params) -> None:
    with pytest.raises(ConfigError):
        build_strategy(name, params)


def test_helpers() -> None:
    assert param_key(20, 2.0) == "20_2"
    assert param_key(20, 1.5) == "20_1.5"

    s = np.array([np.nan, 1.0])
    assert at(s, 0) is None
    assert at(s, 1) == 1.0
    assert at(s, -1) is None


def test_hold_never_trades() -> None:
    r = run_backtest(build_strategy("hold"), flat_candles(300))
    assert r.total_trades == 0
    assert build_strategy("hold")(flat_candles(1), 0, None, {}, ()) is HOLD


def _v_shape():
    closes = [200.0 - 0.5 * i for i in range(230)] + [85.5 + j for j in range(1, 71)]
    return candles_from_closes(closes)


def test_ma_crossover_enters_on_cross() -> None:
    candles = _v_shape()
    r = run_backtest(build_strategy("ma_crossover"), candles)
    assert r.total_trades == 1
    t = r.trades[0]
    assert t.side is Side.LONG
    assert t.entry_time > candles[230].timestamp
    assert t.pnl > 0


def test_ma_crossover_uses_computed_periods_off_catalogue() -> None:
    candles = _v_shape()
    ind = precompute_indicators(candles)
    s = build_strategy("ma_crossover", {"fast": 7, "slow": 30, "average": "sma"})
    actions = [s(candles, i, ind, {}, ()) for i in range(200, 300)]
    assert sum(isinstance(a, Entry) for a in actions) == 1
    assert ind.compute("sma", period=7) is ind.compute("sma", period=7)


def test_rsi_reversion_round_trip() -> None:
    closes = [100.0] * 221 + [99.0 - i for i in range(10)] + [91.0 + 2 * i for i in range(69)]
    r = run_backtest(build_strategy("rsi_reversion"), candles_from_closes(closes))
    assert r.total_trades == 1
    t = r.trades[0]
    assert t.side is Side.LONG
    assert t.entry_price == 99.0
    assert t.exit_time > t.entry_time


def test_donchian_places_stops_on_cadence() -> None:
    candles = candles_from_closes([100.0] * 300)
    ind = precompute_indicators(candles)
    s = build_strategy("donchian_breakout", {"allow_short": True})
    assert s(candles, 200, ind, {}, ()) == Cancel()
    assert s(candles, 201, ind, {}, ()) == Entry(Side.LONG, OrderKind.STOP, 100.5)
    assert s(candles, 202, ind, {}, ()) == Entry(Side.SHORT, OrderKind.STOP, 99.5)
    assert isinstance(s(candles, 203, ind, {}, ()), Hold)

    r = run_backtest(build_strategy("donchian_breakout"), candles)
    assert r.total_trades == 1
    assert r.trades[0].order_type == "BUY STOP"
    assert r.trades[0].entry_price == 100.5


def test_donchian_exits_below_prior_channel() -> None:
    candles = candles_from_closes([100.0] * 300)
    ind = precompute_indicators(candles)
    s = build_strategy("donchian_breakout")
    held = ({"side": "long"},)
    assert isinstance(s(candles, 250, ind, {}, held), Hold)

    dropped = candles_from_closes([100.0] * 250 + [90.0] * 50)
    assert isinstance(s(dropped, 250, precompute_indicators(dropped), {}, held), Exit)


def test_bollinger_reversion_uses_limits() -> None:
    r = run_backtest(build_strategy("bollinger_reversion"), candles_from_closes([100.0] * 300))
    assert r.total_trades > 0
    assert {t.order_type for t in r.trades} == {"BUY LIMIT"}


def test_supertrend_follow_trades_market_orders(walk_400) -> None:
    r = run_backtest(build_strategy("supertrend_follow"), walk_400)
    assert all(t.order_type == "MARKET" for t in r.trades)
    assert r.long_trades + r.short_trades == r.total_trades


@pytest.mark.parametrize("name", sorted(BUILT_IN))
def test_every_strategy_runs_clean(name, walk_400) -> None:
    r = run_backtest(build_strategy(name), walk_400, BacktestSettings(max_concurrent_orders=2))
    assert r.final_balance > 0
    assert len(r.equity_curve) == 200
