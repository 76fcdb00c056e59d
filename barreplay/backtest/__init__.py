"""barreplay.backtest

Candle replay engine.

- settings + sizing: what a run is allowed to do
- actions: what a decision function may ask for
- engine: the per-bar state machine
- io: loading and validating candles
- sweep / walkforward: many runs over one candle set
"""

from barreplay.backtest.actions import HOLD, Action, Cancel, Entry, Exit, Hold, parse_action
from barreplay.backtest.engine import DecisionFn, SimulationState, run_backtest
from barreplay.backtest.report import BacktestReport
from barreplay.backtest.settings import BacktestSettings

__all__ = [
    "HOLD",
    "Action",
    "BacktestReport",
    "BacktestSettings",
    "Cancel",
    "DecisionFn",
    "Entry",
    "Exit",
    "Hold",
    "SimulationState",
    "parse_action",
    "run_backtest",
]
