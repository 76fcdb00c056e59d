"""barreplay.strategies

Built-in decision functions, looked up by name.

These are simple baselines for exercising the engine and the HTTP
service. Any callable with the decision-function signature works with
``run_backtest``; registering is only needed to run it by name.
"""

from barreplay.strategies.base import Strategy
from barreplay.strategies.registry import build_strategy, describe_strategy, discover, get_strategy, list_strategies, register

__all__ = [
    "Strategy",
    "build_strategy",
    "describe_strategy",
    "discover",
    "get_strategy",
    "list_strategies",
    "register",
]
