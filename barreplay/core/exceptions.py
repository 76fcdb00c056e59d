"""barreplay.core.exceptions

Errors are part of the interface.

The simulation loop itself never raises once a run has started. These are
for the edges: config, input data, and name lookups.
"""

from __future__ import annotations


class BarreplayError(Exception):
    """Base exception for barreplay."""


class ConfigError(BarreplayError):
    """Configuration is missing, invalid, or inconsistent."""


class CandleDataError(BarreplayError):
    """Candle input is malformed: bad fields, bad ordering, non-finite prices."""


class InsufficientDataError(CandleDataError):
    """Not enough candles to get past the warm-up window."""


class UnknownStrategyError(BarreplayError):
    """No built-in strategy registered under that name."""


class UnknownIndicatorError(BarreplayError):
    """No indicator calculator registered under that name."""
