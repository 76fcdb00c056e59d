"""barreplay: bar-by-bar strategy replay.

Candles go in, a decision function is asked what to do on every bar, and a
report comes out. Nothing is traded for real.
"""

from __future__ import annotations

__all__ = ["__version__", "WARMUP_BARS", "MIN_CANDLES"]

__version__ = "1.0.0"

# Bars skipped before the first decision so long-period indicators settle.
WARMUP_BARS = 200

# Smallest candle set a caller should hand to the engine.
MIN_CANDLES = 300
