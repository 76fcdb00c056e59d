"""barreplay.core.types

Lightweight dataclasses for hot-path objects.

Pydantic models own IO boundaries; dataclasses keep the replay loop lean.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from barreplay.core.exceptions import CandleDataError


class Side(StrEnum):
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def opposite(self) -> Side:
        return Side.SHORT if self is Side.LONG else Side.LONG


class MarketType(StrEnum):
    FUTURES = "futures"
    SPOT = "spot"


class OrderKind(StrEnum):
    MARKET = "market"
    STOP = "stop"
    LIMIT = "limit"


@dataclass(frozen=True, slots=True)
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Candle:
        try:
            ts = row["timestamp"]
            o, h, l, c = row["open"], row["high"], row["low"], row["close"]
        except KeyError as e:
            raise CandleDataError(f"candle missing field: {e.args[0]}") from e
        vol = row.get("volume")
        try:
            return cls(
                timestamp=int(ts),
                open=float(o),
                high=float(h),
                low=float(l),
                close=float(c),
                volume=float(vol) if vol is not None else 0.0,
            )
        except (TypeError, ValueError) as e:
            raise CandleDataError(f"candle field is not numeric: {dict(row)!r}") from e

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.open, self.high, self.low, self.close, self.volume))

    def to_dict(self) -> dict[str, float | int]:
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


def as_candle(c: Candle | Mapping[str, Any]) -> Candle:
    return c if isinstance(c, Candle) else Candle.from_mapping(c)
