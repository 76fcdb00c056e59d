from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator

from barreplay.core.types import Candle


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class CandleIn(BaseModel):
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator("open", "high", "low", "close", "volume")
    @classmethod
    def finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be finite")
        return v

    def to_candle(self) -> Candle:
        return Candle(
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
        )


class CandlesRequest(BaseModel):
    candles: list[CandleIn] = Field(..., min_length=1)

    def to_candles(self) -> list[Candle]:
        return [c.to_candle() for c in self.candles]


def nullable(values: Any) -> list[float | None]:
    """NaN has no JSON form; warm-up entries go out as null."""

    return [None if math.isnan(v) else v for v in values]
