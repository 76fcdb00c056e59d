from __future__ import annotations

import time

from fastapi import APIRouter, Request
from pydantic import BaseModel

from barreplay import __version__
from barreplay.indicators.registry import list_indicators
from barreplay.strategies import list_strategies

router = APIRouter()


class HealthResponse(BaseModel):
    version: str
    uptime_seconds: float
    strategies: int
    indicators: int


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    started_at = float(getattr(request.app.state, "started_at", time.monotonic()))
    return HealthResponse(
        version=__version__,
        uptime_seconds=time.monotonic() - started_at,
        strategies=len(list_strategies()),
        indicators=len(list_indicators()),
    )
