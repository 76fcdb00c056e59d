from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from api.deps import get_config
from api.errors import ApiError
from api.schemas.backtest import BacktestRequest, BacktestResponse, SweepRequest, SweepResponse
from barreplay.backtest.engine import run_backtest
from barreplay.backtest.io import validate_candles
from barreplay.backtest.settings import BacktestSettings
from barreplay.backtest.sweep import run_sweep
from barreplay.core.config import Config
from barreplay.core.types import Candle
from barreplay.strategies import build_strategy

logger = logging.getLogger(__name__)

router = APIRouter()


def _checked_candles(req: BacktestRequest | SweepRequest, config: Config) -> list[Candle]:
    if len(req.candles) > config.api.max_candles:
        raise ApiError(
            code="candles.too_many",
            message=f"at most {config.api.max_candles} candles per request",
            status=413,
        )
    candles = req.to_candles()
    validate_candles(candles)
    return candles


def _settings(raw: dict[str, Any], params: dict[str, Any], config: Config) -> BacktestSettings:
    merged = dict(raw)
    merged["params"] = {**(raw.get("params") or {}), **params}
    return BacktestSettings.from_mapping(merged, defaults=config.backtest)


@router.post("/backtest", response_model=BacktestResponse)
def backtest(req: BacktestRequest, config: Config = Depends(get_config)) -> dict[str, Any]:
    settings = _settings(req.settings, req.params, config)
    decide = build_strategy(req.strategy, settings.params)
    candles = _checked_candles(req, config)

    report = run_backtest(decide, candles, settings)
    logger.info(
        "api_backtest_completed",
        extra={"strategy": req.strategy, "candles": len(candles), "trades": report.total_trades},
    )
    return report.to_dict()


@router.post("/sweep", response_model=SweepResponse)
def sweep(req: SweepRequest, config: Config = Depends(get_config)) -> SweepResponse:
    settings = _settings(req.settings, req.params, config)
    candles = _checked_candles(req, config)

    result = run_sweep(
        req.strategy,
        candles,
        req.grid,
        settings,
        max_workers=req.max_workers or config.sweep.max_workers,
        max_points=config.sweep.max_points,
    )
    return SweepResponse(strategy=result.strategy, points=len(result.items), items=result.items)
