from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from api.schemas.common import CandlesRequest


class BacktestRequest(CandlesRequest):
    strategy: str = Field(..., description="Built-in strategy name (see GET /strategies)")
    params: dict[str, Any] = Field(default_factory=dict, description="Strategy parameters")
    settings: dict[str, Any] = Field(
        default_factory=dict,
        description="Backtest settings; snake_case or camelCase keys (initialBalance, maxPositionUSDT, ...)",
    )


class TradeOut(BaseModel):
    entry_time: int
    entry_price: float
    exit_time: int
    exit_price: float
    side: str
    pnl: float
    fee: float
    coin_size: float
    usdt_size: float
    size: float
    duration: int
    order_type: str
    balance: float


class EquityPointOut(BaseModel):
    timestamp: int
    balance: float
    equity: float
    drawdown: float


class BacktestResponse(BaseModel):
    trades: list[TradeOut]
    equity_curve: list[EquityPointOut]
    roi: float
    mdd: float
    win_rate: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    long_trades: int
    short_trades: int
    max_profit: float
    max_loss: float
    avg_profit: float
    avg_loss: float
    avg_duration: float
    max_duration: int
    total_fee: float
    final_balance: float
    initial_balance: float
    symbol: str
    timeframe: str
    market_type: str


class SweepRequest(CandlesRequest):
    strategy: str
    grid: dict[str, list[Any]] = Field(..., description="Parameter name -> candidate values")
    params: dict[str, Any] = Field(default_factory=dict, description="Fixed strategy parameters")
    settings: dict[str, Any] = Field(default_factory=dict)
    max_workers: int | None = Field(None, ge=1, le=32)


class SweepItem(BaseModel):
    params: dict[str, Any]
    roi: float
    mdd: float
    win_rate: float
    total_trades: int
    final_balance: float


class SweepResponse(BaseModel):
    strategy: str
    points: int
    items: list[SweepItem]
