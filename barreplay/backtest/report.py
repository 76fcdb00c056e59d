"""barreplay.backtest.report

Aggregate results of one run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from barreplay.backtest.models import EquityPoint, Trade, round_half_up


@dataclass(frozen=True, slots=True)
class BacktestReport:
    trades: tuple[Trade, ...]
    equity_curve: tuple[EquityPoint, ...]
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
    bankrupt: bool = False

    def summary(self) -> dict[str, Any]:
        """Everything except the two ledgers, rounded for output."""

        return {
            "roi": round_half_up(self.roi, 2),
            "mdd": round_half_up(self.mdd, 2),
            "win_rate": round_half_up(self.win_rate, 2),
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "long_trades": self.long_trades,
            "short_trades": self.short_trades,
            "max_profit": round_half_up(self.max_profit, 2),
            "max_loss": round_half_up(self.max_loss, 2),
            "avg_profit": round_half_up(self.avg_profit, 2),
            "avg_loss": round_half_up(self.avg_loss, 2),
            "avg_duration": round_half_up(self.avg_duration, 1),
            "max_duration": self.max_duration,
            "total_fee": round_half_up(self.total_fee, 2),
            "final_balance": round_half_up(self.final_balance, 2),
            "initial_balance": self.initial_balance,
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "market_type": self.market_type,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades": [t.to_dict() for t in self.trades],
            "equity_curve": [p.to_dict() for p in self.equity_curve],
            **self.summary(),
        }
