"""barreplay.backtest.sizing

Position sizing: a percent of equity (or of the initial balance when not
compounding), times leverage, floored to a whole 100 USDT and capped.
Anything under one 100 USDT ticket is not opened.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from barreplay.backtest.settings import BacktestSettings

TICKET_USDT = 100.0


@dataclass(frozen=True, slots=True)
class PositionSize:
    usdt: float
    coins: float


def size_position(settings: BacktestSettings, equity: float, price: float) -> PositionSize | None:
    if not price > 0:
        return None

    base = equity if settings.compound else settings.initial_balance
    raw = base * (settings.equity_percent / 100.0) * settings.leverage
    usdt = min(math.floor(raw / TICKET_USDT) * TICKET_USDT, settings.effective_max_position)
    if usdt < TICKET_USDT:
        return None
    return PositionSize(usdt=float(usdt), coins=usdt / price)
