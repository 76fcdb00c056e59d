"""barreplay.backtest.models

Ledger records for one run.

Internal values keep full precision; rounding to 2 dp happens only in the
``to_dict`` output.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any

from barreplay.core.types import OrderKind, Side

MARKET_ORDER = "MARKET"


def order_label(side: Side, kind: OrderKind) -> str:
    """``BUY STOP``, ``SELL LIMIT`` and so on, named after the requested side."""

    verb = "BUY" if side is Side.LONG else "SELL"
    return f"{verb} {kind.value.upper()}"


def round_half_up(x: float, places: int = 2) -> float:
    """Round exact binary ties away from zero, as ``Number.toFixed`` does.

    ``Decimal(float)`` keeps the float's exact binary value, so only true ties
    (``2.25``, ``0.125``) round differently from :func:`round`.
    """

    x = float(x)
    if not math.isfinite(x):
        return x
    return float(Decimal(x).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def _r2(x: float) -> float:
    return round_half_up(x, 2)


@dataclass(frozen=True, slots=True)
class Position:
    id: int
    side: Side
    entry_price: float
    entry_time: int
    entry_index: int
    coin_size: float
    usdt_size: float
    order_type: str = MARKET_ORDER

    def unrealized_pnl(self, price: float) -> float:
        move = (price - self.entry_price) if self.side is Side.LONG else (self.entry_price - price)
        return move / self.entry_price * self.usdt_size

    def snapshot(self, price: float, index: int) -> Mapping[str, Any]:
        """Read-only view handed to decision functions."""

        return MappingProxyType(
            {
                "side": self.side.value.lower(),
                "SIDE": self.side.value,
                "entry_price": self.entry_price,
                "coin_size": self.coin_size,
                "usdt_size": self.usdt_size,
                "unrealizedPnl": self.unrealized_pnl(price),
                "duration": index - self.entry_index,
            }
        )


@dataclass(frozen=True, slots=True)
class PendingOrder:
    side: Side
    kind: OrderKind
    price: float
    created_at: int

    def fills_on(self, high: float, low: float) -> bool:
        if self.kind is OrderKind.STOP:
            return high >= self.price if self.side is Side.LONG else low <= self.price
        if self.kind is OrderKind.LIMIT:
            return low <= self.price if self.side is Side.LONG else high >= self.price
        return False

    @property
    def label(self) -> str:
        return order_label(self.side, self.kind)


@dataclass(frozen=True, slots=True)
class Trade:
    entry_time: int
    entry_price: float
    exit_time: int
    exit_price: float
    side: Side
    pnl: float
    fee: float
    coin_size: float
    usdt_size: float
    duration: int
    order_type: str
    balance: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_time": self.entry_time,
            "entry_price": self.entry_price,
            "exit_time": self.exit_time,
            "exit_price": self.exit_price,
            "side": self.side.value,
            "pnl": _r2(self.pnl),
            "fee": _r2(self.fee),
            "coin_size": self.coin_size,
            "usdt_size": self.usdt_size,
            "size": self.coin_size,
            "duration": self.duration,
            "order_type": self.order_type,
            "balance": _r2(self.balance),
        }


@dataclass(frozen=True, slots=True)
class EquityPoint:
    timestamp: int
    balance: float
    equity: float
    drawdown: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "balance": _r2(self.balance),
            "equity": _r2(self.equity),
            "drawdown": _r2(self.drawdown),
        }
