"""barreplay.backtest.engine

Bar-by-bar replay of a decision function over a candle set.

Each bar after the warm-up:
1) skip the decision (but still fill pending orders) if volume is under the floor
2) fill pending stop/limit orders, newest first, at the order price
3) mark open positions to the close; equity <= 0 ends the run
4) ask the decision function what to do, given a read-only position snapshot
5) apply the action
6) mark to market again and append an equity point

Positions still open after the last bar are closed at its close. Nothing
raised by the decision function escapes: it is logged and treated as a hold.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from barreplay import WARMUP_BARS
from barreplay.backtest.actions import HOLD, Action, Cancel, Entry, Exit, InvalidActionError, parse_action
from barreplay.backtest.models import MARKET_ORDER, EquityPoint, PendingOrder, Position, Trade
from barreplay.backtest.report import BacktestReport
from barreplay.backtest.settings import BacktestSettings
from barreplay.backtest.sizing import size_position
from barreplay.core.types import Candle, MarketType, OrderKind, Side, as_candle
from barreplay.indicators.precompute import IndicatorSet, precompute_indicators

logger = logging.getLogger(__name__)

Snapshot = Mapping[str, Any]


class DecisionFn(Protocol):
    def __call__(
        self,
        candles: Sequence[Candle],
        index: int,
        indicators: IndicatorSet,
        params: Mapping[str, Any],
        open_positions: Sequence[Snapshot],
    ) -> Any: ...


@dataclass(slots=True)
class SimulationState:
    """Everything one run mutates. Never shared between runs."""

    balance: float
    equity: float
    peak: float
    max_drawdown: float = 0.0
    open_positions: list[Position] = field(default_factory=list)
    pending_orders: list[PendingOrder] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)
    equity_curve: list[EquityPoint] = field(default_factory=list)
    total_fees: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    long_trades: int = 0
    short_trades: int = 0
    max_profit: float = 0.0
    max_loss: float = 0.0
    sum_profit: float = 0.0
    sum_loss: float = 0.0
    sum_duration: int = 0
    max_duration: int = 0
    bankrupt: bool = False

    @classmethod
    def start(cls, initial_balance: float) -> SimulationState:
        return cls(balance=initial_balance, equity=initial_balance, peak=initial_balance)

    def mark_to_market(self, price: float) -> float:
        equity = self.balance
        for pos in self.open_positions:
            equity += pos.unrealized_pnl(price)
        self.equity = equity
        return equity


class Simulator:
    """Applies fills, actions and settlement to one ``SimulationState``."""

    def __init__(self, candles: Sequence[Candle], settings: BacktestSettings) -> None:
        self.candles = candles
        self.settings = settings
        self.fee_rate = settings.fee_rate
        self.state = SimulationState.start(settings.initial_balance)
        self.decision_errors = 0
        self.invalid_decisions = 0

    # -- positions -----------------------------------------------------

    def open_position(self, side: Side, price: float, index: int, order_type: str = MARKET_ORDER) -> Position | None:
        s, st = self.settings, self.state

        if s.reverse:
            side = side.opposite
        if side is Side.LONG and not s.allow_long:
            return None
        if side is Side.SHORT and not s.allow_short:
            return None
        if s.market_type is MarketType.SPOT and side is Side.SHORT:
            return None
        if len(st.open_positions) >= s.max_concurrent_orders:
            return None

        size = size_position(s, st.equity, price)
        if size is None:
            return None

        entry_fee = size.usdt * self.fee_rate
        st.balance -= entry_fee
        st.total_fees += entry_fee

        pos = Position(
            id=len(st.trades) + len(st.open_positions),
            side=side,
            entry_price=price,
            entry_time=self.candles[index].timestamp,
            entry_index=index,
            coin_size=size.coins,
            usdt_size=size.usdt,
            order_type=order_type,
        )
        st.open_positions.append(pos)
        return pos

    def close_position(self, pos_index: int, price: float, index: int) -> Trade | None:
        st = self.state
        if pos_index < 0 or pos_index >= len(st.open_positions):
            return None

        pos = st.open_positions.pop(pos_index)
        exit_fee = pos.usdt_size * self.fee_rate
        pnl = pos.unrealized_pnl(price)

        st.balance += pnl - exit_fee
        st.total_fees += exit_fee

        duration = index - pos.entry_index
        if pnl > 0:
            st.winning_trades += 1
            st.sum_profit += pnl
            st.max_profit = max(st.max_profit, pnl)
        else:
            st.losing_trades += 1
            st.sum_loss += abs(pnl)
            st.max_loss = min(st.max_loss, pnl)
        if pos.side is Side.LONG:
            st.long_trades += 1
        else:
            st.short_trades += 1
        st.sum_duration += duration
        st.max_duration = max(st.max_duration, duration)

        trade = Trade(
            entry_time=pos.entry_time,
            entry_price=pos.entry_price,
            exit_time=self.candles[index].timestamp,
            exit_price=price,
            side=pos.side,
            pnl=pnl,
            fee=exit_fee + pos.usdt_size * self.fee_rate,
            coin_size=pos.coin_size,
            usdt_size=pos.usdt_size,
            duration=duration,
            order_type=pos.order_type,
            balance=st.balance,
        )
        st.trades.append(trade)
        return trade

    def close_all(self, price: float, index: int) -> None:
        while self.state.open_positions:
            self.close_position(0, price, index)

    # -- orders --------------------------------------------------------

    def fill_pending(self, candle: Candle, index: int) -> None:
        pending = self.state.pending_orders
        for p in range(len(pending) - 1, -1, -1):
            order = pending[p]
            if order.fills_on(candle.high, candle.low):
                self.open_position(order.side, order.price, index, order.label)
                del pending[p]

    def apply(self, action: Action, candle: Candle, index: int) -> None:
        st = self.state
        if isinstance(action, Entry):
            if action.kind is OrderKind.MARKET:
                self.open_position(action.side, candle.close, index, MARKET_ORDER)
            else:
                price = action.price if action.price is not None else candle.close
                st.pending_orders.append(PendingOrder(side=action.side, kind=action.kind, price=price, created_at=index))
        elif isinstance(action, Exit):
            price = action.price if action.price is not None else candle.close
            if action.index is not None and 0 <= action.index < len(st.open_positions):
                self.close_position(action.index, price, index)
            else:
                self.close_all(price, index)
        elif isinstance(action, Cancel):
            if action.index is not None and 0 <= action.index < len(st.pending_orders):
                del st.pending_orders[action.index]
            else:
                st.pending_orders.clear()

    # -- loop ----------------------------------------------------------

    def solicit(
        self,
        decide: DecisionFn,
        indicators: IndicatorSet,
        params: Mapping[str, Any],
        index: int,
        snapshot: Sequence[Snapshot],
    ) -> Action:
        try:
            raw = decide(self.candles, index, indicators, params, snapshot)
        except Exception:  # noqa: BLE001
            self.decision_errors += 1
            logger.debug("decision_failed", extra={"index": index}, exc_info=True)
            return HOLD

        try:
            return parse_action(raw)
        except InvalidActionError as e:
            self.invalid_decisions += 1
            logger.debug("decision_invalid", extra={"index": index, "reason": str(e)})
            return HOLD

    def run(self, decide: DecisionFn, indicators: IndicatorSet) -> None:
        st = self.state
        candles = self.candles
        params = MappingProxyType(dict(self.settings.params))
        volume_floor = self.settings.volume_filter

        for i in range(WARMUP_BARS, len(candles)):
            candle = candles[i]

            if volume_floor > 0 and candle.volume < volume_floor:
                self.fill_pending(candle, i)
                continue

            self.fill_pending(candle, i)

            if st.mark_to_market(candle.close) <= 0:
                self.close_all(candle.close, i)
                st.balance = 0.0
                st.equity = 0.0
                st.bankrupt = True
                st.equity_curve.append(EquityPoint(timestamp=candle.timestamp, balance=0.0, equity=0.0, drawdown=100.0))
                logger.warning("backtest_bankrupt", extra={"index": i, "timestamp": candle.timestamp})
                break

            snapshot = tuple(p.snapshot(candle.close, i) for p in st.open_positions)
            self.apply(self.solicit(decide, indicators, params, i, snapshot), candle, i)

            equity = st.mark_to_market(candle.close)
            st.peak = max(st.peak, equity)
            dd = (st.peak - equity) / st.peak * 100.0 if st.peak > 0 else 0.0
            st.max_drawdown = max(st.max_drawdown, dd)
            st.equity_curve.append(EquityPoint(timestamp=candle.timestamp, balance=st.balance, equity=equity, drawdown=dd))

        if st.open_positions and candles:
            last = len(candles) - 1
            self.close_all(candles[last].close, last)

    def report(self) -> BacktestReport:
        s, st = self.settings, self.state
        total = len(st.trades)
        initial = s.initial_balance
        return BacktestReport(
            trades=tuple(st.trades),
            equity_curve=tuple(st.equity_curve),
            roi=(st.balance - initial) / initial * 100.0 if initial > 0 else 0.0,
            mdd=st.max_drawdown,
            win_rate=st.winning_trades / total * 100.0 if total else 0.0,
            total_trades=total,
            winning_trades=st.winning_trades,
            losing_trades=st.losing_trades,
            long_trades=st.long_trades,
            short_trades=st.short_trades,
            max_profit=st.max_profit,
            max_loss=st.max_loss,
            avg_profit=st.sum_profit / st.winning_trades if st.winning_trades else 0.0,
            avg_loss=st.sum_loss / st.losing_trades if st.losing_trades else 0.0,
            avg_duration=st.sum_duration / total if total else 0.0,
            max_duration=st.max_duration,
            total_fee=st.total_fees,
            final_balance=st.balance,
            initial_balance=initial,
            symbol=s.symbol,
            timeframe=s.timeframe,
            market_type=s.market_type.value,
            bankrupt=st.bankrupt,
        )


def run_backtest(
    decide: DecisionFn,
    candles: Sequence[Candle | Mapping[str, Any]],
    settings: BacktestSettings | Mapping[str, Any] | None = None,
    *,
    indicators: IndicatorSet | None = None,
) -> BacktestReport:
    """Replay ``candles`` through ``decide`` and report.

    ``indicators`` may be passed when several runs share one candle set; it
    must have been computed from the same candles.
    """

    if settings is None:
        settings = BacktestSettings()
    elif not isinstance(settings, BacktestSettings):
        settings = BacktestSettings.from_mapping(settings)

    bars = tuple(as_candle(c) for c in candles)
    if indicators is None:
        indicators = precompute_indicators(bars)
    elif len(indicators.raw) != len(bars):
        raise ValueError("indicators were computed from a different candle set")

    logger.info(
        "backtest_started",
        extra={"candles": len(bars), "symbol": settings.symbol, "timeframe": settings.timeframe},
    )

    sim = Simulator(bars, settings)
    sim.run(decide, indicators)
    report = sim.report()

    if sim.decision_errors or sim.invalid_decisions:
        logger.warning(
            "decision_failures",
            extra={"raised": sim.decision_errors, "invalid": sim.invalid_decisions, "symbol": settings.symbol},
        )
    logger.info(
        "backtest_finished",
        extra={"trades": report.total_trades, "roi": round(report.roi, 2), "bankrupt": report.bankrupt},
    )
    return report
