"""barreplay.backtest.actions

What a decision function may ask for on a bar.

Decision functions return either one of the action objects below or a plain
mapping in the JSON wire shape::

    {"action": "entry_long" | "entry_short", "type": "market" | "stop" | "limit", "price": 123.4}
    {"action": "exit", "index": 0, "price": 123.4}
    {"action": "cancel", "index": 0}
    {"action": "hold"}

``parse_action`` normalises both forms. ``None`` is a hold; anything else it
cannot read raises ``InvalidActionError`` and the engine holds instead.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from barreplay.core.types import OrderKind, Side


class InvalidActionError(ValueError):
    """A decision function returned something that is not an action."""


@dataclass(frozen=True, slots=True)
class Entry:
    side: Side
    kind: OrderKind = OrderKind.MARKET
    price: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "side", Side(self.side))
        object.__setattr__(self, "kind", OrderKind(self.kind))

    @classmethod
    def long(cls, kind: OrderKind | str = OrderKind.MARKET, price: float | None = None) -> Entry:
        return cls(side=Side.LONG, kind=kind, price=price)

    @classmethod
    def short(cls, kind: OrderKind | str = OrderKind.MARKET, price: float | None = None) -> Entry:
        return cls(side=Side.SHORT, kind=kind, price=price)


@dataclass(frozen=True, slots=True)
class Exit:
    """Close the position at ``index``, or every open position when absent or out of range."""

    index: int | None = None
    price: float | None = None


@dataclass(frozen=True, slots=True)
class Cancel:
    """Drop the pending order at ``index``, or every pending order when absent or out of range."""

    index: int | None = None


@dataclass(frozen=True, slots=True)
class Hold:
    pass


HOLD = Hold()

Action = Entry | Exit | Cancel | Hold

_ENTRY_SIDES = {"entry_long": Side.LONG, "entry_short": Side.SHORT}


def _price(value: Any) -> float | None:
    # Missing, zero, and non-numeric prices all fall back to the bar close.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    v = float(value)
    if not math.isfinite(v) or v <= 0:
        return None
    return v


def _index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_action(raw: Any) -> Action:
    """Normalise one decision result.

    ``None`` and ``{"action": "hold"}`` are holds. A missing or non-positive
    order price comes back as ``None`` and the engine fills at the close. A
    non-integer ``index`` also comes back as ``None``, which cancels or exits
    everything.

    An entry whose ``type`` is not market, limit or stop raises
    :class:`InvalidActionError`, and the engine treats the bar as a hold.
    Nothing is queued, so such an order never takes up a cancel index. Some
    replay engines instead park it as a pending order that can never fill.
    """

    if raw is None:
        return HOLD
    if isinstance(raw, (Entry, Exit, Cancel, Hold)):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidActionError(f"decision must be a mapping or an action, got {type(raw).__name__}")

    name = raw.get("action")
    if not name or not isinstance(name, str):
        raise InvalidActionError("decision has no action")

    if name in _ENTRY_SIDES:
        kind_raw = raw.get("type") or OrderKind.MARKET.value
        try:
            kind = OrderKind(str(kind_raw).lower())
        except ValueError as e:
            raise InvalidActionError(f"unknown order type: {kind_raw!r}") from e
        return Entry(side=_ENTRY_SIDES[name], kind=kind, price=_price(raw.get("price")))
    if name == "exit":
        return Exit(index=_index(raw.get("index")), price=_price(raw.get("price")))
    if name == "cancel":
        return Cancel(index=_index(raw.get("index")))
    if name == "hold":
        return HOLD
    raise InvalidActionError(f"unknown action: {name!r}")

