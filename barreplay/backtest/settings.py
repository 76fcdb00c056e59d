"""barreplay.backtest.settings

Per-run settings.

Callers may send either the snake_case names used here or the camelCase
names of the JSON wire format (``initialBalance``, ``maxPositionUSDT``, ...).
Values are validated by the same pydantic model that backs the
``backtest`` config section, so a config file and a request body reject the
same mistakes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from barreplay.core.config import BacktestDefaults
from barreplay.core.exceptions import ConfigError
from barreplay.core.types import MarketType

FUTURES_FEE_RATE = 0.0005
SPOT_FEE_RATE = 0.001

# Notional cap for anything that is not a BTC or ETH pair.
SMALL_CAP_MAX_POSITION_USDT = 1_000_000.0
LARGE_CAP_MAX_POSITION_USDT = 10_000_000.0
LARGE_CAP_MARKERS = ("BTC", "ETH")

_WIRE_NAMES: dict[str, str] = {
    "initialBalance": "initial_balance",
    "equityPercent": "equity_percent",
    "marketType": "market_type",
    "feePercent": "fee_percent",
    "maxPositionUSDT": "max_position_usdt",
    "maxConcurrentOrders": "max_concurrent_orders",
    "allowLong": "allow_long",
    "allowShort": "allow_short",
    "volumeFilter": "volume_filter",
}


@dataclass(frozen=True, slots=True)
class BacktestSettings:
    initial_balance: float = 10000.0
    equity_percent: float = 10.0
    leverage: float = 1.0
    market_type: MarketType = MarketType.FUTURES
    fee_percent: float | None = None
    max_position_usdt: float = LARGE_CAP_MAX_POSITION_USDT
    max_concurrent_orders: int = 1
    compound: bool = True
    reverse: bool = False
    allow_long: bool = True
    allow_short: bool = True
    symbol: str = "BTCUSDT"
    timeframe: str = "1h"
    volume_filter: float = 0.0
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def fee_rate(self) -> float:
        if self.fee_percent is not None:
            return self.fee_percent / 100.0
        return FUTURES_FEE_RATE if self.market_type is MarketType.FUTURES else SPOT_FEE_RATE

    @property
    def effective_max_position(self) -> float:
        large_cap = any(m in self.symbol for m in LARGE_CAP_MARKERS)
        cap = LARGE_CAP_MAX_POSITION_USDT if large_cap else SMALL_CAP_MAX_POSITION_USDT
        return min(self.max_position_usdt, cap)

    @classmethod
    def from_config(cls, defaults: BacktestDefaults, **overrides: Any) -> BacktestSettings:
        return cls.from_mapping(overrides, defaults=defaults)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None, *, defaults: BacktestDefaults | None = None) -> BacktestSettings:
        """Build settings from a request body or CLI overrides.

        Unknown keys are ignored. ``None`` values mean "use the default",
        except for ``fee_percent`` where ``None`` selects the market default.
        """

        data = dict(data or {})
        params = data.pop("params", None) or {}
        if not isinstance(params, Mapping):
            raise ConfigError("params must be a mapping")

        base = (defaults or BacktestDefaults()).model_dump()
        for key, value in data.items():
            name = _WIRE_NAMES.get(key, key)
            if name not in base:
                continue
            if value is None and name != "fee_percent":
                continue
            base[name] = value

        try:
            model = BacktestDefaults.model_validate(base)
        except ValidationError as e:
            raise ConfigError(f"invalid backtest settings: {e.errors(include_url=False)}") from e

        values = model.model_dump()
        values["market_type"] = MarketType(values["market_type"])
        return cls(**values, params=MappingProxyType(dict(params)))

    def to_dict(self) -> dict[str, Any]:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        out["market_type"] = str(self.market_type)
        out["params"] = dict(self.params)
        return out
