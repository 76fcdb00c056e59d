"""barreplay.core.config

Two config surfaces only:
1) `config/default.yaml` + `config/presets/*.yaml`
2) Environment variables (`BARREPLAY_` prefix, `__` for nesting)

Per-run settings passed by a caller override both.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from barreplay.core.exceptions import ConfigError


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class BacktestDefaults(BaseModel):
    """Defaults for every per-run backtest setting."""

    initial_balance: float = 10000.0
    equity_percent: float = 10.0
    leverage: float = 1.0
    market_type: Literal["futures", "spot"] = "futures"
    fee_percent: float | None = None
    max_position_usdt: float = 10_000_000.0
    max_concurrent_orders: int = 1
    compound: bool = True
    reverse: bool = False
    allow_long: bool = True
    allow_short: bool = True
    symbol: str = "BTCUSDT"
    timeframe: str = "1h"
    volume_filter: float = 0.0

    @field_validator("max_concurrent_orders")
    @classmethod
    def at_least_one_order(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent_orders must be >= 1")
        return v

    @field_validator("initial_balance", "equity_percent", "leverage")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class ApiConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5060
    max_candles: int = 100_000
    cors_origins: list[str] = []


class SweepConfig(BaseModel):
    max_workers: int = 1
    max_points: int = 500


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    config_dir: Path = Path("config")

    preset: Literal["conservative", "balanced", "aggressive", "custom"] = "balanced"

    backtest: BacktestDefaults = Field(default_factory=BacktestDefaults)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)

    model_config = {"env_prefix": "BARREPLAY_", "env_nested_delimiter": "__"}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats YAML: file values arrive as init kwargs.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config root must be a mapping: {path}")

        preset_name = raw.get("preset", "balanced")
        preset_path = path.parent / "presets" / f"{preset_name}.yaml"
        if preset_path.exists():
            preset_data = yaml.safe_load(preset_path.read_text()) or {}
            raw = _deep_merge(preset_data, raw)

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid config in {path}: {e.errors(include_url=False)}") from e

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")

    @classmethod
    def load(cls, repo_root: Path | None = None) -> Config:
        """`config/user.yaml` if present, else the repo defaults, else built-in defaults."""

        root = repo_root or Path.cwd()
        user_path = root / "config" / "user.yaml"
        if user_path.exists():
            return cls.from_yaml(user_path)
        default_path = root / "config" / "default.yaml"
        if default_path.exists():
            return cls.from_yaml(default_path)
        return cls()
