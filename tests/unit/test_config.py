from __future__ import annotations

from pathlib import Path

import pytest

from barreplay.core.config import Config
from barreplay.core.exceptions import ConfigError


def test_repo_defaults_load(test_config: Config) -> None:
    assert test_config.preset == "balanced"
    assert test_config.backtest.equity_percent == 10.0
    assert test_config.backtest.fee_percent is None
    assert test_config.api.port == 5060
    assert test_config.sweep.max_points == 500


def test_config_loads_from_yaml_and_preset_chain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    cfg_dir = tmp_path / "config"
    presets = cfg_dir / "presets"
    presets.mkdir(parents=True)

    (cfg_dir / "default.yaml").write_text("preset: aggressive\nbacktest:\n  leverage: 2\n")
    (presets / "aggressive.yaml").write_text("backtest:\n  equity_percent: 25\n  leverage: 3\n")

    cfg = Config.from_yaml(cfg_dir / "default.yaml")
    assert cfg.preset == "aggressive"
    assert cfg.backtest.equity_percent == 25.0
    # the file itself wins over its preset
    assert cfg.backtest.leverage == 2.0


def test_shipped_presets(test_config: Config) -> None:
    cfg_path = test_config.config_dir / "default.yaml"
    text = cfg_path.read_text().replace("preset: balanced", "preset: conservative")
    cfg_path.write_text(text)
    cfg = Config.from_yaml(cfg_path)
    assert cfg.backtest.compound is False
    assert cfg.backtest.allow_short is False


def test_config_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "default.yaml"
    cfg_path.write_text("backtest:\n  leverage: 2\n")
    monkeypatch.setenv("BARREPLAY_BACKTEST__LEVERAGE", "5")
    monkeypatch.setenv("BARREPLAY_API__PORT", "9000")

    cfg = Config.from_yaml(cfg_path)
    assert cfg.backtest.leverage == 5.0
    assert cfg.api.port == 9000


def test_config_from_yaml_raises_if_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Config.from_yaml(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "body",
    [
        "backtest: [unclosed\n",
        "- just\n- a list\n",
        "backtest:\n  max_concurrent_orders: 0\n",
        "preset: reckless\n",
    ],
)
def test_config_rejects_bad_files(tmp_path: Path, body: str) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text(body)
    with pytest.raises(ConfigError):
        Config.from_yaml(p)


def test_load_prefers_user_file(tmp_path: Path) -> None:
    assert Config.load(tmp_path).preset == "balanced"

    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "default.yaml").write_text("backtest:\n  symbol: ETHUSDT\n")
    assert Config.load(tmp_path).backtest.symbol == "ETHUSDT"

    (tmp_path / "config" / "user.yaml").write_text("backtest:\n  symbol: SOLUSDT\n")
    assert Config.load(tmp_path).backtest.symbol == "SOLUSDT"
