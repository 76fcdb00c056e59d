from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from barreplay.core.config import Config  # noqa: E402
from tests.unit._candles import flat_candles, random_walk  # noqa: E402


@pytest.fixture()
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture()
def test_config(temp_dir: Path) -> Config:
    """Config loaded from a temp copy of the repo's default + presets."""

    repo_root = Path(__file__).resolve().parents[1]
    cfg_src = repo_root / "config" / "default.yaml"
    cfg_dst_dir = temp_dir / "config"
    cfg_dst_dir.mkdir(parents=True, exist_ok=True)

    # copy default + presets
    shutil.copy2(cfg_src, cfg_dst_dir / "default.yaml")
    shutil.copytree(repo_root / "config" / "presets", cfg_dst_dir / "presets")

    c = Config.from_yaml(cfg_dst_dir / "default.yaml")
    return c.model_copy(update={"config_dir": cfg_dst_dir})


@pytest.fixture()
def flat_500():
    return flat_candles(500)


@pytest.fixture()
def walk_400():
    return random_walk(400, seed=11)


@pytest.fixture(autouse=True)
def _reset_barreplay_logging():
    """Drop handlers installed by configure_logging; they hold the test's captured stream."""

    logger = logging.getLogger("barreplay")
    level = logger.level
    yield
    for h in list(logger.handlers):
        if getattr(h, "_barreplay", False):
            logger.removeHandler(h)
    logger.setLevel(level)
