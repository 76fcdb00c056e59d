from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

from barreplay.backtest.io import load_candles, validate_candles
from barreplay.core.exceptions import CandleDataError, InsufficientDataError
from tests.unit._candles import flat_candles


def _write_csv(path: Path, rows: list[str], header: str = "timestamp,open,high,low,close,volume") -> Path:
    path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")
    return path


def test_load_csv(tmp_path: Path) -> None:
    p = _write_csv(tmp_path / "c.csv", ["1000,1,2,0.5,1.5,10", "2000.0,1.5,2.5,1,2,"])
    candles = load_candles(p)
    assert len(candles) == 2
    assert candles[0].close == 1.5
    assert candles[1].timestamp == 2000
    assert candles[1].volume == 0.0


def test_load_csv_without_volume_column(tmp_path: Path) -> None:
    p = _write_csv(tmp_path / "c.csv", ["1000,1,2,0.5,1.5"], header="timestamp,open,high,low,close")
    assert load_candles(p)[0].volume == 0.0


def test_load_csv_missing_columns(tmp_path: Path) -> None:
    p = _write_csv(tmp_path / "c.csv", ["1000,1,2"], header="timestamp,open,high")
    with pytest.raises(CandleDataError, match="low, close"):
        load_candles(p)


def test_load_csv_non_numeric(tmp_path: Path) -> None:
    p = _write_csv(tmp_path / "c.csv", ["1000,abc,2,0.5,1.5,1"])
    with pytest.raises(CandleDataError):
        load_candles(p)


def test_load_json_list_and_object(tmp_path: Path) -> None:
    rows = [c.to_dict() for c in flat_candles(3)]
    a = tmp_path / "a.json"
    a.write_text(json.dumps(rows), encoding="utf-8")
    b = tmp_path / "b.json"
    b.write_text(json.dumps({"candles": rows}), encoding="utf-8")
    assert load_candles(a) == load_candles(b) == flat_candles(3)


@pytest.mark.parametrize("body", ["{not json", json.dumps({"rows": []}), json.dumps([1, 2])])
def test_load_json_rejects_bad_shapes(tmp_path: Path, body: str) -> None:
    p = tmp_path / "bad.json"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(CandleDataError):
        load_candles(p)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CandleDataError, match="not found"):
        load_candles(tmp_path / "nope.csv")


def test_validate_accepts_clean_data() -> None:
    validate_candles(flat_candles(300))


def test_validate_requires_enough_candles() -> None:
    with pytest.raises(InsufficientDataError):
        validate_candles(flat_candles(299))
    validate_candles(flat_candles(5), min_candles=5)


@pytest.mark.parametrize(
    "change",
    [
        {"high": 50.0},
        {"close": float("nan")},
        {"low": 0.0},
        {"volume": -1.0},
        {"timestamp": 0},
    ],
)
def test_validate_rejects_bad_bars(change) -> None:
    candles = flat_candles(10)
    candles[5] = replace(candles[5], **change)
    with pytest.raises(CandleDataError):
        validate_candles(candles, min_candles=1)
