"""barreplay.backtest.io

Candle loading and validation.

CSV schema:
- required: timestamp, open, high, low, close
- optional: volume (blank or missing reads 0)

JSON: a list of candle objects, or an object with a ``candles`` list.

The engine trusts its input. Anything read from outside should go through
``validate_candles`` first.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from barreplay import MIN_CANDLES
from barreplay.core.exceptions import CandleDataError, InsufficientDataError
from barreplay.core.types import Candle

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close")


def candles_from_records(records: Iterable[Mapping[str, Any]]) -> list[Candle]:
    out: list[Candle] = []
    for n, row in enumerate(records):
        if not isinstance(row, Mapping):
            raise CandleDataError(f"candle #{n} is not an object")
        out.append(Candle.from_mapping(row))
    return out


def load_candles_csv(path: str | Path) -> list[Candle]:
    p = Path(path)
    rows: list[dict[str, str]] = []
    with p.open("r", encoding="utf-8", newline="") as f:
        r = csv.DictReader(f)
        missing = [c for c in REQUIRED_COLUMNS if c not in [k.strip() for k in (r.fieldnames or [])]]
        if missing:
            raise CandleDataError(f"CSV missing required columns: {', '.join(missing)}")
        for row in r:
            rows.append({k.strip(): (v.strip() if isinstance(v, str) else "") for k, v in row.items() if k is not None})

    for row in rows:
        if row.get("volume", "") == "":
            row.pop("volume", None)
        # Exported timestamps are sometimes written as floats ("1700000000000.0").
        ts = row.get("timestamp", "")
        if ts and not ts.lstrip("-").isdigit():
            try:
                row["timestamp"] = str(int(float(ts)))
            except ValueError as e:
                raise CandleDataError(f"timestamp is not numeric: {ts!r}") from e
    return candles_from_records(rows)


def load_candles_json(path: str | Path) -> list[Candle]:
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CandleDataError(f"candle file is not valid JSON: {p}") from e

    if isinstance(raw, Mapping):
        raw = raw.get("candles")
    if not isinstance(raw, list):
        raise CandleDataError("expected a list of candles or an object with a 'candles' list")
    return candles_from_records(raw)


def load_candles(path: str | Path) -> list[Candle]:
    """Pick the loader by file extension; anything not ``.json`` is read as CSV."""

    p = Path(path)
    if not p.exists():
        raise CandleDataError(f"candle file not found: {p}")
    if p.suffix.lower() == ".json":
        return load_candles_json(p)
    return load_candles_csv(p)


def validate_candles(candles: Sequence[Candle], *, min_candles: int = MIN_CANDLES) -> None:
    if len(candles) < min_candles:
        raise InsufficientDataError(f"need at least {min_candles} candles, got {len(candles)}")

    prev_ts: int | None = None
    for n, c in enumerate(candles):
        if not c.is_finite:
            raise CandleDataError(f"candle #{n} has a non-finite value")
        if c.high < c.low:
            raise CandleDataError(f"candle #{n} has high below low")
        if c.volume < 0 or not all(v > 0 for v in (c.open, c.high, c.low, c.close)):
            raise CandleDataError(f"candle #{n} has a non-positive price or negative volume")
        if prev_ts is not None and c.timestamp <= prev_ts:
            raise CandleDataError(f"candle #{n} timestamp {c.timestamp} is not after {prev_ts}")
        prev_ts = c.timestamp
