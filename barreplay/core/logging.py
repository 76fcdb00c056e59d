"""barreplay.core.logging

One place that touches the root handler.

Library code only ever does ``logging.getLogger(__name__)`` and logs
snake_case event names with structured ``extra`` fields. Entry points (CLI,
API) call :func:`configure_logging` once.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from barreplay.core.config import LoggingConfig

# Attributes every LogRecord carries; anything else came in via `extra=`.
_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per record with a fixed ``event`` field."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            **_extra_fields(record),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str, separators=(",", ":"))


class KeyValueFormatter(logging.Formatter):
    """Plain text, with ``extra`` fields appended as ``key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extra = _extra_fields(record)
        if not extra:
            return base
        kv = " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
        return f"{base} {kv}"


def configure_logging(cfg: LoggingConfig | None = None) -> logging.Logger:
    cfg = cfg or LoggingConfig()
    level = getattr(logging, str(cfg.level).upper(), logging.INFO)

    logger = logging.getLogger("barreplay")
    logger.setLevel(level)

    # Re-configuring replaces our handler instead of stacking another one.
    for h in list(logger.handlers):
        if getattr(h, "_barreplay", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler._barreplay = True  # type: ignore[attr-defined]
    if cfg.json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(KeyValueFormatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s"))
    logger.addHandler(handler)
    return logger
