from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from barreplay.core.exceptions import (
    BarreplayError,
    CandleDataError,
    ConfigError,
    InsufficientDataError,
    UnknownIndicatorError,
    UnknownStrategyError,
)


class ApiError(Exception):
    def __init__(self, code: str, message: str, status: int = 400, **extra: object) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.extra = extra


# Most specific first: InsufficientDataError is a CandleDataError.
_LIBRARY_ERRORS: list[tuple[type[BarreplayError], str, int]] = [
    (InsufficientDataError, "candles.insufficient", 422),
    (CandleDataError, "candles.invalid", 422),
    (UnknownStrategyError, "strategy.not_found", 404),
    (UnknownIndicatorError, "indicator.not_found", 404),
    (ConfigError, "settings.invalid", 422),
]


def _body(code: str, message: str, **extra: object) -> dict[str, object]:
    return {"error": {"code": code, "message": message, **extra}}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status, content=_body(exc.code, exc.message, **exc.extra))


async def barreplay_error_handler(request: Request, exc: BarreplayError) -> JSONResponse:
    for cls, code, status in _LIBRARY_ERRORS:
        if isinstance(exc, cls):
            return JSONResponse(status_code=status, content=_body(code, str(exc)))
    return JSONResponse(status_code=400, content=_body("barreplay.error", str(exc)))
