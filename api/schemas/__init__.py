from api.schemas.backtest import BacktestRequest, BacktestResponse, SweepRequest, SweepResponse
from api.schemas.common import CandleIn, ErrorResponse
from api.schemas.indicators import IndicatorInfo, IndicatorRequest, IndicatorResponse

__all__ = [
    "BacktestRequest",
    "BacktestResponse",
    "CandleIn",
    "ErrorResponse",
    "IndicatorInfo",
    "IndicatorRequest",
    "IndicatorResponse",
    "SweepRequest",
    "SweepResponse",
]
