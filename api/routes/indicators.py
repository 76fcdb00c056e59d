from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_config
from api.errors import ApiError
from api.schemas.common import nullable
from api.schemas.indicators import IndicatorInfo, IndicatorRequest, IndicatorResponse
from barreplay.core.config import Config
from barreplay.indicators.precompute import RawSeries
from barreplay.indicators.registry import compute, get_indicator, list_indicators

router = APIRouter(prefix="/indicators")


@router.get("", response_model=list[IndicatorInfo])
def catalogue() -> list[IndicatorInfo]:
    return [IndicatorInfo(**get_indicator(name).describe()) for name in list_indicators()]


@router.post("", response_model=IndicatorResponse)
def compute_indicator(req: IndicatorRequest, config: Config = Depends(get_config)) -> IndicatorResponse:
    if len(req.candles) > config.api.max_candles:
        raise ApiError(
            code="candles.too_many",
            message=f"at most {config.api.max_candles} candles per request",
            status=413,
        )

    spec = get_indicator(req.name)
    raw = RawSeries.from_candles(req.to_candles()).as_mapping()
    try:
        result = compute(req.name, raw, **req.params)
    except (TypeError, ValueError) as e:
        raise ApiError(code="indicator.bad_params", message=str(e), status=422, name=req.name) from e

    outputs = result if isinstance(result, dict) else {req.name: result}
    return IndicatorResponse(
        name=req.name,
        params={**spec.params, **req.params},
        outputs={k: nullable(v.tolist()) for k, v in outputs.items()},
    )
