from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from api.schemas.common import CandlesRequest


class IndicatorInfo(BaseModel):
    name: str
    group: str
    inputs: list[str]
    params: dict[str, Any]
    outputs: list[str]


class IndicatorRequest(CandlesRequest):
    name: str
    params: dict[str, Any] = Field(default_factory=dict)


class IndicatorResponse(BaseModel):
    name: str
    params: dict[str, Any]
    outputs: dict[str, list[float | None]]
