from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from barreplay.strategies import describe_strategy, list_strategies

router = APIRouter(prefix="/strategies")


class StrategyInfo(BaseModel):
    name: str
    description: str
    params: dict[str, Any]


@router.get("", response_model=list[StrategyInfo])
def strategies() -> list[StrategyInfo]:
    return [StrategyInfo(**describe_strategy(name)) for name in list_strategies()]
