"""Leaderboard and Hall of Fame endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from pelada.api.deps import RepoDep, core_errors
from pelada.core.rankings import close_month, load_hall_of_fame, load_rankings

router = APIRouter(prefix="/api", tags=["rankings"])


class CloseMonthRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)


@router.get("/rankings")
async def get_rankings(repo: RepoDep, scope: Literal["month", "all"] = "month") -> dict:
    with core_errors():
        rankings = await load_rankings(repo, scope)
    return {"data": rankings.model_dump()}


@router.get("/hall-of-fame")
async def get_hall_of_fame(repo: RepoDep, month_key: str | None = None) -> dict:
    entries = await load_hall_of_fame(repo, month_key)
    return {"data": [e.model_dump() for e in entries]}


@router.post("/hall-of-fame", status_code=201)
async def close_hall_of_fame_month(body: CloseMonthRequest, repo: RepoDep) -> dict:
    """Record the month's category leaders, replacing earlier entries for that month."""
    champions = await close_month(repo, body.year, body.month)
    return {"data": [c.model_dump() for c in champions]}
