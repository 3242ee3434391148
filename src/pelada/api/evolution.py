"""Monthly rating update endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from pelada.api.deps import RepoDep
from pelada.core.evolution import EvolutionResult, apply_monthly_update, preview_monthly_update

router = APIRouter(prefix="/api/evolution", tags=["evolution"])


def _result_payload(result: EvolutionResult) -> dict:
    data = result.model_dump(mode="json")
    data["ovr_changed"] = result.ovr_changed
    return data


@router.get("/preview")
async def preview(repo: RepoDep) -> dict:
    """What the monthly update would do, without writing anything."""
    results = await preview_monthly_update(repo)
    return {"data": [_result_payload(r) for r in results]}


@router.post("/apply")
async def apply(repo: RepoDep) -> dict:
    results = await apply_monthly_update(repo)
    return {"data": [_result_payload(r) for r in results]}
