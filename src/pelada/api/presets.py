"""Saved player selections."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from pelada.api.deps import RepoDep, core_errors
from pelada.core import roster

router = APIRouter(prefix="/api/presets", tags=["presets"])


class PresetRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    player_ids: list[str] = Field(min_length=1)


@router.get("")
async def list_presets(repo: RepoDep) -> dict:
    presets = await roster.list_presets(repo)
    return {"data": [p.model_dump() for p in presets]}


@router.post("", status_code=201)
async def create_preset(body: PresetRequest, repo: RepoDep) -> dict:
    with core_errors():
        preset = await roster.create_preset(repo, body.name, body.player_ids)
    return {"data": preset.model_dump()}


@router.delete("/{preset_id}")
async def delete_preset(preset_id: str, repo: RepoDep) -> dict:
    with core_errors():
        await roster.delete_preset(repo, preset_id)
    return {"data": {"id": preset_id, "deleted": True}}
