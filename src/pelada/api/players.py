"""Player roster API endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from pelada.api.deps import RepoDep, core_errors
from pelada.core import roster
from pelada.core.achievements import load_player_achievements
from pelada.core.ratings import form_delta
from pelada.models.player import Player, Position

router = APIRouter(prefix="/api/players", tags=["players"])


class OnboardingRequest(BaseModel):
    position: Position
    play_style: str | None = None


class GrantAchievementRequest(BaseModel):
    achievement_id: str


def _player_payload(player: Player) -> dict:
    data = player.model_dump(mode="json")
    data["form_delta"] = round(form_delta(player), 2)
    data["needs_onboarding"] = player.needs_onboarding
    return data


@router.get("")
async def list_players(repo: RepoDep) -> dict:
    players = await roster.list_players(repo)
    return {"data": [_player_payload(p) for p in players]}


@router.post("", status_code=201)
async def create_player(body: roster.PlayerInput, repo: RepoDep) -> dict:
    with core_errors():
        player = await roster.create_player(repo, body)
    return {"data": _player_payload(player)}


@router.get("/{player_id}")
async def get_player(player_id: str, repo: RepoDep) -> dict:
    with core_errors():
        player = await roster.get_player(repo, player_id)
    return {"data": _player_payload(player)}


@router.patch("/{player_id}")
async def update_player(player_id: str, body: roster.PlayerUpdate, repo: RepoDep) -> dict:
    """Partial edit: only the fields present in the body change."""
    with core_errors():
        player = await roster.update_player(repo, player_id, body)
    return {"data": _player_payload(player)}


@router.post("/{player_id}/onboarding")
async def complete_onboarding(player_id: str, body: OnboardingRequest, repo: RepoDep) -> dict:
    """Set position and style; attributes are generated from the manual OVR if missing."""
    with core_errors():
        player = await roster.complete_onboarding(repo, player_id, body.position, body.play_style)
    return {"data": _player_payload(player)}


@router.get("/{player_id}/achievements")
async def get_achievements(player_id: str, repo: RepoDep) -> dict:
    with core_errors():
        stats, statuses = await load_player_achievements(repo, player_id)
    return {
        "data": {
            "stats": stats.model_dump(),
            "achievements": [s.model_dump() for s in statuses],
        },
    }


@router.post("/{player_id}/achievements")
async def grant_achievement(player_id: str, body: GrantAchievementRequest, repo: RepoDep) -> dict:
    with core_errors():
        player = await roster.grant_achievement(repo, player_id, body.achievement_id)
    return {"data": _player_payload(player)}
