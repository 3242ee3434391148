"""Match (event) API endpoints: drafts, publication, standings and finishing."""

from __future__ import annotations

from datetime import date as date_type

from fastapi import APIRouter
from pydantic import BaseModel, Field

from pelada.api.deps import RepoDep, SettingsDep, core_errors
from pelada.core import matchday
from pelada.core.standings import compute_standings
from pelada.core.tournament import champion_name
from pelada.models.match import Match, MatchStatus, MatchType

router = APIRouter(prefix="/api/matches", tags=["matches"])


class DraftRequest(BaseModel):
    """Request body for balancing a player pool into a new draft match."""

    player_ids: list[str] = Field(min_length=1)
    match_type: MatchType
    date: date_type
    location: str = ""


class TeamPlayerRequest(BaseModel):
    player_id: str


class ChampionPhotoRequest(BaseModel):
    photo_url: str | None = None


def match_payload(match: Match) -> dict:
    data = match.model_dump(mode="json")
    data["champion_name"] = champion_name(match) if match.status == MatchStatus.FINISHED else None
    return data


@router.post("/draft", status_code=201)
async def create_draft(body: DraftRequest, repo: RepoDep, settings: SettingsDep) -> dict:
    with core_errors():
        match = await matchday.create_draft(
            repo,
            body.player_ids,
            body.match_type,
            body.date,
            body.location,
            min_per_team=settings.pelada_min_players_per_team,
            max_per_team=settings.pelada_max_players_per_team,
        )
    return {"data": match_payload(match)}


@router.get("")
async def list_matches(repo: RepoDep, status: MatchStatus | None = None) -> dict:
    matches = await matchday.list_matches(repo, status)
    return {"data": [match_payload(m) for m in matches]}


@router.get("/{match_id}")
async def get_match(match_id: str, repo: RepoDep) -> dict:
    with core_errors():
        match = await matchday.load_match(repo, match_id)
    return {"data": match_payload(match)}


@router.delete("/{match_id}")
async def delete_match(match_id: str, repo: RepoDep) -> dict:
    with core_errors():
        await matchday.delete_match(repo, match_id)
    return {"data": {"id": match_id, "deleted": True}}


@router.post("/{match_id}/teams/{team_id}/players")
async def add_team_player(match_id: str, team_id: str, body: TeamPlayerRequest, repo: RepoDep) -> dict:
    with core_errors():
        team = await matchday.add_player_to_team(repo, match_id, team_id, body.player_id)
    return {"data": team.model_dump(mode="json")}


@router.delete("/{match_id}/teams/{team_id}/players/{player_id}")
async def remove_team_player(match_id: str, team_id: str, player_id: str, repo: RepoDep) -> dict:
    with core_errors():
        team = await matchday.remove_player_from_team(repo, match_id, team_id, player_id)
    return {"data": team.model_dump(mode="json")}


@router.post("/{match_id}/publish")
async def publish_match(match_id: str, repo: RepoDep) -> dict:
    with core_errors():
        match = await matchday.publish_match(repo, match_id)
    return {"data": match_payload(match)}


@router.post("/{match_id}/cancel")
async def cancel_match(match_id: str, repo: RepoDep) -> dict:
    """Back to draft. Every game and goal of the match is deleted."""
    with core_errors():
        match = await matchday.cancel_match(repo, match_id)
    return {"data": match_payload(match)}


@router.post("/{match_id}/finish")
async def finish_match(match_id: str, repo: RepoDep) -> dict:
    with core_errors():
        settlement = await matchday.finish_match(repo, match_id)
    return {"data": settlement.model_dump(mode="json")}


@router.put("/{match_id}/champion-photo")
async def set_champion_photo(match_id: str, body: ChampionPhotoRequest, repo: RepoDep) -> dict:
    with core_errors():
        match = await matchday.set_champion_photo(repo, match_id, body.photo_url)
    return {"data": match_payload(match)}


@router.get("/{match_id}/standings")
async def get_standings(match_id: str, repo: RepoDep) -> dict:
    with core_errors():
        match = await matchday.load_match(repo, match_id)
    standings = compute_standings(match.teams, match.games)
    return {"data": [s.model_dump() for s in standings]}
