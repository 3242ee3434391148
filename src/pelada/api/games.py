"""Live game API endpoints: game lifecycle, goals and penalty shootouts."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from pelada.api.deps import RepoDep, core_errors
from pelada.core import matchday
from pelada.core.penalties import decided_at, expected_kicker, max_kicks, shootout_winner
from pelada.models.match import Game, GameStatus

router = APIRouter(prefix="/api/matches", tags=["games"])


class GoalRequest(BaseModel):
    team_id: str
    scorer_id: str | None = None
    assist_id: str | None = None
    minute: int | None = Field(default=None, ge=0)


class GoalUpdateRequest(BaseModel):
    scorer_id: str | None = None
    assist_id: str | None = None


class PenaltyRequest(BaseModel):
    """One kick. ``team_id`` is optional; when given it must match the expected side."""

    is_goal: bool
    team_id: str | None = None
    kicker_id: str | None = None


def game_payload(game: Game) -> dict:
    data = game.model_dump(mode="json")
    if game.penalty_shootout is not None:
        data["shootout"] = {
            "max_kicks": max_kicks(game.phase),
            "decided_at": decided_at(game),
            "winner": shootout_winner(game),
            "next_kicker": expected_kicker(game) if game.status == GameStatus.LIVE else None,
        }
    return data


@router.post("/{match_id}/games/{game_id}/start")
async def start_game(match_id: str, game_id: str, repo: RepoDep) -> dict:
    with core_errors():
        game = await matchday.start_game(repo, match_id, game_id)
    return {"data": game_payload(game)}


@router.post("/{match_id}/games/{game_id}/end")
async def end_game(match_id: str, game_id: str, repo: RepoDep) -> dict:
    """Finish a game. The response also lists any knockout games it seeded."""
    with core_errors():
        changed = await matchday.end_game(repo, match_id, game_id)
    return {"data": {"game": game_payload(changed[0]), "seeded": [game_payload(g) for g in changed[1:]]}}


@router.post("/{match_id}/games/{game_id}/goals", status_code=201)
async def score_goal(match_id: str, game_id: str, body: GoalRequest, repo: RepoDep) -> dict:
    with core_errors():
        goal = await matchday.score_goal(
            repo,
            match_id,
            game_id,
            body.team_id,
            scorer_id=body.scorer_id,
            assist_id=body.assist_id,
            minute=body.minute,
        )
    return {"data": goal.model_dump()}


@router.patch("/{match_id}/goals/{goal_id}")
async def update_goal(match_id: str, goal_id: str, body: GoalUpdateRequest, repo: RepoDep) -> dict:
    with core_errors():
        goal = await matchday.update_goal(repo, match_id, goal_id, body.scorer_id, body.assist_id)
    return {"data": goal.model_dump()}


@router.post("/{match_id}/games/{game_id}/penalties/start")
async def start_penalty_shootout(match_id: str, game_id: str, repo: RepoDep) -> dict:
    with core_errors():
        game = await matchday.start_penalty_shootout(repo, match_id, game_id)
    return {"data": game_payload(game)}


@router.post("/{match_id}/games/{game_id}/penalties")
async def register_penalty(match_id: str, game_id: str, body: PenaltyRequest, repo: RepoDep) -> dict:
    with core_errors():
        game = await matchday.register_penalty(
            repo, match_id, game_id, body.is_goal, team_id=body.team_id, kicker_id=body.kicker_id
        )
    return {"data": game_payload(game)}


@router.post("/{match_id}/games/{game_id}/penalties/undo")
async def undo_last_penalty(match_id: str, game_id: str, repo: RepoDep) -> dict:
    with core_errors():
        game = await matchday.undo_last_penalty(repo, match_id, game_id)
    return {"data": game_payload(game)}


@router.post("/{match_id}/tiebreak", status_code=201)
async def create_tiebreak(match_id: str, repo: RepoDep) -> dict:
    """Add the penalty-only tie-break between 2nd and 3rd when they are level on points."""
    with core_errors():
        game = await matchday.create_tiebreak_game(repo, match_id)
    return {"data": game_payload(game)}
