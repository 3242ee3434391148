"""Matchday orchestration: load a match, apply a tournament rule, persist the result.

Each function is one administrator action. It reads the match aggregate
through the repository, lets ``core.tournament`` validate and mutate it in
memory, and writes back only what changed. Callers run each action inside
one session (``get_session`` or the API dependency), so a rejected action
leaves the database untouched.
"""

from __future__ import annotations

import logging
from datetime import date

from pelada.core import tournament
from pelada.core.balancer import generate_teams, recompute_team, sort_roster, validate_pool
from pelada.core.errors import EntityNotFound
from pelada.core.roster import get_player, row_to_player
from pelada.core.standings import compute_standings
from pelada.db.models import MatchRow
from pelada.db.repository import Repository
from pelada.models.match import (
    Game,
    Goal,
    Match,
    MatchStatus,
    MatchType,
    PenaltyShootout,
    Standing,
    Team,
)

logger = logging.getLogger(__name__)


def row_to_match(row: MatchRow) -> Match:
    """Convert a fully loaded MatchRow into a Match aggregate."""
    teams = [
        recompute_team(
            Team(
                id=team_row.id,
                name=team_row.name,
                players=sort_roster([row_to_player(m.player) for m in team_row.members]),
            )
        )
        for team_row in row.teams
    ]
    games = [
        Game(
            id=g.id,
            match_id=g.match_id,
            home_team_id=g.home_team_id,
            away_team_id=g.away_team_id,
            home_score=g.home_score,
            away_score=g.away_score,
            status=g.status,
            phase=g.phase,
            sequence=g.sequence,
            penalty_shootout=PenaltyShootout(**g.penalty_shootout) if g.penalty_shootout else None,
        )
        for g in sorted(row.games, key=lambda g: g.sequence)
    ]
    goals = [
        Goal(
            id=g.id,
            game_id=g.game_id,
            team_id=g.team_id,
            scorer_id=g.scorer_id,
            assist_id=g.assist_id,
            minute=g.minute,
        )
        for g in row.goals
    ]
    return Match(
        id=row.id,
        date=row.date,
        location=row.location,
        match_type=row.match_type,
        status=row.status,
        teams=teams,
        games=games,
        goals=goals,
        champion_photo_url=row.champion_photo_url,
    )


async def load_match(repo: Repository, match_id: str) -> Match:
    row = await repo.get_match(match_id)
    if row is None:
        raise EntityNotFound("Match", match_id)
    return row_to_match(row)


async def list_matches(repo: Repository, status: MatchStatus | None = None) -> list[Match]:
    return [row_to_match(row) for row in await repo.get_all_matches(status)]


# --- Draft ---


async def create_draft(
    repo: Repository,
    player_ids: list[str],
    match_type: MatchType,
    match_date: date,
    location: str = "",
    min_per_team: int = 1,
    max_per_team: int = 7,
) -> Match:
    """Balance the selected players into teams and store them as a DRAFT match."""
    rows = await repo.get_players_by_ids(player_ids)
    found = {row.id for row in rows}
    missing = [pid for pid in player_ids if pid not in found]
    if missing:
        raise EntityNotFound("Player", missing[0])

    by_id = {row.id: row_to_player(row) for row in rows}
    players = [by_id[pid] for pid in player_ids]
    validate_pool(players, match_type, min_per_team, max_per_team)
    teams = generate_teams(players, match_type)

    match_row = await repo.create_match(match_date, location, match_type)
    for index, team in enumerate(teams):
        await repo.create_team(match_row.id, team.name, index, team.player_ids)
    logger.info("draft_created match=%s type=%s players=%d", match_row.id, match_type, len(players))
    return await load_match(repo, match_row.id)


async def add_player_to_team(repo: Repository, match_id: str, team_id: str, player_id: str) -> Team:
    match = await load_match(repo, match_id)
    player = await get_player(repo, player_id)
    team = tournament.add_player_to_team(match, team_id, player)
    await repo.add_team_player(team_id, player_id)
    return team


async def remove_player_from_team(repo: Repository, match_id: str, team_id: str, player_id: str) -> Team:
    match = await load_match(repo, match_id)
    team = tournament.remove_player_from_team(match, team_id, player_id)
    await repo.remove_team_player(team_id, player_id)
    return team


async def publish_match(repo: Repository, match_id: str) -> Match:
    match = await load_match(repo, match_id)
    games = tournament.publish_match(match)
    await repo.create_games(games)
    await repo.update_match_status(match.id, match.status)
    return match


async def cancel_match(repo: Repository, match_id: str) -> Match:
    """Back to DRAFT. Every game and goal of the match is deleted."""
    match = await load_match(repo, match_id)
    tournament.cancel_match(match)
    await repo.delete_match_games(match.id)
    await repo.update_match_status(match.id, match.status)
    return match


async def delete_match(repo: Repository, match_id: str) -> None:
    match = await load_match(repo, match_id)
    if match.status == MatchStatus.FINISHED:
        # Accumulated rating deltas are not rolled back.
        logger.warning("finished_match_deleted match=%s", match_id)
    await repo.delete_match(match_id)
    logger.info("match_deleted match=%s", match_id)


async def set_champion_photo(repo: Repository, match_id: str, photo_url: str | None) -> Match:
    match = await load_match(repo, match_id)
    await repo.update_champion_photo(match_id, photo_url)
    match.champion_photo_url = photo_url
    return match


# --- Games ---


async def start_game(repo: Repository, match_id: str, game_id: str) -> Game:
    match = await load_match(repo, match_id)
    game = tournament.start_game(match, game_id)
    await repo.save_game(game)
    return game


async def end_game(repo: Repository, match_id: str, game_id: str) -> list[Game]:
    """Finish a game and persist any knockout slots its result seeded."""
    match = await load_match(repo, match_id)
    changed = tournament.end_game(match, game_id)
    for game in changed:
        await repo.save_game(game)
    return changed


async def create_tiebreak_game(repo: Repository, match_id: str) -> Game:
    match = await load_match(repo, match_id)
    game = tournament.create_tiebreak_game(match)
    await repo.create_games([game])
    return game


async def score_goal(
    repo: Repository,
    match_id: str,
    game_id: str,
    team_id: str,
    scorer_id: str | None = None,
    assist_id: str | None = None,
    minute: int | None = None,
) -> Goal:
    match = await load_match(repo, match_id)
    game, goal = tournament.score_goal(match, game_id, team_id, scorer_id, assist_id, minute)
    await repo.create_goal(match.id, goal)
    await repo.save_game(game)
    return goal


async def update_goal(
    repo: Repository,
    match_id: str,
    goal_id: str,
    scorer_id: str | None,
    assist_id: str | None,
) -> Goal:
    match = await load_match(repo, match_id)
    goal = tournament.update_goal(match, goal_id, scorer_id, assist_id)
    await repo.save_goal(goal)
    return goal


async def start_penalty_shootout(repo: Repository, match_id: str, game_id: str) -> Game:
    match = await load_match(repo, match_id)
    game = tournament.start_penalty_shootout(match, game_id)
    await repo.save_game(game)
    return game


async def register_penalty(
    repo: Repository,
    match_id: str,
    game_id: str,
    is_goal: bool,
    team_id: str | None = None,
    kicker_id: str | None = None,
) -> Game:
    match = await load_match(repo, match_id)
    game = tournament.register_penalty(match, game_id, is_goal, team_id, kicker_id)
    await repo.save_game(game)
    return game


async def undo_last_penalty(repo: Repository, match_id: str, game_id: str) -> Game:
    match = await load_match(repo, match_id)
    game = tournament.undo_last_penalty(match, game_id)
    await repo.save_game(game)
    return game


# --- Standings / finish ---


async def get_standings(repo: Repository, match_id: str) -> list[Standing]:
    match = await load_match(repo, match_id)
    return compute_standings(match.teams, match.games)


async def finish_match(repo: Repository, match_id: str) -> tournament.MatchSettlement:
    """Close the event and add every player's rating deltas to their accumulators."""
    match = await load_match(repo, match_id)
    settlement = tournament.finish_match(match)
    await repo.add_to_accumulators({pid: delta.model_dump() for pid, delta in settlement.deltas.items()})
    await repo.update_match_status(match.id, match.status)
    return settlement
