"""Leaderboards (monthly and all-time) and the monthly Hall of Fame."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from pelada.core.penalties import game_winner
from pelada.models.constants import TBD
from pelada.models.match import GamePhase, GameStatus, Match, MatchStatus
from pelada.models.player import Player, Position

if TYPE_CHECKING:
    from pelada.db.repository import Repository

logger = logging.getLogger(__name__)

CATEGORIES: tuple[str, ...] = ("wins", "goals", "assists", "clean_sheets")

# Only these positions compete in the clean sheet board.
CLEAN_SHEET_POSITIONS = frozenset({Position.GOALKEEPER, Position.DEFENDER})


class RankingEntry(BaseModel):
    player_id: str
    player_name: str
    photo_url: str | None = None
    position: str | None = None
    value: int


class Rankings(BaseModel):
    wins: list[RankingEntry] = Field(default_factory=list)
    goals: list[RankingEntry] = Field(default_factory=list)
    assists: list[RankingEntry] = Field(default_factory=list)
    clean_sheets: list[RankingEntry] = Field(default_factory=list)


class HallOfFameEntry(BaseModel):
    month_key: str
    category: str
    player_id: str
    value: int
    player_name: str = ""


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def matches_in_month(matches: list[Match], year: int, month: int) -> list[Match]:
    return [m for m in matches if m.date.year == year and m.date.month == month]


def compute_rankings(matches: list[Match], players: list[Player]) -> Rankings:
    """Leaderboards over the finished matches given.

    Wins and clean sheets are credited to every player of the team. Players
    with a zero are left out; ties are ordered by name.
    """
    totals: dict[str, dict[str, int]] = {p.id: dict.fromkeys(CATEGORIES, 0) for p in players}

    for match in matches:
        if match.status != MatchStatus.FINISHED:
            continue
        rosters = {t.id: t.player_ids for t in match.teams}
        counted: set[str] = set()
        for game in match.games:
            if game.status != GameStatus.FINISHED or game.phase == GamePhase.TIEBREAK:
                continue
            counted.add(game.id)
            winner = game_winner(game)
            for team_id, conceded in (
                (game.home_team_id, game.away_score),
                (game.away_team_id, game.home_score),
            ):
                if team_id == TBD:
                    continue
                for player_id in rosters.get(team_id, []):
                    if player_id not in totals:
                        continue
                    if winner == team_id:
                        totals[player_id]["wins"] += 1
                    if conceded == 0:
                        totals[player_id]["clean_sheets"] += 1
        for goal in match.goals:
            if goal.game_id not in counted:
                continue
            if goal.scorer_id in totals:
                totals[goal.scorer_id]["goals"] += 1
            if goal.assist_id in totals:
                totals[goal.assist_id]["assists"] += 1

    by_id = {p.id: p for p in players}

    def board(category: str) -> list[RankingEntry]:
        entries = []
        for player_id, values in totals.items():
            player = by_id[player_id]
            if values[category] <= 0:
                continue
            if category == "clean_sheets" and player.position not in CLEAN_SHEET_POSITIONS:
                continue
            entries.append(
                RankingEntry(
                    player_id=player_id,
                    player_name=player.name,
                    photo_url=player.photo_url,
                    position=player.position,
                    value=values[category],
                )
            )
        return sorted(entries, key=lambda e: (-e.value, e.player_name.casefold()))

    return Rankings(**{category: board(category) for category in CATEGORIES})


def month_champions(rankings: Rankings, key: str) -> list[HallOfFameEntry]:
    """Leader of every non-empty board."""
    champions = []
    for category in CATEGORIES:
        board: list[RankingEntry] = getattr(rankings, category)
        if board:
            leader = board[0]
            champions.append(
                HallOfFameEntry(
                    month_key=key,
                    category=category,
                    player_id=leader.player_id,
                    value=leader.value,
                    player_name=leader.player_name,
                )
            )
    return champions


async def load_rankings(repo: Repository, scope: str = "all", today: date | None = None) -> Rankings:
    """``scope`` is "month" (current calendar month) or "all"."""
    from pelada.core.matchday import list_matches
    from pelada.core.roster import list_players

    matches = await list_matches(repo, MatchStatus.FINISHED)
    if scope == "month":
        today = today or date.today()
        matches = matches_in_month(matches, today.year, today.month)
    elif scope != "all":
        msg = f"Unknown ranking scope {scope!r}"
        raise ValueError(msg)
    return compute_rankings(matches, await list_players(repo))


async def load_hall_of_fame(repo: Repository, key: str | None = None) -> list[HallOfFameEntry]:
    rows = await repo.get_hall_of_fame(key)
    names = {p.id: p.name for p in await repo.get_all_players()}
    return [
        HallOfFameEntry(
            month_key=row.month_key,
            category=row.category,
            player_id=row.player_id,
            value=row.value,
            player_name=names.get(row.player_id, ""),
        )
        for row in rows
    ]


async def close_month(repo: Repository, year: int, month: int) -> list[HallOfFameEntry]:
    """Store the month's category leaders, replacing any earlier entries for it."""
    from pelada.core.matchday import list_matches
    from pelada.core.roster import list_players

    matches = matches_in_month(await list_matches(repo, MatchStatus.FINISHED), year, month)
    key = month_key(year, month)
    champions = month_champions(compute_rankings(matches, await list_players(repo)), key)
    await repo.replace_month_champions(
        key, [(c.category, c.player_id, c.value) for c in champions]
    )
    logger.info("month_closed month=%s champions=%d", key, len(champions))
    return champions
