"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. The core converts rows into pydantic
models before applying any rule; the repository only stores and fetches.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pelada.core.evolution import EvolutionResult
from pelada.db.models import (
    GameRow,
    GoalRow,
    HallOfFameRow,
    MatchRow,
    PlayerPresetRow,
    PlayerRow,
    TeamPlayerRow,
    TeamRow,
)
from pelada.models.match import Game, Goal

_ZERO_ACCUMULATORS = {"pace": 0.0, "shooting": 0.0, "passing": 0.0, "defending": 0.0}


def _shootout_json(game: Game) -> dict | None:
    if game.penalty_shootout is None:
        return None
    return game.penalty_shootout.model_dump(mode="json")


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Players ---

    async def create_player(
        self,
        name: str,
        email: str = "",
        position: str | None = None,
        play_style: str | None = None,
        initial_ovr: int = 50,
        attributes: dict | None = None,
        shirt_number: int | None = None,
        photo_url: str | None = None,
        is_admin: bool = False,
    ) -> PlayerRow:
        row = PlayerRow(
            name=name,
            email=email,
            position=position,
            play_style=play_style,
            initial_ovr=initial_ovr,
            attributes=attributes or {"pace": 0, "shooting": 0, "passing": 0, "defending": 0},
            accumulators=dict(_ZERO_ACCUMULATORS),
            ovr_history=[],
            granted_achievements=[],
            shirt_number=shirt_number,
            photo_url=photo_url,
            is_admin=is_admin,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_player(self, player_id: str) -> PlayerRow | None:
        return await self.session.get(PlayerRow, player_id)

    async def get_all_players(self) -> list[PlayerRow]:
        """Return the whole roster, alphabetically."""
        stmt = select(PlayerRow).order_by(PlayerRow.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_players_by_ids(self, player_ids: Iterable[str]) -> list[PlayerRow]:
        ids = list(player_ids)
        if not ids:
            return []
        stmt = select(PlayerRow).where(PlayerRow.id.in_(ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_player(self, player_id: str, **fields: object) -> PlayerRow | None:
        """Overwrite the given columns on a player. Unknown columns raise."""
        row = await self.session.get(PlayerRow, player_id)
        if row is None:
            return None
        for key, value in fields.items():
            if not hasattr(PlayerRow, key):
                msg = f"PlayerRow has no column {key!r}"
                raise AttributeError(msg)
            setattr(row, key, value)
        await self.session.flush()
        return row

    async def add_to_accumulators(self, deltas: dict[str, dict[str, float]]) -> None:
        """Add per-player deltas to the stored accumulators."""
        rows = await self.get_players_by_ids(deltas.keys())
        for row in rows:
            delta = deltas[row.id]
            current = row.accumulators or _ZERO_ACCUMULATORS
            # Reassign so the JSON column is flagged dirty.
            row.accumulators = {k: current.get(k, 0.0) + delta.get(k, 0.0) for k in _ZERO_ACCUMULATORS}
        await self.session.flush()

    async def apply_settlements(self, results: list[EvolutionResult]) -> None:
        """Bulk monthly update: attributes, OVR, history, accumulators back to zero."""
        by_id = {r.player_id: r for r in results}
        rows = await self.get_players_by_ids(by_id.keys())
        for row in rows:
            result = by_id[row.id]
            row.attributes = result.new_attributes.model_dump()
            row.initial_ovr = result.new_ovr
            row.accumulators = dict(_ZERO_ACCUMULATORS)
            if result.history_entry is not None:
                row.ovr_history = [*(row.ovr_history or []), result.history_entry.model_dump(mode="json")]
        await self.session.flush()

    async def grant_achievement(self, player_id: str, achievement_id: str) -> PlayerRow | None:
        row = await self.session.get(PlayerRow, player_id)
        if row is None:
            return None
        granted = list(row.granted_achievements or [])
        if achievement_id not in granted:
            row.granted_achievements = [*granted, achievement_id]
            await self.session.flush()
        return row

    # --- Matches ---

    async def create_match(self, match_date: date, location: str, match_type: str) -> MatchRow:
        row = MatchRow(date=match_date, location=location, match_type=match_type, status="DRAFT")
        self.session.add(row)
        await self.session.flush()
        return row

    async def create_team(
        self,
        match_id: str,
        name: str,
        position_index: int,
        player_ids: list[str],
    ) -> TeamRow:
        row = TeamRow(match_id=match_id, name=name, position_index=position_index)
        self.session.add(row)
        await self.session.flush()
        for player_id in player_ids:
            self.session.add(TeamPlayerRow(team_id=row.id, player_id=player_id))
        await self.session.flush()
        return row

    async def add_team_player(self, team_id: str, player_id: str) -> TeamPlayerRow:
        row = TeamPlayerRow(team_id=team_id, player_id=player_id)
        self.session.add(row)
        await self.session.flush()
        return row

    async def remove_team_player(self, team_id: str, player_id: str) -> None:
        await self.session.execute(
            delete(TeamPlayerRow).where(
                TeamPlayerRow.team_id == team_id,
                TeamPlayerRow.player_id == player_id,
            )
        )

    async def get_match(self, match_id: str) -> MatchRow | None:
        """Load a match with teams (and their players), games and goals."""
        stmt = (
            select(MatchRow)
            .where(MatchRow.id == match_id)
            .options(
                selectinload(MatchRow.teams)
                .selectinload(TeamRow.members)
                .selectinload(TeamPlayerRow.player),
                selectinload(MatchRow.games),
                selectinload(MatchRow.goals),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all_matches(self, status: str | None = None) -> list[MatchRow]:
        """Return matches with everything nested, most recent first."""
        stmt = (
            select(MatchRow)
            .options(
                selectinload(MatchRow.teams)
                .selectinload(TeamRow.members)
                .selectinload(TeamPlayerRow.player),
                selectinload(MatchRow.games),
                selectinload(MatchRow.goals),
            )
            .order_by(MatchRow.date.desc(), MatchRow.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if status is not None:
            stmt = stmt.where(MatchRow.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_match_status(self, match_id: str, status: str) -> None:
        row = await self.session.get(MatchRow, match_id)
        if row is not None:
            row.status = status
            row.finished_at = datetime.now(UTC) if status == "FINISHED" else None
            await self.session.flush()

    async def update_champion_photo(self, match_id: str, photo_url: str | None) -> None:
        row = await self.session.get(MatchRow, match_id)
        if row is not None:
            row.champion_photo_url = photo_url
            await self.session.flush()

    async def delete_match_games(self, match_id: str) -> None:
        """Drop every goal and game of a match (cancel back to draft)."""
        await self.session.execute(delete(GoalRow).where(GoalRow.match_id == match_id))
        await self.session.execute(delete(GameRow).where(GameRow.match_id == match_id))

    async def delete_match(self, match_id: str) -> None:
        await self.delete_match_games(match_id)
        team_ids = select(TeamRow.id).where(TeamRow.match_id == match_id)
        await self.session.execute(delete(TeamPlayerRow).where(TeamPlayerRow.team_id.in_(team_ids)))
        await self.session.execute(delete(TeamRow).where(TeamRow.match_id == match_id))
        await self.session.execute(delete(MatchRow).where(MatchRow.id == match_id))

    # --- Games / Goals ---

    async def create_games(self, games: list[Game]) -> None:
        for game in games:
            self.session.add(
                GameRow(
                    id=game.id,
                    match_id=game.match_id,
                    home_team_id=game.home_team_id,
                    away_team_id=game.away_team_id,
                    home_score=game.home_score,
                    away_score=game.away_score,
                    status=game.status,
                    phase=game.phase,
                    sequence=game.sequence,
                    penalty_shootout=_shootout_json(game),
                )
            )
        await self.session.flush()

    async def save_game(self, game: Game) -> GameRow | None:
        """Write the mutable state of a game (teams, score, status, shootout)."""
        row = await self.session.get(GameRow, game.id)
        if row is None:
            return None
        row.home_team_id = game.home_team_id
        row.away_team_id = game.away_team_id
        row.home_score = game.home_score
        row.away_score = game.away_score
        row.status = game.status
        row.penalty_shootout = _shootout_json(game)
        await self.session.flush()
        return row

    async def create_goal(self, match_id: str, goal: Goal) -> GoalRow:
        row = GoalRow(
            id=goal.id,
            match_id=match_id,
            game_id=goal.game_id,
            team_id=goal.team_id,
            scorer_id=goal.scorer_id,
            assist_id=goal.assist_id,
            minute=goal.minute,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def save_goal(self, goal: Goal) -> GoalRow | None:
        row = await self.session.get(GoalRow, goal.id)
        if row is None:
            return None
        row.scorer_id = goal.scorer_id
        row.assist_id = goal.assist_id
        row.minute = goal.minute
        await self.session.flush()
        return row

    # --- Hall of fame ---

    async def get_hall_of_fame(self, month_key: str | None = None) -> list[HallOfFameRow]:
        stmt = select(HallOfFameRow).order_by(HallOfFameRow.month_key.desc(), HallOfFameRow.category)
        if month_key is not None:
            stmt = stmt.where(HallOfFameRow.month_key == month_key)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_month_champions(
        self,
        month_key: str,
        champions: list[tuple[str, str, int]],
    ) -> list[HallOfFameRow]:
        """Store (category, player_id, value) winners, replacing that month's entries."""
        await self.session.execute(delete(HallOfFameRow).where(HallOfFameRow.month_key == month_key))
        rows = [
            HallOfFameRow(month_key=month_key, category=category, player_id=player_id, value=value)
            for category, player_id, value in champions
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    # --- Presets ---

    async def get_presets(self) -> list[PlayerPresetRow]:
        stmt = select(PlayerPresetRow).order_by(PlayerPresetRow.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_preset(self, name: str, player_ids: list[str]) -> PlayerPresetRow:
        row = PlayerPresetRow(name=name, player_ids=list(player_ids))
        self.session.add(row)
        await self.session.flush()
        return row

    async def delete_preset(self, preset_id: str) -> bool:
        row = await self.session.get(PlayerPresetRow, preset_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        return True
