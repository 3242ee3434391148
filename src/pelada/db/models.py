"""SQLAlchemy ORM models for the pelada database.

Tables: players, matches, teams, team_players, games, goals, hall_of_fame,
player_presets. Game team ids are plain strings because knockout slots hold
the ``TBD`` placeholder until they are seeded.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from datetime import date as date_type

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _zero_accumulators() -> dict:
    return {"pace": 0.0, "shooting": 0.0, "passing": 0.0, "defending": 0.0}


def _empty_attributes() -> dict:
    return {"pace": 0, "shooting": 0, "passing": 0, "defending": 0}


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class PlayerRow(Base):
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="")
    position: Mapped[str | None] = mapped_column(String(20), nullable=True)
    play_style: Mapped[str | None] = mapped_column(String(30), nullable=True)
    shirt_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    attributes: Mapped[dict] = mapped_column(JSON, default=_empty_attributes)
    accumulators: Mapped[dict] = mapped_column(JSON, default=_zero_accumulators)
    initial_ovr: Mapped[int] = mapped_column(Integer, default=50)
    ovr_history: Mapped[list] = mapped_column(JSON, default=list)
    granted_achievements: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (Index("ix_players_email", "email"),)


class MatchRow(Base):
    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    location: Mapped[str] = mapped_column(String(200), default="")
    match_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="DRAFT")
    champion_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    teams: Mapped[list[TeamRow]] = relationship(
        back_populates="match", order_by="TeamRow.position_index"
    )
    games: Mapped[list[GameRow]] = relationship(order_by="GameRow.sequence")
    goals: Mapped[list[GoalRow]] = relationship(order_by="GoalRow.created_at")

    __table_args__ = (Index("ix_matches_date", "date"),)


class TeamRow(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    match_id: Mapped[str] = mapped_column(ForeignKey("matches.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position_index: Mapped[int] = mapped_column(Integer, default=0)

    match: Mapped[MatchRow] = relationship(back_populates="teams")
    members: Mapped[list[TeamPlayerRow]] = relationship(back_populates="team")

    __table_args__ = (Index("ix_teams_match_id", "match_id"),)


class TeamPlayerRow(Base):
    __tablename__ = "team_players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)

    team: Mapped[TeamRow] = relationship(back_populates="members")
    player: Mapped[PlayerRow] = relationship()

    __table_args__ = (UniqueConstraint("team_id", "player_id", name="uq_team_player"),)


class GameRow(Base):
    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    match_id: Mapped[str] = mapped_column(ForeignKey("matches.id"), nullable=False)
    home_team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    away_team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    home_score: Mapped[int] = mapped_column(Integer, default=0)
    away_score: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="WAITING")
    phase: Mapped[str] = mapped_column(String(20), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    penalty_shootout: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_games_match_id", "match_id"),
        UniqueConstraint("match_id", "sequence", name="uq_game_sequence"),
    )


class GoalRow(Base):
    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    match_id: Mapped[str] = mapped_column(ForeignKey("matches.id"), nullable=False)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    scorer_id: Mapped[str | None] = mapped_column(ForeignKey("players.id"), nullable=True)
    assist_id: Mapped[str | None] = mapped_column(ForeignKey("players.id"), nullable=True)
    minute: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (Index("ix_goals_match_id", "match_id"),)


class HallOfFameRow(Base):
    """One monthly category winner (wins, goals, assists, clean sheets)."""

    __tablename__ = "hall_of_fame"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    month_key: Mapped[str] = mapped_column(String(7), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    value: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("month_key", "category", name="uq_hall_of_fame_month_category"),
    )


class PlayerPresetRow(Base):
    __tablename__ = "player_presets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    player_ids: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
