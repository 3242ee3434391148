"""Match, Team, Game, Goal and penalty shootout models.

A Match is one pelada event. It owns its Teams (drafted for that event only),
the Games of its bracket and every Goal scored in them.
"""

from __future__ import annotations

from datetime import date as date_type
from enum import StrEnum

from pydantic import BaseModel, Field

from pelada.models.constants import TBD
from pelada.models.player import Player


class MatchType(StrEnum):
    TRIANGULAR = "Triangular"
    QUADRANGULAR = "Quadrangular"

    @property
    def team_count(self) -> int:
        return 3 if self is MatchType.TRIANGULAR else 4


class MatchStatus(StrEnum):
    DRAFT = "DRAFT"
    OPEN = "OPEN"
    FINISHED = "FINISHED"


class GameStatus(StrEnum):
    WAITING = "WAITING"
    LIVE = "LIVE"
    FINISHED = "FINISHED"


class GamePhase(StrEnum):
    PHASE_1 = "PHASE_1"
    PHASE_2 = "PHASE_2"
    TIEBREAK = "TIEBREAK"
    THIRD_PLACE = "THIRD_PLACE"
    FINAL = "FINAL"


STANDINGS_PHASES = frozenset({GamePhase.PHASE_1, GamePhase.PHASE_2})
KNOCKOUT_PHASES = frozenset({GamePhase.TIEBREAK, GamePhase.THIRD_PLACE, GamePhase.FINAL})


class PenaltyKick(BaseModel):
    team_id: str
    is_goal: bool
    round: int
    kicker_id: str | None = None


class PenaltyShootout(BaseModel):
    home_score: int = 0
    away_score: int = 0
    history: list[PenaltyKick] = Field(default_factory=list)


class Team(BaseModel):
    """A side drafted for a single match. Totals ignore goalkeepers."""

    id: str
    name: str
    players: list[Player] = Field(default_factory=list)
    total_ovr: int = 0
    avg_ovr: int = 0
    style_counts: dict[str, int] = Field(default_factory=dict)

    @property
    def player_ids(self) -> list[str]:
        return [p.id for p in self.players]


class Game(BaseModel):
    id: str
    match_id: str
    home_team_id: str = TBD
    away_team_id: str = TBD
    home_score: int = 0
    away_score: int = 0
    status: GameStatus = GameStatus.WAITING
    phase: GamePhase = GamePhase.PHASE_1
    sequence: int
    penalty_shootout: PenaltyShootout | None = None

    @property
    def is_knockout(self) -> bool:
        return self.phase in KNOCKOUT_PHASES

    @property
    def has_tbd(self) -> bool:
        return self.home_team_id == TBD or self.away_team_id == TBD

    @property
    def is_level(self) -> bool:
        return self.home_score == self.away_score

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)


class Goal(BaseModel):
    id: str
    game_id: str
    team_id: str
    scorer_id: str | None = None
    assist_id: str | None = None
    minute: int | None = None


class Match(BaseModel):
    id: str
    date: date_type
    location: str = ""
    match_type: MatchType
    status: MatchStatus = MatchStatus.DRAFT
    teams: list[Team] = Field(default_factory=list)
    games: list[Game] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    champion_photo_url: str | None = None

    def games_in_phase(self, phase: GamePhase) -> list[Game]:
        return [g for g in self.games if g.phase == phase]

    def team_of(self, player_id: str) -> Team | None:
        for team in self.teams:
            if player_id in team.player_ids:
                return team
        return None


class Standing(BaseModel):
    team_id: str
    team_name: str = ""
    played: int = 0
    points: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_diff: int = 0
