"""Player, attributes and rating history models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Position(StrEnum):
    GOALKEEPER = "Goalkeeper"
    DEFENDER = "Defender"
    MIDFIELDER = "Midfielder"
    FORWARD = "Forward"


class PlayStyle(StrEnum):
    """Descriptive play-style tags offered during onboarding.

    Players store the tag as plain text, so a style outside this list is
    kept as-is and only loses the attribute-generation skew.
    """

    WALL = "Wall"
    SWEEPER_KEEPER = "Sweeper Keeper"
    ANCHOR = "Anchor"
    ALL_ROUNDER = "All-Rounder"
    PIVOT = "Pivot"
    DRIBBLER = "Dribbler"
    PACER = "Pacer"
    SUPPORT = "Support"
    FINISHER = "Finisher"
    POACHER = "Poacher"


class PlayerAttributes(BaseModel):
    """Four base attributes. All zero means onboarding has not generated them yet."""

    pace: int = Field(default=0, ge=0, le=99)
    shooting: int = Field(default=0, ge=0, le=99)
    passing: int = Field(default=0, ge=0, le=99)
    defending: int = Field(default=0, ge=0, le=99)

    @property
    def is_empty(self) -> bool:
        return self.pace == 0 and self.shooting == 0 and self.passing == 0 and self.defending == 0


class Accumulators(BaseModel):
    """Unbounded fractional rating deltas waiting for the monthly settlement."""

    pace: float = 0.0
    shooting: float = 0.0
    passing: float = 0.0
    defending: float = 0.0


class OvrHistoryEntry(BaseModel):
    date: datetime
    ovr: int


class Player(BaseModel):
    id: str
    name: str
    email: str = ""
    position: Position | None = None
    play_style: str | None = None
    shirt_number: int | None = None
    photo_url: str | None = None
    is_admin: bool = False
    attributes: PlayerAttributes = Field(default_factory=PlayerAttributes)
    initial_ovr: int = 50
    accumulators: Accumulators = Field(default_factory=Accumulators)
    ovr_history: list[OvrHistoryEntry] = Field(default_factory=list)
    granted_achievements: list[str] = Field(default_factory=list)

    @property
    def is_goalkeeper(self) -> bool:
        return self.position == Position.GOALKEEPER

    @property
    def needs_onboarding(self) -> bool:
        return self.position is None or self.attributes.is_empty
