"""Roster seeding: YAML import/export and a generated demo roster.

Supports two flows:
1. Load a hand-written roster from YAML
2. Generate a demo roster programmatically (fixed seed, reproducible)
"""

from __future__ import annotations

import logging
import random
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from pelada.core.attributes import generate_attributes_from_ovr
from pelada.core.ratings import compute_ovr
from pelada.db.repository import Repository
from pelada.models.player import PlayerAttributes, PlayStyle, Position

logger = logging.getLogger(__name__)


class PlayerSeed(BaseModel):
    """One roster entry. Attributes are optional and derived from ``ovr`` when absent."""

    name: str
    email: str = ""
    position: Position | None = None
    play_style: str | None = None
    ovr: int = Field(default=60, ge=1, le=99)
    shirt_number: int | None = None
    attributes: PlayerAttributes | None = None


class RosterConfig(BaseModel):
    name: str = "Pelada de Quinta"
    players: list[PlayerSeed] = Field(default_factory=list)


_FIRST_NAMES = [
    "Bruno", "Caio", "Diego", "Edu", "Fabio", "Gui", "Henrique", "Igor",
    "Joao", "Leo", "Marcos", "Nando", "Otavio", "Pedro", "Rafa", "Sergio",
    "Tiago", "Vini", "Will", "Zeca", "Andre", "Beto", "Cadu", "Dudu",
]

_STYLES_BY_POSITION: dict[Position, list[PlayStyle]] = {
    Position.GOALKEEPER: [PlayStyle.WALL, PlayStyle.SWEEPER_KEEPER],
    Position.DEFENDER: [PlayStyle.ANCHOR, PlayStyle.ALL_ROUNDER],
    Position.MIDFIELDER: [PlayStyle.PIVOT, PlayStyle.DRIBBLER, PlayStyle.SUPPORT],
    Position.FORWARD: [PlayStyle.FINISHER, PlayStyle.POACHER, PlayStyle.PACER],
}


def generate_demo_roster(num_players: int = 20, goalkeepers: int = 4, seed: int = 42) -> RosterConfig:
    """Build a reproducible roster: a few keepers, the rest spread over the outfield."""
    rng = random.Random(seed)
    outfield = [Position.DEFENDER, Position.MIDFIELDER, Position.FORWARD]
    players: list[PlayerSeed] = []
    for index in range(num_players):
        position = Position.GOALKEEPER if index < goalkeepers else outfield[index % len(outfield)]
        players.append(
            PlayerSeed(
                name=f"{_FIRST_NAMES[index % len(_FIRST_NAMES)]} {index + 1}",
                email=f"player{index + 1}@pelada.local",
                position=position,
                play_style=rng.choice(_STYLES_BY_POSITION[position]),
                ovr=rng.randint(55, 88),
                shirt_number=index + 1,
            )
        )
    return RosterConfig(players=players)


def save_roster_yaml(config: RosterConfig, path: Path) -> None:
    """Save roster config to YAML."""
    data = config.model_dump(mode="json", exclude_none=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_roster_yaml(path: Path) -> RosterConfig:
    """Load roster config from YAML."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return RosterConfig.model_validate(data or {})


async def import_roster(repo: Repository, config: RosterConfig) -> list[str]:
    """Create every player of the roster. Returns the new player ids.

    Entries with a position get attributes right away (given or generated),
    so their OVR follows the weights. Entries without one stay pending
    onboarding with their manual OVR.
    """
    ids: list[str] = []
    for seed in config.players:
        attributes = seed.attributes
        if attributes is None and seed.position is not None:
            attributes = generate_attributes_from_ovr(seed.ovr, seed.position, seed.play_style)
        ovr = compute_ovr(seed.position, attributes) if attributes and not attributes.is_empty else seed.ovr
        row = await repo.create_player(
            name=seed.name,
            email=seed.email,
            position=seed.position,
            play_style=seed.play_style,
            initial_ovr=ovr,
            attributes=attributes.model_dump() if attributes else None,
            shirt_number=seed.shirt_number,
        )
        ids.append(row.id)
    logger.info("roster_imported name=%s players=%d", config.name, len(ids))
    return ids
