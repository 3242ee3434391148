"""Player roster: creation, edits, onboarding and manual achievement grants."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from pelada.core.attributes import generate_attributes_from_ovr
from pelada.core.errors import EntityNotFound, TournamentRuleError
from pelada.core.ratings import compute_ovr
from pelada.db.models import PlayerRow
from pelada.db.repository import Repository
from pelada.models.player import (
    Accumulators,
    OvrHistoryEntry,
    Player,
    PlayerAttributes,
    Position,
)

logger = logging.getLogger(__name__)


class PlayerInput(BaseModel):
    """Fields an administrator fills in when registering or editing a player."""

    name: str = Field(min_length=1, max_length=100)
    email: str = ""
    position: Position | None = None
    play_style: str | None = None
    shirt_number: int | None = Field(default=None, ge=0, le=99)
    photo_url: str | None = None
    is_admin: bool = False
    initial_ovr: int = Field(default=50, ge=1, le=99)
    attributes: PlayerAttributes | None = None


class PlayerUpdate(BaseModel):
    """A partial edit. Fields the caller leaves out keep their stored value."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = None
    position: Position | None = None
    play_style: str | None = None
    shirt_number: int | None = Field(default=None, ge=0, le=99)
    photo_url: str | None = None
    is_admin: bool | None = None
    initial_ovr: int | None = Field(default=None, ge=1, le=99)
    attributes: PlayerAttributes | None = None


_NOT_NULL = {"name", "is_admin", "initial_ovr"}


def row_to_player(row: PlayerRow) -> Player:
    """Convert a PlayerRow into a Player domain model."""
    return Player(
        id=row.id,
        name=row.name,
        email=row.email or "",
        position=row.position,
        play_style=row.play_style,
        shirt_number=row.shirt_number,
        photo_url=row.photo_url,
        is_admin=row.is_admin,
        attributes=PlayerAttributes(**(row.attributes or {})),
        initial_ovr=row.initial_ovr,
        accumulators=Accumulators(**(row.accumulators or {})),
        ovr_history=[OvrHistoryEntry(**entry) for entry in row.ovr_history or []],
        granted_achievements=list(row.granted_achievements or []),
    )


def _ovr_for(data: PlayerInput) -> int:
    if data.attributes is not None and not data.attributes.is_empty:
        return compute_ovr(data.position, data.attributes)
    return data.initial_ovr


async def get_player(repo: Repository, player_id: str) -> Player:
    row = await repo.get_player(player_id)
    if row is None:
        raise EntityNotFound("Player", player_id)
    return row_to_player(row)


async def list_players(repo: Repository) -> list[Player]:
    return [row_to_player(row) for row in await repo.get_all_players()]


async def create_player(repo: Repository, data: PlayerInput) -> Player:
    """Register a player.

    Without attributes the OVR is the manual value and onboarding derives
    the attributes later. With attributes the OVR follows the weights.
    """
    row = await repo.create_player(
        name=data.name,
        email=data.email,
        position=data.position,
        play_style=data.play_style,
        initial_ovr=_ovr_for(data),
        attributes=data.attributes.model_dump() if data.attributes else None,
        shirt_number=data.shirt_number,
        photo_url=data.photo_url,
        is_admin=data.is_admin,
    )
    logger.info("player_created player=%s ovr=%d", row.id, row.initial_ovr)
    return row_to_player(row)


async def update_player(repo: Repository, player_id: str, data: PlayerUpdate) -> Player:
    """Merge the fields set on *data* onto the stored player.

    The OVR follows the weights whenever the merged attributes are non-zero;
    otherwise the manual value is kept.
    """
    current = await get_player(repo, player_id)
    changes = {
        key: value
        for key, value in data.model_dump(exclude_unset=True, exclude={"attributes"}).items()
        if value is not None or key not in _NOT_NULL
    }
    merged = current.model_copy(update=changes)
    if data.attributes is not None:
        merged.attributes = data.attributes
    if merged.attributes.is_empty:
        ovr = merged.initial_ovr
    else:
        ovr = compute_ovr(merged.position, merged.attributes)
    row = await repo.update_player(
        player_id,
        name=merged.name,
        email=merged.email or "",
        position=merged.position,
        play_style=merged.play_style,
        shirt_number=merged.shirt_number,
        photo_url=merged.photo_url,
        is_admin=merged.is_admin,
        attributes=merged.attributes.model_dump(),
        initial_ovr=ovr,
    )
    logger.info("player_updated player=%s fields=%s ovr=%d", player_id, sorted(data.model_fields_set), ovr)
    return row_to_player(row)


async def complete_onboarding(
    repo: Repository,
    player_id: str,
    position: Position,
    play_style: str | None = None,
) -> Player:
    """Set position and style, generating attributes from the manual OVR if still empty."""
    player = await get_player(repo, player_id)
    attributes = player.attributes
    if attributes.is_empty:
        attributes = generate_attributes_from_ovr(player.initial_ovr, position, play_style)
        logger.info(
            "attributes_generated player=%s target=%d position=%s",
            player_id,
            player.initial_ovr,
            position,
        )
    row = await repo.update_player(
        player_id,
        position=position,
        play_style=play_style,
        attributes=attributes.model_dump(),
        initial_ovr=compute_ovr(position, attributes),
    )
    return row_to_player(row)


async def grant_achievement(repo: Repository, player_id: str, achievement_id: str) -> Player:
    from pelada.core.achievements import ACHIEVEMENTS_BY_ID

    if achievement_id not in ACHIEVEMENTS_BY_ID:
        msg = f"Unknown achievement {achievement_id}"
        raise TournamentRuleError(msg)
    row = await repo.grant_achievement(player_id, achievement_id)
    if row is None:
        raise EntityNotFound("Player", player_id)
    logger.info("achievement_granted player=%s achievement=%s", player_id, achievement_id)
    return row_to_player(row)


# --- Presets ---


class PlayerPreset(BaseModel):
    """A saved selection of players, reused when drafting a new match."""

    id: str
    name: str
    player_ids: list[str] = Field(default_factory=list)


async def list_presets(repo: Repository) -> list[PlayerPreset]:
    return [
        PlayerPreset(id=row.id, name=row.name, player_ids=list(row.player_ids or []))
        for row in await repo.get_presets()
    ]


async def create_preset(repo: Repository, name: str, player_ids: list[str]) -> PlayerPreset:
    found = {row.id for row in await repo.get_players_by_ids(player_ids)}
    missing = [pid for pid in player_ids if pid not in found]
    if missing:
        raise EntityNotFound("Player", missing[0])
    row = await repo.create_preset(name, list(dict.fromkeys(player_ids)))
    return PlayerPreset(id=row.id, name=row.name, player_ids=list(row.player_ids))


async def delete_preset(repo: Repository, preset_id: str) -> None:
    if not await repo.delete_preset(preset_id):
        raise EntityNotFound("Preset", preset_id)
