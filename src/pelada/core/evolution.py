"""Rating evolution: per-match deltas and the monthly settlement.

Finishing a match adds small real-valued deltas to each player's
accumulators. Once a month the accumulators are converted into whole
attribute points, the OVR is recomputed under a +/-2 safety clamp, and the
accumulators go back to zero. The preview and the commit share
:func:`simulate_monthly_update`, so they can never disagree.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel

from pelada.core.ratings import (
    ACCUMULATOR_DIVISOR,
    ATTRIBUTE_MAX,
    ATTRIBUTE_MIN,
    clamp,
    position_weights,
    round_half_up,
    weighted_ovr,
)
from pelada.models.constants import ATTRIBUTE_ORDER
from pelada.models.player import Accumulators, OvrHistoryEntry, Player, PlayerAttributes, Position

if TYPE_CHECKING:
    from pelada.db.repository import Repository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-match deltas
# ---------------------------------------------------------------------------

WIN_PACE = 0.3
LOSS_PACE = -0.2
PLACEMENT_BONUS = 1.0
GOAL_CONCEDED_DEFENDING = -0.2

CLEAN_SHEET_BONUS: dict[Position, float] = {
    Position.GOALKEEPER: 0.5,
    Position.DEFENDER: 0.3,
    Position.MIDFIELDER: 0.2,
    Position.FORWARD: 0.1,
}
GOAL_BONUS: dict[Position, float] = {
    Position.GOALKEEPER: 0.1,
    Position.DEFENDER: 0.2,
    Position.MIDFIELDER: 0.3,
    Position.FORWARD: 0.5,
}
ASSIST_BONUS: dict[Position, float] = {
    Position.GOALKEEPER: 0.1,
    Position.DEFENDER: 0.2,
    Position.MIDFIELDER: 0.5,
    Position.FORWARD: 0.3,
}
# (passing, shooting) penalty for a match without a goal or an assist.
NO_CONTRIBUTION_PENALTY: dict[Position, tuple[float, float]] = {
    Position.GOALKEEPER: (-0.1, -0.1),
    Position.DEFENDER: (-0.1, -0.1),
    Position.MIDFIELDER: (-0.2, -0.1),
    Position.FORWARD: (-0.1, -0.2),
}

DEFAULT_CLEAN_SHEET_BONUS = 0.2
DEFAULT_GOAL_BONUS = 0.3
DEFAULT_ASSIST_BONUS = 0.3
DEFAULT_NO_CONTRIBUTION_PENALTY = (-0.1, -0.1)

MONTHLY_OVR_STEP = 2


class PlayerMatchStats(BaseModel):
    """What one player did across every finished game of a single match."""

    matches: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals: int = 0
    assists: int = 0
    clean_sheets: int = 0
    goals_conceded: int = 0


def _lookup(table: dict[Position, float], position: Position | str | None, default: float) -> float:
    try:
        return table[Position(position)]
    except ValueError:
        return default


def compute_match_deltas(
    position: Position | str | None,
    stats: PlayerMatchStats,
    is_champion: bool,
    is_last_place: bool,
) -> Accumulators:
    """Accumulator deltas one player earns from one finished match. Never clamped."""
    weights = position_weights(position)
    delta = {k: 0.0 for k in ATTRIBUTE_ORDER}

    delta["pace"] += stats.wins * WIN_PACE + stats.losses * LOSS_PACE

    if is_champion:
        for k in ATTRIBUTE_ORDER:
            delta[k] += PLACEMENT_BONUS * weights[k]
    if is_last_place:
        for k in ATTRIBUTE_ORDER:
            delta[k] -= PLACEMENT_BONUS * weights[k]

    delta["defending"] += stats.clean_sheets * _lookup(CLEAN_SHEET_BONUS, position, DEFAULT_CLEAN_SHEET_BONUS)
    delta["defending"] += stats.goals_conceded * GOAL_CONCEDED_DEFENDING
    delta["shooting"] += stats.goals * _lookup(GOAL_BONUS, position, DEFAULT_GOAL_BONUS)
    delta["passing"] += stats.assists * _lookup(ASSIST_BONUS, position, DEFAULT_ASSIST_BONUS)

    if stats.goals == 0 and stats.assists == 0 and stats.matches > 0:
        try:
            passing, shooting = NO_CONTRIBUTION_PENALTY[Position(position)]
        except ValueError:
            passing, shooting = DEFAULT_NO_CONTRIBUTION_PENALTY
        delta["passing"] += passing
        delta["shooting"] += shooting

    return Accumulators(**delta)


# ---------------------------------------------------------------------------
# Monthly settlement
# ---------------------------------------------------------------------------


class EvolutionResult(BaseModel):
    player_id: str
    name: str
    old_ovr: int
    new_ovr: int
    raw_ovr: float
    old_attributes: PlayerAttributes
    new_attributes: PlayerAttributes
    gains: dict[str, int]
    history_entry: OvrHistoryEntry | None = None

    @property
    def ovr_changed(self) -> bool:
        return self.new_ovr != self.old_ovr


def settle_player(player: Player, now: datetime) -> EvolutionResult:
    """Turn one player's accumulators into attribute points and a clamped OVR."""
    acc = player.accumulators.model_dump()
    gains = {k: round_half_up(acc[k] / ACCUMULATOR_DIVISOR) for k in ATTRIBUTE_ORDER}
    new_attributes = PlayerAttributes(
        **{
            k: int(clamp(getattr(player.attributes, k) + gains[k], ATTRIBUTE_MIN, ATTRIBUTE_MAX))
            for k in ATTRIBUTE_ORDER
        }
    )
    raw_ovr = weighted_ovr(player.position, new_attributes)
    old_ovr = player.initial_ovr
    new_ovr = int(clamp(round_half_up(raw_ovr), old_ovr - MONTHLY_OVR_STEP, old_ovr + MONTHLY_OVR_STEP))

    return EvolutionResult(
        player_id=player.id,
        name=player.name,
        old_ovr=old_ovr,
        new_ovr=new_ovr,
        raw_ovr=raw_ovr,
        old_attributes=player.attributes,
        new_attributes=new_attributes,
        gains=gains,
        history_entry=OvrHistoryEntry(date=now, ovr=new_ovr) if new_ovr != old_ovr else None,
    )


def simulate_monthly_update(players: list[Player], now: datetime | None = None) -> list[EvolutionResult]:
    """Settlement for every player with generated attributes, without persisting anything."""
    now = now or datetime.now(UTC)
    return [settle_player(p, now) for p in players if not p.attributes.is_empty]


async def preview_monthly_update(repo: Repository, now: datetime | None = None) -> list[EvolutionResult]:
    from pelada.core.roster import row_to_player

    players = [row_to_player(row) for row in await repo.get_all_players()]
    return simulate_monthly_update(players, now)


async def apply_monthly_update(repo: Repository, now: datetime | None = None) -> list[EvolutionResult]:
    """Commit the monthly settlement: attributes, OVR, history, accumulators reset."""
    results = await preview_monthly_update(repo, now)
    await repo.apply_settlements(results)
    changed = sum(1 for r in results if r.ovr_changed)
    logger.info("monthly_update_applied players=%d ovr_changed=%d", len(results), changed)
    return results
