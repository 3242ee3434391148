"""Rating model: position-weighted overall rating (OVR) and form projection.

OVR is the dot product of the four attributes with the weight vector of the
player's position. It is kept real-valued during projections and rounded
half-up only when displayed or stored.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from pelada.models.constants import ATTRIBUTE_ORDER
from pelada.models.player import Accumulators, Player, PlayerAttributes, Position

POSITION_WEIGHTS: dict[Position, dict[str, float]] = {
    Position.GOALKEEPER: {"pace": 0.20, "shooting": 0.05, "passing": 0.15, "defending": 0.60},
    Position.DEFENDER: {"pace": 0.20, "shooting": 0.05, "passing": 0.25, "defending": 0.50},
    Position.MIDFIELDER: {"pace": 0.20, "shooting": 0.20, "passing": 0.50, "defending": 0.10},
    Position.FORWARD: {"pace": 0.20, "shooting": 0.60, "passing": 0.15, "defending": 0.05},
}

DEFAULT_WEIGHTS: dict[str, float] = {"pace": 0.25, "shooting": 0.25, "passing": 0.25, "defending": 0.25}

ATTRIBUTE_MIN = 1
ATTRIBUTE_MAX = 99

# Share of the accumulator that turns into attribute points at settlement.
ACCUMULATOR_DIVISOR = 4


def position_weights(position: Position | str | None) -> dict[str, float]:
    """Weight vector for a position, equal weights when the position is unknown."""
    if position is None:
        return DEFAULT_WEIGHTS
    try:
        return POSITION_WEIGHTS[Position(position)]
    except ValueError:
        return DEFAULT_WEIGHTS


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _attribute_values(attrs: PlayerAttributes | Mapping[str, float]) -> dict[str, float]:
    if isinstance(attrs, PlayerAttributes):
        return attrs.model_dump()
    return {k: attrs.get(k, 0) for k in ATTRIBUTE_ORDER}


def weighted_ovr(
    position: Position | str | None,
    attrs: PlayerAttributes | Mapping[str, float],
) -> float:
    """Unrounded weighted overall rating."""
    weights = position_weights(position)
    values = _attribute_values(attrs)
    return sum(values[k] * weights[k] for k in ATTRIBUTE_ORDER)


def compute_ovr(position: Position | str | None, attrs: PlayerAttributes | Mapping[str, float]) -> int:
    """Stored/displayed OVR."""
    return round_half_up(weighted_ovr(position, attrs))


def project_next_ovr(
    position: Position | str | None,
    attrs: PlayerAttributes,
    accumulators: Accumulators,
) -> float:
    """OVR the player would reach if the accumulators were settled now, before the safety clamp."""
    acc = accumulators.model_dump()
    projected = {
        k: clamp(getattr(attrs, k) + acc[k] / ACCUMULATOR_DIVISOR, ATTRIBUTE_MIN, ATTRIBUTE_MAX)
        for k in ATTRIBUTE_ORDER
    }
    return weighted_ovr(position, projected)


def form_delta(player: Player) -> float:
    """Signed distance between the projected and the current OVR.

    Zero for players whose attributes have not been generated yet, since
    their OVR is a manual value the weights cannot reproduce.
    """
    if player.attributes.is_empty:
        return 0.0
    return project_next_ovr(player.position, player.attributes, player.accumulators) - player.initial_ovr
