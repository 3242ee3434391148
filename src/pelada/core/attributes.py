"""Back-derive a full attribute set from a single manual OVR.

Used once per player, when onboarding completes and the player still has the
manual OVR the administrator typed in but no attributes.
"""

from __future__ import annotations

import logging

from pelada.core.ratings import position_weights, round_half_up, weighted_ovr
from pelada.models.player import PlayerAttributes, PlayStyle, Position

logger = logging.getLogger(__name__)

BASE_PACE = 80

ATTRIBUTE_BOUNDS: dict[str, tuple[int, int]] = {
    "pace": (40, 99),
    "shooting": (40, 99),
    "passing": (40, 99),
    "defending": (15, 99),
}

POSITION_SKEWS: dict[Position, dict[str, int]] = {
    Position.GOALKEEPER: {"shooting": -20, "passing": -5, "defending": 15},
    Position.DEFENDER: {"shooting": -10, "passing": 0, "defending": 10},
    Position.MIDFIELDER: {"shooting": -4, "passing": 8, "defending": -4},
    Position.FORWARD: {"shooting": 10, "passing": -5, "defending": -15},
}

# Styles that replace the position skew entirely.
STYLE_SKEWS: dict[str, dict[str, int]] = {
    PlayStyle.SWEEPER_KEEPER: {"shooting": -15, "passing": 5, "defending": 10},
}

_FREE = ("shooting", "passing", "defending")
_MAX_REFINEMENTS = 8
_TOLERANCE = 0.01


def _skew_for(position: Position | str | None, play_style: str | None) -> dict[str, int]:
    if play_style in STYLE_SKEWS:
        return STYLE_SKEWS[play_style]
    try:
        return POSITION_SKEWS[Position(position)]
    except ValueError:
        return {}


def _clamp_attr(name: str, value: float) -> float:
    low, high = ATTRIBUTE_BOUNDS[name]
    return max(low, min(high, value))


def _movable(values: dict[str, float], residual: float) -> list[str]:
    """Free attributes that still have room to move in the residual's direction."""
    movable = []
    for name in _FREE:
        low, high = ATTRIBUTE_BOUNDS[name]
        if (residual > 0 and values[name] < high) or (residual < 0 and values[name] > low):
            movable.append(name)
    if movable:
        return movable
    low, high = ATTRIBUTE_BOUNDS["pace"]
    if (residual > 0 and values["pace"] < high) or (residual < 0 and values["pace"] > low):
        return ["pace"]
    return []


def generate_attributes_from_ovr(
    target_ovr: int,
    position: Position | str | None,
    play_style: str | None = None,
) -> PlayerAttributes:
    """Build attributes whose weighted OVR rounds back to ``target_ovr``.

    Pace is pinned at 80. Shooting, passing and defending start at the target,
    get a position (or style) skew, then receive one linear correction so the
    weighted sum matches. When clamping eats part of that correction, the
    leftover is spread over the attributes that are not at a bound, and pace
    only moves once the other three are all pinned.
    """
    weights = position_weights(position)
    skew = _skew_for(position, play_style)

    values: dict[str, float] = {"pace": float(BASE_PACE)}
    for name in _FREE:
        values[name] = float(target_ovr + skew.get(name, 0))

    correction = (target_ovr - weighted_ovr(position, values)) / (1 - weights["pace"])
    for name in _FREE:
        values[name] = _clamp_attr(name, values[name] + correction)

    for _ in range(_MAX_REFINEMENTS):
        residual = target_ovr - weighted_ovr(position, values)
        if abs(residual) < _TOLERANCE:
            break
        movable = _movable(values, residual)
        if not movable:
            logger.warning(
                "attribute_target_unreachable target=%s position=%s residual=%.2f",
                target_ovr,
                position,
                residual,
            )
            break
        step = residual / sum(weights[name] for name in movable)
        for name in movable:
            values[name] = _clamp_attr(name, values[name] + step)

    return PlayerAttributes(**{name: int(_clamp_attr(name, round_half_up(v))) for name, v in values.items()})
