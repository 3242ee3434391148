"""Shared constants for pelada models.

Placed here so the core algorithms, the database layer and the API can
import them without creating a layer violation.
"""

from __future__ import annotations

ATTRIBUTE_ORDER: list[str] = [
    "pace",
    "shooting",
    "passing",
    "defending",
]

# Placeholder team id for knockout slots that are seeded later.
TBD = "TBD"

POSITION_ORDER: dict[str, int] = {
    "Goalkeeper": 0,
    "Defender": 1,
    "Midfielder": 2,
    "Forward": 3,
}

TEAM_NAMES: list[str] = ["Time A", "Time B", "Time C", "Time D"]
