"""Fixture generation for Triangular and Quadrangular events.

Triangular: two round-robin legs, everything in PHASE_1.
Quadrangular: a round-robin PHASE_1, then placeholder PHASE_2, THIRD_PLACE
and FINAL games whose teams are seeded from standings once the previous
phase has been played (see ``tournament.advance_bracket``).
"""

from __future__ import annotations

import uuid

from pelada.core.errors import TournamentRuleError
from pelada.models.constants import TBD
from pelada.models.match import Game, GamePhase, MatchType, Team

TRIANGULAR_PAIRINGS: list[tuple[int, int]] = [(0, 1), (1, 2), (2, 0)] * 2

QUADRANGULAR_PAIRINGS: list[tuple[int, int]] = [
    (0, 1),
    (2, 3),
    (0, 2),
    (1, 3),
    (0, 3),
    (1, 2),
]

# Placeholder phases in sequence order after the round-robin.
QUADRANGULAR_KNOCKOUT: list[GamePhase] = [
    GamePhase.PHASE_2,
    GamePhase.PHASE_2,
    GamePhase.THIRD_PLACE,
    GamePhase.FINAL,
]


def _game(match_id: str, sequence: int, phase: GamePhase, home: str = TBD, away: str = TBD) -> Game:
    return Game(
        id=str(uuid.uuid4()),
        match_id=match_id,
        home_team_id=home,
        away_team_id=away,
        phase=phase,
        sequence=sequence,
    )


def generate_fixtures(match_id: str, teams: list[Team], match_type: MatchType) -> list[Game]:
    """Ordered games for an event, with sequence numbers starting at 1."""
    if len(teams) != match_type.team_count:
        msg = f"A {match_type} needs exactly {match_type.team_count} teams, got {len(teams)}"
        raise TournamentRuleError(msg)

    ids = [t.id for t in teams]
    if match_type is MatchType.TRIANGULAR:
        return [
            _game(match_id, seq, GamePhase.PHASE_1, ids[h], ids[a])
            for seq, (h, a) in enumerate(TRIANGULAR_PAIRINGS, start=1)
        ]

    games = [
        _game(match_id, seq, GamePhase.PHASE_1, ids[h], ids[a])
        for seq, (h, a) in enumerate(QUADRANGULAR_PAIRINGS, start=1)
    ]
    start = len(games) + 1
    games.extend(
        _game(match_id, seq, phase)
        for seq, phase in enumerate(QUADRANGULAR_KNOCKOUT, start=start)
    )
    return games
