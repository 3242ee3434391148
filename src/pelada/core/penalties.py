"""Penalty shootout rules.

Kicks alternate strictly, home first. A final gets 5 regulation kicks per
side, every other knockout game 3. A shootout is decided at the first kick
after which one side can no longer catch up with the kicks it has left; past
regulation it goes to sudden death, one pair of kicks at a time. Once
decided, it stays decided: only undoing kicks can reopen it.
"""

from __future__ import annotations

from pelada.models.match import Game, GamePhase

FINAL_KICKS = 5
KNOCKOUT_KICKS = 3


def max_kicks(phase: GamePhase) -> int:
    return FINAL_KICKS if phase == GamePhase.FINAL else KNOCKOUT_KICKS


def expected_kicker(game: Game) -> str:
    """Team id that takes the next kick."""
    taken = len(game.penalty_shootout.history) if game.penalty_shootout else 0
    return game.home_team_id if taken % 2 == 0 else game.away_team_id


def _leader(
    home_goals: int,
    away_goals: int,
    home_kicks: int,
    away_kicks: int,
    regulation: int,
) -> str | None:
    """'home' or 'away' when the other side is mathematically eliminated."""
    rounds = max(regulation, home_kicks, away_kicks)
    if home_goals > away_goals + (rounds - away_kicks):
        return "home"
    if away_goals > home_goals + (rounds - home_kicks):
        return "away"
    return None


def _scan(game: Game) -> tuple[int, str] | None:
    if game.penalty_shootout is None:
        return None
    regulation = max_kicks(game.phase)
    home_goals = away_goals = home_kicks = away_kicks = 0
    for index, kick in enumerate(game.penalty_shootout.history):
        if kick.team_id == game.home_team_id:
            home_kicks += 1
            home_goals += int(kick.is_goal)
        else:
            away_kicks += 1
            away_goals += int(kick.is_goal)
        side = _leader(home_goals, away_goals, home_kicks, away_kicks, regulation)
        if side is not None:
            return index, side
    return None


def decided_at(game: Game) -> int | None:
    """Index of the kick that settled the shootout, or None while it is open."""
    result = _scan(game)
    return result[0] if result else None


def is_decided(game: Game) -> bool:
    return _scan(game) is not None


def shootout_winner(game: Game) -> str | None:
    result = _scan(game)
    if result is None:
        return None
    return game.home_team_id if result[1] == "home" else game.away_team_id


def game_winner(game: Game) -> str | None:
    """Winner in normal time, or through the shootout. None for a draw."""
    if game.home_score > game.away_score:
        return game.home_team_id
    if game.away_score > game.home_score:
        return game.away_team_id
    return shootout_winner(game)
