"""Points table for a match.

Only finished PHASE_1/PHASE_2 games count. Knockout games (third place,
final, tie-break) never change points.
"""

from __future__ import annotations

from collections.abc import Iterable

from pelada.models.match import STANDINGS_PHASES, Game, GamePhase, GameStatus, Team, Standing

POINTS_WIN = 3
POINTS_DRAW = 1


def compute_standings(
    teams: list[Team],
    games: list[Game],
    phases: Iterable[GamePhase] = STANDINGS_PHASES,
) -> list[Standing]:
    """Standings sorted by points, wins, goal difference and goals for.

    Every team appears, even with no game played. Remaining ties keep the
    team order of ``teams``.
    """
    counted = set(phases) & STANDINGS_PHASES
    table: dict[str, Standing] = {
        t.id: Standing(team_id=t.id, team_name=t.name) for t in teams
    }

    for game in games:
        if game.status != GameStatus.FINISHED or game.phase not in counted or game.has_tbd:
            continue
        home = table.get(game.home_team_id)
        away = table.get(game.away_team_id)
        if home is None or away is None:
            continue

        home.played += 1
        away.played += 1
        home.goals_for += game.home_score
        home.goals_against += game.away_score
        away.goals_for += game.away_score
        away.goals_against += game.home_score

        if game.home_score > game.away_score:
            home.wins += 1
            home.points += POINTS_WIN
            away.losses += 1
        elif game.home_score < game.away_score:
            away.wins += 1
            away.points += POINTS_WIN
            home.losses += 1
        else:
            home.draws += 1
            away.draws += 1
            home.points += POINTS_DRAW
            away.points += POINTS_DRAW

    for row in table.values():
        row.goal_diff = row.goals_for - row.goals_against

    return sorted(
        table.values(),
        key=lambda s: (-s.points, -s.wins, -s.goal_diff, -s.goals_for),
    )
