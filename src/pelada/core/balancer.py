"""Team balancer: split a player pool into 3 or 4 even sides.

Defenders are snake-drafted, everyone else on the pitch is placed greedily
against the running team totals with an anti-stacking guard and a play-style
diversity penalty, and goalkeepers are dealt round-robin at the end. Team
totals and averages ignore goalkeepers.
"""

from __future__ import annotations

import logging

from pelada.core.errors import TournamentRuleError
from pelada.core.ratings import round_half_up
from pelada.models.constants import POSITION_ORDER, TEAM_NAMES
from pelada.models.match import MatchType, Team
from pelada.models.player import Player, Position

logger = logging.getLogger(__name__)

# A team this far above the weakest one is effectively closed to new players.
STACKING_MARGIN = 15
STACKING_PENALTY = 1000
STYLE_PENALTY = 25


def _line_players(players: list[Player]) -> list[Player]:
    return [p for p in players if not p.is_goalkeeper]


def validate_pool(
    players: list[Player],
    match_type: MatchType,
    min_per_team: int = 1,
    max_per_team: int = 7,
) -> None:
    """Reject pools the balancer cannot turn into a playable match."""
    num_teams = match_type.team_count
    line_count = len(_line_players(players))
    if line_count < num_teams * min_per_team:
        msg = (
            f"A {match_type} needs at least {num_teams * min_per_team} line players, "
            f"got {line_count}"
        )
        raise TournamentRuleError(msg)
    if len(players) > num_teams * max_per_team:
        msg = f"A {match_type} allows at most {num_teams * max_per_team} players, got {len(players)}"
        raise TournamentRuleError(msg)
    ids = [p.id for p in players]
    if len(set(ids)) != len(ids):
        raise TournamentRuleError("The same player was selected twice")


def recompute_team(team: Team) -> Team:
    """Refresh totals, average and style histogram after the roster changed."""
    line = _line_players(team.players)
    team.total_ovr = sum(p.initial_ovr for p in line)
    team.avg_ovr = round_half_up(team.total_ovr / len(line)) if line else 0
    counts: dict[str, int] = {}
    for p in team.players:
        if p.play_style:
            counts[p.play_style] = counts.get(p.play_style, 0) + 1
    team.style_counts = counts
    return team


def sort_roster(players: list[Player]) -> list[Player]:
    """Goalkeepers first, then defenders, midfielders and forwards, strongest first."""
    return sorted(
        players,
        key=lambda p: (POSITION_ORDER.get(p.position or "", len(POSITION_ORDER)), -p.initial_ovr),
    )


def snake_pick(index: int, num_teams: int) -> int:
    """Team index for the ``index``-th pick of a snake draft."""
    cycle = index // num_teams
    slot = index % num_teams
    if cycle % 2 == 0:
        return slot
    return num_teams - 1 - slot


def _add(team: Team, player: Player) -> None:
    team.players.append(player)
    if not player.is_goalkeeper:
        team.total_ovr += player.initial_ovr
    if player.play_style:
        team.style_counts[player.play_style] = team.style_counts.get(player.play_style, 0) + 1


def _greedy_score(team: Team, player: Player, min_total: int) -> int:
    score = team.total_ovr
    if team.total_ovr - min_total > STACKING_MARGIN:
        score += STACKING_PENALTY
    if player.play_style:
        score += STYLE_PENALTY * team.style_counts.get(player.play_style, 0)
    return score


def generate_teams(players: list[Player], match_type: MatchType) -> list[Team]:
    """Split ``players`` into balanced teams for ``match_type``.

    Performs no size validation; call :func:`validate_pool` first.
    """
    num_teams = match_type.team_count
    teams = [
        Team(id=f"team-{i}", name=TEAM_NAMES[i])
        for i in range(num_teams)
    ]

    goalkeepers = [p for p in players if p.is_goalkeeper]
    defenders = sorted(
        (p for p in players if p.position == Position.DEFENDER),
        key=lambda p: p.initial_ovr,
        reverse=True,
    )
    rest = sorted(
        (p for p in players if p.position not in (Position.GOALKEEPER, Position.DEFENDER)),
        key=lambda p: p.initial_ovr,
        reverse=True,
    )

    for index, player in enumerate(defenders):
        _add(teams[snake_pick(index, num_teams)], player)

    for player in rest:
        min_total = min(t.total_ovr for t in teams)
        best = teams[0]
        best_score = _greedy_score(best, player, min_total)
        for team in teams[1:]:
            score = _greedy_score(team, player, min_total)
            if score < best_score:
                best, best_score = team, score
        _add(best, player)

    for index, keeper in enumerate(goalkeepers):
        teams[index % num_teams].players.insert(0, keeper)

    for team in teams:
        team.players = sort_roster(team.players)
        recompute_team(team)

    logger.info(
        "teams_generated type=%s players=%d totals=%s",
        match_type,
        len(players),
        [t.total_ovr for t in teams],
    )
    return teams
