"""Match/tournament engine: the rules of a pelada event, applied in memory.

Every operation takes a :class:`Match` aggregate, validates the request
against the current state, mutates the aggregate and returns what changed so
the caller (``core.matchday``) can persist it. A rejected request raises
:class:`TournamentRuleError` and leaves the aggregate untouched.

Lifecycle::

    Match:  DRAFT --publish--> OPEN --finish--> FINISHED
                  <--cancel---
    Game:   WAITING --start--> LIVE --end--> FINISHED
"""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, Field

from pelada.core.balancer import recompute_team, sort_roster
from pelada.core.errors import EntityNotFound, TournamentRuleError
from pelada.core.evolution import PlayerMatchStats, compute_match_deltas
from pelada.core.fixtures import generate_fixtures
from pelada.core.penalties import expected_kicker, game_winner, is_decided
from pelada.core.standings import compute_standings
from pelada.models.constants import TBD
from pelada.models.match import (
    Game,
    GamePhase,
    GameStatus,
    Goal,
    Match,
    MatchStatus,
    MatchType,
    PenaltyKick,
    PenaltyShootout,
    Standing,
    Team,
)
from pelada.models.player import Accumulators, Player

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_game(match: Match, game_id: str) -> Game:
    for game in match.games:
        if game.id == game_id:
            return game
    raise EntityNotFound("Game", game_id)


def get_goal(match: Match, goal_id: str) -> Goal:
    for goal in match.goals:
        if goal.id == goal_id:
            return goal
    raise EntityNotFound("Goal", goal_id)


def get_team(match: Match, team_id: str) -> Team:
    for team in match.teams:
        if team.id == team_id:
            return team
    raise EntityNotFound("Team", team_id)


def _require_status(match: Match, *allowed: MatchStatus) -> None:
    if match.status not in allowed:
        msg = f"Match {match.id} is {match.status}; expected {' or '.join(allowed)}"
        raise TournamentRuleError(msg)


def _live_game(match: Match) -> Game | None:
    return next((g for g in match.games if g.status == GameStatus.LIVE), None)


def _require_live(game: Game) -> None:
    if game.status != GameStatus.LIVE:
        msg = f"Game {game.sequence} is {game.status}, not LIVE"
        raise TournamentRuleError(msg)


# ---------------------------------------------------------------------------
# Draft editing and publication
# ---------------------------------------------------------------------------


def add_player_to_team(match: Match, team_id: str, player: Player) -> Team:
    _require_status(match, MatchStatus.DRAFT)
    team = get_team(match, team_id)
    current = match.team_of(player.id)
    if current is not None:
        msg = f"{player.name} is already in {current.name}"
        raise TournamentRuleError(msg)
    team.players = sort_roster([*team.players, player])
    return recompute_team(team)


def remove_player_from_team(match: Match, team_id: str, player_id: str) -> Team:
    _require_status(match, MatchStatus.DRAFT)
    team = get_team(match, team_id)
    if player_id not in team.player_ids:
        raise EntityNotFound("Player", player_id)
    team.players = [p for p in team.players if p.id != player_id]
    return recompute_team(team)


def publish_match(match: Match) -> list[Game]:
    """DRAFT -> OPEN. Generates the fixture list."""
    _require_status(match, MatchStatus.DRAFT)
    empty = [t.name for t in match.teams if not t.players]
    if empty:
        msg = f"Teams without players: {', '.join(empty)}"
        raise TournamentRuleError(msg)
    games = generate_fixtures(match.id, match.teams, match.match_type)
    match.games = games
    match.goals = []
    match.status = MatchStatus.OPEN
    logger.info("match_published match=%s games=%d", match.id, len(games))
    return games


def cancel_match(match: Match) -> None:
    """OPEN -> DRAFT. Destroys every game and goal of the match."""
    _require_status(match, MatchStatus.OPEN)
    logger.warning(
        "match_cancelled match=%s games_dropped=%d goals_dropped=%d",
        match.id,
        len(match.games),
        len(match.goals),
    )
    match.games = []
    match.goals = []
    match.status = MatchStatus.DRAFT


# ---------------------------------------------------------------------------
# Game lifecycle
# ---------------------------------------------------------------------------


def start_game(match: Match, game_id: str) -> Game:
    """WAITING -> LIVE, as long as no other game of the match is live."""
    _require_status(match, MatchStatus.OPEN)
    game = get_game(match, game_id)
    if game.status != GameStatus.WAITING:
        msg = f"Game {game.sequence} is {game.status}, not WAITING"
        raise TournamentRuleError(msg)
    live = _live_game(match)
    if live is not None:
        msg = f"Game {live.sequence} is still LIVE"
        raise TournamentRuleError(msg)
    if game.has_tbd:
        msg = f"Game {game.sequence} has not been seeded yet"
        raise TournamentRuleError(msg)
    if game.phase in (GamePhase.FINAL, GamePhase.THIRD_PLACE):
        pending = [g for g in match.games_in_phase(GamePhase.TIEBREAK) if g.status != GameStatus.FINISHED]
        if pending:
            raise TournamentRuleError("The tie-break shootout must be played first")

    game.status = GameStatus.LIVE
    logger.info("game_started match=%s game=%s sequence=%d phase=%s", match.id, game.id, game.sequence, game.phase)
    return game


def end_game(match: Match, game_id: str) -> list[Game]:
    """LIVE -> FINISHED, then seed whatever the result unlocked.

    Returns the finished game followed by any game whose teams were seeded.
    """
    game = get_game(match, game_id)
    _require_live(game)
    if game.is_knockout and game.is_level and not is_decided(game):
        msg = f"Game {game.sequence} is level; the penalty shootout has no winner yet"
        raise TournamentRuleError(msg)

    game.status = GameStatus.FINISHED
    logger.info(
        "game_finished match=%s game=%s score=%d-%d winner=%s",
        match.id,
        game.id,
        game.home_score,
        game.away_score,
        game_winner(game),
    )
    return [game, *advance_bracket(match)]


# ---------------------------------------------------------------------------
# Bracket seeding
# ---------------------------------------------------------------------------


def _phase_complete(match: Match, phase: GamePhase) -> bool:
    games = match.games_in_phase(phase)
    return bool(games) and all(g.status == GameStatus.FINISHED for g in games)


def _seed(game: Game, home: str, away: str) -> bool:
    if (game.home_team_id, game.away_team_id) == (home, away):
        return False
    game.home_team_id = home
    game.away_team_id = away
    return True


def knockout_order(match: Match) -> list[str]:
    """Team ids ordered for FINAL/THIRD_PLACE seeding.

    Combined PHASE_1 + PHASE_2 standings, with 2nd and 3rd swapped when the
    3rd-placed team won the tie-break shootout.
    """
    order = [s.team_id for s in compute_standings(match.teams, match.games)]
    tiebreak = next(
        (g for g in match.games_in_phase(GamePhase.TIEBREAK) if g.status == GameStatus.FINISHED),
        None,
    )
    if tiebreak is not None and len(order) >= 3 and game_winner(tiebreak) == order[2]:
        order[1], order[2] = order[2], order[1]
    return order


def advance_bracket(match: Match) -> list[Game]:
    """Write team ids into placeholder games whose previous phase is complete.

    PHASE_1 done: PHASE_2 becomes 1st vs 4th and 2nd vs 3rd.
    PHASE_2 done: FINAL is 1st vs 2nd, THIRD_PLACE is 3rd vs 4th.
    A finished tie-break re-seeds FINAL/THIRD_PLACE while both still wait.
    Returns the games that changed.
    """
    if match.match_type is not MatchType.QUADRANGULAR:
        return []

    changed: list[Game] = []
    phase_2 = match.games_in_phase(GamePhase.PHASE_2)
    if _phase_complete(match, GamePhase.PHASE_1) and any(g.has_tbd for g in phase_2):
        order = [s.team_id for s in compute_standings(match.teams, match.games, [GamePhase.PHASE_1])]
        pairs = [(order[0], order[3]), (order[1], order[2])]
        for game, (home, away) in zip(sorted(phase_2, key=lambda g: g.sequence), pairs, strict=False):
            if _seed(game, home, away):
                changed.append(game)
        logger.info("bracket_seeded match=%s phase=%s order=%s", match.id, GamePhase.PHASE_2, order)

    finals = match.games_in_phase(GamePhase.FINAL) + match.games_in_phase(GamePhase.THIRD_PLACE)
    if _phase_complete(match, GamePhase.PHASE_2) and finals:
        placeholders = any(g.has_tbd for g in finals)
        reseed = _phase_complete(match, GamePhase.TIEBREAK) and all(
            g.status == GameStatus.WAITING for g in finals
        )
        if placeholders or reseed:
            order = knockout_order(match)
            for game in finals:
                if game.phase == GamePhase.FINAL:
                    seeded = _seed(game, order[0], order[1])
                else:
                    seeded = _seed(game, order[2], order[3])
                if seeded:
                    changed.append(game)
            logger.info("bracket_seeded match=%s phase=%s order=%s", match.id, GamePhase.FINAL, order)

    return changed


def create_tiebreak_game(match: Match) -> Game:
    """Add a penalty-only game between 2nd and 3rd when they are level on points."""
    _require_status(match, MatchStatus.OPEN)
    if match.match_type is not MatchType.QUADRANGULAR:
        raise TournamentRuleError("Tie-breaks only exist in a Quadrangular")
    if not _phase_complete(match, GamePhase.PHASE_2):
        raise TournamentRuleError("Phase 2 is not finished")
    if match.games_in_phase(GamePhase.TIEBREAK):
        raise TournamentRuleError("A tie-break game already exists")
    finals = match.games_in_phase(GamePhase.FINAL) + match.games_in_phase(GamePhase.THIRD_PLACE)
    if any(g.status != GameStatus.WAITING for g in finals):
        raise TournamentRuleError("The knockout games have already started")

    standings = compute_standings(match.teams, match.games)
    second, third = standings[1], standings[2]
    if second.points != third.points:
        msg = f"{second.team_name} and {third.team_name} are not tied on points"
        raise TournamentRuleError(msg)

    game = Game(
        id=str(uuid.uuid4()),
        match_id=match.id,
        home_team_id=second.team_id,
        away_team_id=third.team_id,
        phase=GamePhase.TIEBREAK,
        sequence=max((g.sequence for g in match.games), default=0) + 1,
    )
    match.games.append(game)
    logger.info("tiebreak_created match=%s home=%s away=%s", match.id, second.team_id, third.team_id)
    return game


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def _check_attribution(team: Team, scorer_id: str | None, assist_id: str | None) -> None:
    roster = set(team.player_ids)
    if scorer_id is not None and scorer_id not in roster:
        msg = f"Scorer {scorer_id} does not play for {team.name}"
        raise TournamentRuleError(msg)
    if assist_id is not None and assist_id not in roster:
        msg = f"Assist {assist_id} does not play for {team.name}"
        raise TournamentRuleError(msg)
    if scorer_id is not None and scorer_id == assist_id:
        raise TournamentRuleError("A player cannot assist their own goal")


def score_goal(
    match: Match,
    game_id: str,
    team_id: str,
    scorer_id: str | None = None,
    assist_id: str | None = None,
    minute: int | None = None,
) -> tuple[Game, Goal]:
    """Record a goal and bump the scoring side's score."""
    game = get_game(match, game_id)
    _require_live(game)
    if not game.involves(team_id):
        msg = f"Team {team_id} is not playing game {game.sequence}"
        raise TournamentRuleError(msg)
    if game.phase == GamePhase.TIEBREAK:
        raise TournamentRuleError("Tie-break games are decided on penalties only")
    if game.penalty_shootout is not None:
        raise TournamentRuleError("Normal time is over; the shootout has started")
    _check_attribution(get_team(match, team_id), scorer_id, assist_id)

    goal = Goal(
        id=str(uuid.uuid4()),
        game_id=game.id,
        team_id=team_id,
        scorer_id=scorer_id,
        assist_id=assist_id,
        minute=minute,
    )
    match.goals.append(goal)
    if team_id == game.home_team_id:
        game.home_score += 1
    else:
        game.away_score += 1
    logger.info(
        "goal_scored match=%s game=%s team=%s scorer=%s score=%d-%d",
        match.id,
        game.id,
        team_id,
        scorer_id,
        game.home_score,
        game.away_score,
    )
    return game, goal


def update_goal(match: Match, goal_id: str, scorer_id: str | None, assist_id: str | None) -> Goal:
    """Fix the attribution of an existing goal. Scores are untouched."""
    _require_status(match, MatchStatus.OPEN)
    goal = get_goal(match, goal_id)
    _check_attribution(get_team(match, goal.team_id), scorer_id, assist_id)
    goal.scorer_id = scorer_id
    goal.assist_id = assist_id
    return goal


# ---------------------------------------------------------------------------
# Penalty shootout
# ---------------------------------------------------------------------------


def _require_shootout_allowed(game: Game) -> None:
    _require_live(game)
    if not game.is_knockout:
        msg = f"Game {game.sequence} is not a knockout game"
        raise TournamentRuleError(msg)
    if not game.is_level:
        msg = f"Game {game.sequence} is not level"
        raise TournamentRuleError(msg)


def start_penalty_shootout(match: Match, game_id: str) -> Game:
    game = get_game(match, game_id)
    _require_shootout_allowed(game)
    if game.penalty_shootout is None:
        game.penalty_shootout = PenaltyShootout()
        logger.info("shootout_started match=%s game=%s", match.id, game.id)
    return game


def register_penalty(
    match: Match,
    game_id: str,
    is_goal: bool,
    team_id: str | None = None,
    kicker_id: str | None = None,
) -> Game:
    """Append the next kick. The kicking side is implied by strict alternation."""
    game = get_game(match, game_id)
    _require_shootout_allowed(game)
    if is_decided(game):
        raise TournamentRuleError("The shootout is already decided")
    expected = expected_kicker(game)
    if team_id is not None and team_id != expected:
        msg = f"Team {expected} takes this kick, not {team_id}"
        raise TournamentRuleError(msg)

    if game.penalty_shootout is None:
        game.penalty_shootout = PenaltyShootout()
    shootout = game.penalty_shootout
    shootout.history.append(
        PenaltyKick(team_id=expected, is_goal=is_goal, round=len(shootout.history) + 1, kicker_id=kicker_id)
    )
    if is_goal:
        if expected == game.home_team_id:
            shootout.home_score += 1
        else:
            shootout.away_score += 1
    logger.info(
        "penalty_registered match=%s game=%s team=%s goal=%s shootout=%d-%d",
        match.id,
        game.id,
        expected,
        is_goal,
        shootout.home_score,
        shootout.away_score,
    )
    return game


def undo_last_penalty(match: Match, game_id: str) -> Game:
    game = get_game(match, game_id)
    _require_live(game)
    shootout = game.penalty_shootout
    if shootout is None or not shootout.history:
        raise TournamentRuleError("No penalty to undo")
    kick = shootout.history.pop()
    if kick.is_goal:
        if kick.team_id == game.home_team_id:
            shootout.home_score = max(0, shootout.home_score - 1)
        else:
            shootout.away_score = max(0, shootout.away_score - 1)
    return game


# ---------------------------------------------------------------------------
# Finishing the event
# ---------------------------------------------------------------------------


class MatchSettlement(BaseModel):
    """Outcome of finishing a match: placements and per-player rating deltas."""

    champion_team_id: str
    last_place_team_id: str
    standings: list[Standing]
    player_stats: dict[str, PlayerMatchStats] = Field(default_factory=dict)
    deltas: dict[str, Accumulators] = Field(default_factory=dict)


def player_match_stats(match: Match, team: Team, player_id: str) -> PlayerMatchStats:
    """Aggregate of every finished game the player's team played.

    Tie-break shootouts are not counted as games played.
    """
    stats = PlayerMatchStats()
    for game in match.games:
        if game.status != GameStatus.FINISHED or game.phase == GamePhase.TIEBREAK:
            continue
        if not game.involves(team.id):
            continue
        conceded = game.away_score if team.id == game.home_team_id else game.home_score
        stats.matches += 1
        stats.goals_conceded += conceded
        if conceded == 0:
            stats.clean_sheets += 1
        winner = game_winner(game)
        if winner == team.id:
            stats.wins += 1
        elif winner is None:
            stats.draws += 1
        else:
            stats.losses += 1

    finished = {g.id for g in match.games if g.status == GameStatus.FINISHED}
    for goal in match.goals:
        if goal.game_id not in finished:
            continue
        if goal.scorer_id == player_id:
            stats.goals += 1
        if goal.assist_id == player_id:
            stats.assists += 1
    return stats


def finish_match(match: Match) -> MatchSettlement:
    """OPEN -> FINISHED. Ranks the teams and computes every player's deltas.

    The champion is the leader of the PHASE_1/PHASE_2 standings, even in a
    Quadrangular where the final could crown someone else.
    """
    _require_status(match, MatchStatus.OPEN)
    live = _live_game(match)
    if live is not None:
        msg = f"Game {live.sequence} is still LIVE"
        raise TournamentRuleError(msg)
    played = [
        g
        for g in match.games
        if g.status == GameStatus.FINISHED and g.phase in (GamePhase.PHASE_1, GamePhase.PHASE_2)
    ]
    if not played:
        msg = "Cannot finish a match before any PHASE_1 or PHASE_2 game is played"
        raise TournamentRuleError(msg)

    standings = compute_standings(match.teams, match.games)
    champion = standings[0].team_id
    last_place = standings[-1].team_id
    settlement = MatchSettlement(
        champion_team_id=champion,
        last_place_team_id=last_place,
        standings=standings,
    )

    for team in match.teams:
        for player in team.players:
            stats = player_match_stats(match, team, player.id)
            settlement.player_stats[player.id] = stats
            settlement.deltas[player.id] = compute_match_deltas(
                player.position,
                stats,
                is_champion=team.id == champion,
                is_last_place=team.id == last_place,
            )

    match.status = MatchStatus.FINISHED
    logger.info(
        "match_finished match=%s champion=%s last_place=%s players=%d",
        match.id,
        champion,
        last_place,
        len(settlement.deltas),
    )
    return settlement


def champion_name(match: Match) -> str | None:
    """Display name of the event winner.

    Quadrangulars use the final's result, shootout included, once it is
    finished. Everything else falls back to the standings leader.
    """
    if not match.teams:
        return None
    names = {t.id: t.name for t in match.teams}
    if match.match_type is MatchType.QUADRANGULAR:
        final = next(
            (g for g in match.games_in_phase(GamePhase.FINAL) if g.status == GameStatus.FINISHED),
            None,
        )
        if final is not None:
            winner = game_winner(final)
            if winner is not None and winner != TBD:
                return names.get(winner)
    standings = compute_standings(match.teams, match.games)
    return standings[0].team_name
