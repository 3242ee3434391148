"""Tests for the penalty shootout decision rules."""

from pelada.core.penalties import (
    decided_at,
    expected_kicker,
    game_winner,
    is_decided,
    max_kicks,
    shootout_winner,
)
from pelada.models.match import Game, GamePhase, GameStatus, PenaltyKick, PenaltyShootout


def _shootout_game(kicks: list[bool], phase: GamePhase = GamePhase.FINAL) -> Game:
    """A level knockout game whose shootout alternates home/away over ``kicks``."""
    history = []
    home = away = 0
    for index, is_goal in enumerate(kicks):
        team = "H" if index % 2 == 0 else "A"
        history.append(PenaltyKick(team_id=team, is_goal=is_goal, round=index + 1))
        if is_goal and team == "H":
            home += 1
        elif is_goal:
            away += 1
    return Game(
        id="g1",
        match_id="m1",
        home_team_id="H",
        away_team_id="A",
        home_score=1,
        away_score=1,
        status=GameStatus.LIVE,
        phase=phase,
        sequence=10,
        penalty_shootout=PenaltyShootout(home_score=home, away_score=away, history=history),
    )


# Home scores 5 of 5, away misses its first and scores the next 4.
FINAL_SEQUENCE = [True, False, True, True, True, True, True, True, True]


class TestMaxKicks:
    def test_final_has_five(self):
        assert max_kicks(GamePhase.FINAL) == 5

    def test_other_knockouts_have_three(self):
        assert max_kicks(GamePhase.THIRD_PLACE) == 3
        assert max_kicks(GamePhase.TIEBREAK) == 3


class TestExpectedKicker:
    def test_home_first_then_alternates(self):
        assert expected_kicker(_shootout_game([])) == "H"
        assert expected_kicker(_shootout_game([True])) == "A"
        assert expected_kicker(_shootout_game([True, False])) == "H"

    def test_home_kicks_before_shootout_exists(self):
        game = _shootout_game([])
        game.penalty_shootout = None
        assert expected_kicker(game) == "H"


class TestDecided:
    def test_final_decided_on_home_fifth_kick(self):
        game = _shootout_game(FINAL_SEQUENCE)
        assert decided_at(game) == 8
        assert shootout_winner(game) == "H"

    def test_not_decided_one_kick_earlier(self):
        game = _shootout_game(FINAL_SEQUENCE[:8])
        assert not is_decided(game)
        assert shootout_winner(game) is None

    def test_decision_never_reverts(self):
        kicks = [*FINAL_SEQUENCE, False, True, False]
        for length in range(9, len(kicks) + 1):
            assert decided_at(_shootout_game(kicks[:length])) == 8

    def test_early_elimination_in_three_kick_shootout(self):
        game = _shootout_game([True, False, True, False], GamePhase.THIRD_PLACE)
        assert decided_at(game) == 3
        assert shootout_winner(game) == "H"

    def test_level_after_regulation_goes_to_sudden_death(self):
        kicks = [True] * 6
        game = _shootout_game(kicks, GamePhase.TIEBREAK)
        assert not is_decided(game)

        game = _shootout_game([*kicks, False], GamePhase.TIEBREAK)
        assert not is_decided(game)

        game = _shootout_game([*kicks, False, True], GamePhase.TIEBREAK)
        assert decided_at(game) == 7
        assert shootout_winner(game) == "A"

    def test_sudden_death_needs_a_full_pair(self):
        game = _shootout_game([True] * 6 + [True], GamePhase.TIEBREAK)
        assert not is_decided(game)
        game = _shootout_game([True] * 6 + [True, False], GamePhase.TIEBREAK)
        assert shootout_winner(game) == "H"

    def test_no_shootout_is_undecided(self):
        game = _shootout_game([])
        game.penalty_shootout = None
        assert decided_at(game) is None


class TestGameWinner:
    def test_normal_time_winner(self):
        game = _shootout_game([])
        game.home_score = 3
        assert game_winner(game) == "H"
        game.home_score, game.away_score = 0, 2
        assert game_winner(game) == "A"

    def test_draw_without_shootout(self):
        game = _shootout_game([])
        game.penalty_shootout = None
        assert game_winner(game) is None

    def test_level_game_uses_shootout(self):
        assert game_winner(_shootout_game(FINAL_SEQUENCE)) == "H"
