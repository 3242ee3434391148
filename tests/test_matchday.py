"""Matchday flows against the database: draft, publish, play, finish."""

from datetime import date

import pytest

from pelada.core import matchday
from pelada.core.errors import EntityNotFound, TournamentRuleError
from pelada.db.repository import Repository
from pelada.models.constants import TBD
from pelada.models.match import GamePhase, GameStatus, Match, MatchStatus, MatchType
from pelada.models.player import Position

MATCH_DATE = date(2026, 3, 7)


async def _players(repo: Repository, count: int) -> list[str]:
    ids = []
    for i in range(count):
        row = await repo.create_player(
            name=f"Jogador {i:02d}",
            position=Position.MIDFIELDER if i % 2 else Position.FORWARD,
            initial_ovr=70,
            attributes={"pace": 70, "shooting": 70, "passing": 70, "defending": 70},
        )
        ids.append(row.id)
    return ids


async def _open_match(repo: Repository, match_type: MatchType = MatchType.QUADRANGULAR) -> Match:
    ids = await _players(repo, 2 * match_type.team_count)
    match = await matchday.create_draft(repo, ids, match_type, MATCH_DATE, "Society do Zé")
    return await matchday.publish_match(repo, match.id)


async def _play_phase(repo: Repository, match: Match, phase: GamePhase) -> Match:
    """Play every game of ``phase``; the home side wins 1-0."""
    for game in match.games_in_phase(phase):
        scorer = next(t.players[0].id for t in match.teams if t.id == game.home_team_id)
        await matchday.start_game(repo, match.id, game.id)
        await matchday.score_goal(repo, match.id, game.id, game.home_team_id, scorer, minute=10)
        await matchday.end_game(repo, match.id, game.id)
    return await matchday.load_match(repo, match.id)


class TestDraft:
    async def test_teams_persisted(self, repo: Repository):
        ids = await _players(repo, 6)
        match = await matchday.create_draft(repo, ids, MatchType.TRIANGULAR, MATCH_DATE, "Arena")
        assert match.status == MatchStatus.DRAFT
        assert [t.name for t in match.teams] == ["Time A", "Time B", "Time C"]
        assert sorted(p for t in match.teams for p in t.player_ids) == sorted(ids)
        assert all(t.total_ovr == 140 for t in match.teams)

    async def test_unknown_player(self, repo: Repository):
        ids = await _players(repo, 3)
        with pytest.raises(EntityNotFound, match="Player ghost not found"):
            await matchday.create_draft(repo, [*ids, "ghost"], MatchType.TRIANGULAR, MATCH_DATE)

    async def test_too_few_players(self, repo: Repository):
        ids = await _players(repo, 3)
        with pytest.raises(TournamentRuleError, match="at least 4"):
            await matchday.create_draft(repo, ids, MatchType.QUADRANGULAR, MATCH_DATE)

    async def test_edit_teams(self, repo: Repository):
        ids = await _players(repo, 3)
        match = await matchday.create_draft(repo, ids, MatchType.TRIANGULAR, MATCH_DATE)
        extra = (await repo.create_player(name="Reserva", initial_ovr=60)).id
        team = match.teams[0]

        updated = await matchday.add_player_to_team(repo, match.id, team.id, extra)
        assert extra in updated.player_ids
        reloaded = await matchday.load_match(repo, match.id)
        assert extra in reloaded.teams[0].player_ids

        with pytest.raises(TournamentRuleError, match="already in"):
            await matchday.add_player_to_team(repo, match.id, match.teams[1].id, extra)

        await matchday.remove_player_from_team(repo, match.id, team.id, extra)
        reloaded = await matchday.load_match(repo, match.id)
        assert extra not in reloaded.teams[0].player_ids

    async def test_unknown_match(self, repo: Repository):
        with pytest.raises(EntityNotFound, match="Match nope not found"):
            await matchday.load_match(repo, "nope")


class TestPublishAndCancel:
    async def test_publish_stores_fixtures(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        reloaded = await matchday.load_match(repo, match.id)
        assert reloaded.status == MatchStatus.OPEN
        assert [g.sequence for g in reloaded.games] == [1, 2, 3, 4, 5, 6]

    async def test_cancel_drops_games_and_goals(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        game = match.games[0]
        await matchday.start_game(repo, match.id, game.id)
        await matchday.score_goal(repo, match.id, game.id, game.home_team_id)

        await matchday.cancel_match(repo, match.id)
        reloaded = await matchday.load_match(repo, match.id)
        assert reloaded.status == MatchStatus.DRAFT
        assert reloaded.games == []
        assert reloaded.goals == []
        assert len(reloaded.teams) == 3

        republished = await matchday.publish_match(repo, match.id)
        assert len(republished.games) == 6


class TestGames:
    async def test_goal_and_attribution_fix(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        game = match.games[0]
        home = next(t for t in match.teams if t.id == game.home_team_id)
        first, second = home.player_ids

        await matchday.start_game(repo, match.id, game.id)
        goal = await matchday.score_goal(repo, match.id, game.id, home.id, first, second, 7)
        await matchday.update_goal(repo, match.id, goal.id, second, first)

        reloaded = await matchday.load_match(repo, match.id)
        assert reloaded.games[0].home_score == 1
        assert reloaded.games[0].status == GameStatus.LIVE
        stored = reloaded.goals[0]
        assert (stored.scorer_id, stored.assist_id, stored.minute) == (second, first, 7)

    async def test_rejected_action_changes_nothing(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        first, second = match.games[0], match.games[1]
        await matchday.start_game(repo, match.id, first.id)
        with pytest.raises(TournamentRuleError, match="still LIVE"):
            await matchday.start_game(repo, match.id, second.id)
        reloaded = await matchday.load_match(repo, match.id)
        assert reloaded.games[1].status == GameStatus.WAITING

    async def test_standings(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        await _play_phase(repo, match, GamePhase.PHASE_1)
        standings = await matchday.get_standings(repo, match.id)
        assert [s.points for s in standings] == [6, 6, 6]
        assert all(s.played == 4 for s in standings)


class TestQuadrangularFlow:
    async def test_bracket_seeded_in_database(self, repo: Repository):
        match = await _open_match(repo)
        match = await _play_phase(repo, match, GamePhase.PHASE_1)
        assert not any(g.has_tbd for g in match.games_in_phase(GamePhase.PHASE_2))
        assert all(g.has_tbd for g in match.games_in_phase(GamePhase.FINAL))

        match = await _play_phase(repo, match, GamePhase.PHASE_2)
        final = match.games_in_phase(GamePhase.FINAL)[0]
        third = match.games_in_phase(GamePhase.THIRD_PLACE)[0]
        assert TBD not in (final.home_team_id, final.away_team_id, third.home_team_id, third.away_team_id)
        teams = {final.home_team_id, final.away_team_id, third.home_team_id, third.away_team_id}
        assert len(teams) == 4

    async def test_final_decided_on_penalties(self, repo: Repository):
        match = await _open_match(repo)
        match = await _play_phase(repo, match, GamePhase.PHASE_1)
        match = await _play_phase(repo, match, GamePhase.PHASE_2)
        final = match.games_in_phase(GamePhase.FINAL)[0]

        await matchday.start_game(repo, match.id, final.id)
        with pytest.raises(TournamentRuleError, match="no winner yet"):
            await matchday.end_game(repo, match.id, final.id)

        await matchday.start_penalty_shootout(repo, match.id, final.id)
        for is_goal in (True, False, True, True):
            await matchday.register_penalty(repo, match.id, final.id, is_goal)
        game = await matchday.undo_last_penalty(repo, match.id, final.id)
        assert len(game.penalty_shootout.history) == 3
        for is_goal in (False, True, False):
            await matchday.register_penalty(repo, match.id, final.id, is_goal)

        changed = await matchday.end_game(repo, match.id, final.id)
        assert changed[0].status == GameStatus.FINISHED
        reloaded = await matchday.load_match(repo, match.id)
        stored = reloaded.games_in_phase(GamePhase.FINAL)[0]
        assert (stored.penalty_shootout.home_score, stored.penalty_shootout.away_score) == (3, 0)
        assert stored.status == GameStatus.FINISHED


class TestFinishMatch:
    async def test_accumulators_updated(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        match = await _play_phase(repo, match, GamePhase.PHASE_1)
        settlement = await matchday.finish_match(repo, match.id)

        reloaded = await matchday.load_match(repo, match.id)
        assert reloaded.status == MatchStatus.FINISHED
        assert set(settlement.deltas) == {p for t in match.teams for p in t.player_ids}
        for player_id, delta in settlement.deltas.items():
            row = await repo.get_player(player_id)
            assert row.accumulators["pace"] == pytest.approx(delta.pace)
            assert row.accumulators["defending"] == pytest.approx(delta.defending)

    async def test_finish_twice_rejected(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        await _play_phase(repo, match, GamePhase.PHASE_1)
        await matchday.finish_match(repo, match.id)
        with pytest.raises(TournamentRuleError, match="FINISHED"):
            await matchday.finish_match(repo, match.id)

    async def test_unplayed_match_leaves_accumulators_alone(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        with pytest.raises(TournamentRuleError, match="before any"):
            await matchday.finish_match(repo, match.id)
        assert (await matchday.load_match(repo, match.id)).status == MatchStatus.OPEN
        for team in match.teams:
            for player_id in team.player_ids:
                row = await repo.get_player(player_id)
                assert set(row.accumulators.values()) == {0.0}


class TestHousekeeping:
    async def test_list_matches(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        assert [m.id for m in await matchday.list_matches(repo)] == [match.id]
        assert await matchday.list_matches(repo, MatchStatus.FINISHED) == []

    async def test_champion_photo(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        await matchday.set_champion_photo(repo, match.id, "https://example.org/campeoes.jpg")
        reloaded = await matchday.load_match(repo, match.id)
        assert reloaded.champion_photo_url == "https://example.org/campeoes.jpg"

    async def test_delete_match(self, repo: Repository):
        match = await _open_match(repo, MatchType.TRIANGULAR)
        await _play_phase(repo, match, GamePhase.PHASE_1)
        await matchday.finish_match(repo, match.id)
        await matchday.delete_match(repo, match.id)
        with pytest.raises(EntityNotFound):
            await matchday.load_match(repo, match.id)
