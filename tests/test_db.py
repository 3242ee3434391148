"""Tests for database layer: engine, ORM models, repository round-trips."""

from datetime import UTC, date, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from pelada.core.evolution import EvolutionResult
from pelada.db.engine import create_engine, create_session_factory, create_tables, get_session
from pelada.db.repository import Repository
from pelada.models.match import Game, GamePhase, GameStatus, Goal, PenaltyKick, PenaltyShootout
from pelada.models.player import OvrHistoryEntry, PlayerAttributes


class TestTableCreation:
    async def test_all_tables_created(self, engine: AsyncEngine):
        async with engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: sync_conn.dialect.get_table_names(sync_conn)
            )
        expected = {
            "players",
            "matches",
            "teams",
            "team_players",
            "games",
            "goals",
            "hall_of_fame",
            "player_presets",
        }
        assert expected.issubset(set(tables))


class TestPlayers:
    async def test_create_and_retrieve(self, repo: Repository):
        row = await repo.create_player(
            name="Caio",
            email="caio@pelada.local",
            position="Forward",
            play_style="Finisher",
            initial_ovr=74,
            attributes={"pace": 80, "shooting": 78, "passing": 65, "defending": 40},
            shirt_number=9,
        )
        retrieved = await repo.get_player(row.id)
        assert retrieved is not None
        assert retrieved.name == "Caio"
        assert retrieved.position == "Forward"
        assert retrieved.attributes["shooting"] == 78
        assert retrieved.accumulators == {"pace": 0.0, "shooting": 0.0, "passing": 0.0, "defending": 0.0}
        assert retrieved.ovr_history == []

    async def test_new_player_has_empty_attributes(self, repo: Repository):
        row = await repo.create_player(name="Novato")
        assert row.attributes == {"pace": 0, "shooting": 0, "passing": 0, "defending": 0}
        assert row.initial_ovr == 50

    async def test_missing_player(self, repo: Repository):
        assert await repo.get_player("nope") is None
        assert await repo.update_player("nope", name="x") is None

    async def test_roster_sorted_by_name(self, repo: Repository):
        for name in ("Zeca", "Bruno", "Marcos"):
            await repo.create_player(name=name)
        assert [p.name for p in await repo.get_all_players()] == ["Bruno", "Marcos", "Zeca"]

    async def test_players_by_ids(self, repo: Repository):
        a = await repo.create_player(name="A")
        await repo.create_player(name="B")
        assert [p.id for p in await repo.get_players_by_ids([a.id, "missing"])] == [a.id]
        assert await repo.get_players_by_ids([]) == []

    async def test_update_player(self, repo: Repository):
        row = await repo.create_player(name="Caio")
        updated = await repo.update_player(row.id, name="Caio Jr", shirt_number=10)
        assert updated.name == "Caio Jr"
        assert updated.shirt_number == 10

    async def test_update_unknown_column_raises(self, repo: Repository):
        row = await repo.create_player(name="Caio")
        with pytest.raises(AttributeError, match="no column"):
            await repo.update_player(row.id, nickname="Cai")

    async def test_add_to_accumulators(self, repo: Repository):
        row = await repo.create_player(name="Caio")
        await repo.add_to_accumulators({row.id: {"pace": 0.3, "defending": -0.2}})
        await repo.add_to_accumulators({row.id: {"pace": 0.3}})
        player = await repo.get_player(row.id)
        assert player.accumulators["pace"] == pytest.approx(0.6)
        assert player.accumulators["defending"] == pytest.approx(-0.2)
        assert player.accumulators["shooting"] == 0.0

    async def test_apply_settlements(self, repo: Repository):
        row = await repo.create_player(
            name="Caio",
            initial_ovr=70,
            attributes={"pace": 70, "shooting": 70, "passing": 70, "defending": 70},
        )
        await repo.add_to_accumulators({row.id: {"pace": 8.0}})
        now = datetime(2026, 4, 1, tzinfo=UTC)
        result = EvolutionResult(
            player_id=row.id,
            name="Caio",
            old_ovr=70,
            new_ovr=71,
            raw_ovr=70.5,
            old_attributes=PlayerAttributes(pace=70, shooting=70, passing=70, defending=70),
            new_attributes=PlayerAttributes(pace=72, shooting=70, passing=70, defending=70),
            gains={"pace": 2, "shooting": 0, "passing": 0, "defending": 0},
            history_entry=OvrHistoryEntry(date=now, ovr=71),
        )
        await repo.apply_settlements([result])
        player = await repo.get_player(row.id)
        assert player.initial_ovr == 71
        assert player.attributes["pace"] == 72
        assert player.accumulators["pace"] == 0.0
        assert [entry["ovr"] for entry in player.ovr_history] == [71]

    async def test_grant_achievement_once(self, repo: Repository):
        row = await repo.create_player(name="Caio")
        await repo.grant_achievement(row.id, "special_founder")
        await repo.grant_achievement(row.id, "special_founder")
        player = await repo.get_player(row.id)
        assert player.granted_achievements == ["special_founder"]
        assert await repo.grant_achievement("nope", "special_founder") is None


async def _match_with_teams(repo: Repository) -> tuple[str, list[str], list[str]]:
    players = [await repo.create_player(name=f"P{i}") for i in range(4)]
    match = await repo.create_match(date(2026, 3, 7), "Society do Zé", "Triangular")
    team_a = await repo.create_team(match.id, "Time A", 0, [players[0].id, players[1].id])
    team_b = await repo.create_team(match.id, "Time B", 1, [players[2].id])
    return match.id, [team_a.id, team_b.id], [p.id for p in players]


class TestMatches:
    async def test_create_match_starts_as_draft(self, repo: Repository):
        row = await repo.create_match(date(2026, 3, 7), "Arena", "Quadrangular")
        assert row.status == "DRAFT"
        assert row.location == "Arena"

    async def test_get_match_loads_nested(self, repo: Repository):
        match_id, team_ids, player_ids = await _match_with_teams(repo)
        row = await repo.get_match(match_id)
        assert {t.id for t in row.teams} == set(team_ids)
        team_a = next(t for t in row.teams if t.name == "Time A")
        assert {m.player.id for m in team_a.members} == {player_ids[0], player_ids[1]}
        assert row.games == []
        assert row.goals == []

    async def test_team_membership_changes(self, repo: Repository):
        match_id, team_ids, player_ids = await _match_with_teams(repo)
        await repo.add_team_player(team_ids[1], player_ids[3])
        await repo.remove_team_player(team_ids[0], player_ids[0])
        row = await repo.get_match(match_id)
        members = {t.name: {m.player_id for m in t.members} for t in row.teams}
        assert members == {"Time A": {player_ids[1]}, "Time B": {player_ids[2], player_ids[3]}}

    async def test_status_and_finished_at(self, repo: Repository):
        match_id, _, _ = await _match_with_teams(repo)
        await repo.update_match_status(match_id, "FINISHED")
        row = await repo.get_match(match_id)
        assert row.status == "FINISHED"
        assert row.finished_at is not None
        await repo.update_match_status(match_id, "OPEN")
        assert (await repo.get_match(match_id)).finished_at is None

    async def test_list_by_status(self, repo: Repository):
        match_id, _, _ = await _match_with_teams(repo)
        await repo.create_match(date(2026, 3, 14), "Arena", "Triangular")
        await repo.update_match_status(match_id, "OPEN")
        assert [m.id for m in await repo.get_all_matches("OPEN")] == [match_id]
        dates = [m.date for m in await repo.get_all_matches()]
        assert dates == [date(2026, 3, 14), date(2026, 3, 7)]

    async def test_champion_photo(self, repo: Repository):
        match_id, _, _ = await _match_with_teams(repo)
        await repo.update_champion_photo(match_id, "https://example.org/campeoes.jpg")
        assert (await repo.get_match(match_id)).champion_photo_url == "https://example.org/campeoes.jpg"

    async def test_delete_match(self, repo: Repository):
        match_id, team_ids, _ = await _match_with_teams(repo)
        await repo.create_games(
            [Game(id="g1", match_id=match_id, home_team_id=team_ids[0], away_team_id=team_ids[1], sequence=1)]
        )
        await repo.delete_match(match_id)
        assert await repo.get_match(match_id) is None
        assert await repo.get_all_matches() == []


class TestGamesAndGoals:
    async def test_game_round_trip_with_shootout(self, repo: Repository):
        match_id, team_ids, _ = await _match_with_teams(repo)
        game = Game(
            id="g1",
            match_id=match_id,
            home_team_id=team_ids[0],
            away_team_id=team_ids[1],
            sequence=1,
            phase=GamePhase.FINAL,
        )
        await repo.create_games([game])

        game.status = GameStatus.LIVE
        game.home_score = game.away_score = 1
        game.penalty_shootout = PenaltyShootout(
            home_score=1,
            history=[PenaltyKick(team_id=team_ids[0], is_goal=True, round=1)],
        )
        await repo.save_game(game)

        row = await repo.get_match(match_id)
        stored = row.games[0]
        assert stored.status == "LIVE"
        assert (stored.home_score, stored.away_score) == (1, 1)
        assert stored.penalty_shootout["history"][0]["is_goal"] is True

    async def test_save_unknown_game(self, repo: Repository):
        assert await repo.save_game(Game(id="nope", match_id="m", sequence=1)) is None

    async def test_goals(self, repo: Repository):
        match_id, team_ids, player_ids = await _match_with_teams(repo)
        await repo.create_games(
            [Game(id="g1", match_id=match_id, home_team_id=team_ids[0], away_team_id=team_ids[1], sequence=1)]
        )
        goal = Goal(id="goal1", game_id="g1", team_id=team_ids[0], scorer_id=player_ids[0], minute=12)
        await repo.create_goal(match_id, goal)
        goal.scorer_id, goal.assist_id = player_ids[1], player_ids[0]
        await repo.save_goal(goal)

        row = await repo.get_match(match_id)
        stored = row.goals[0]
        assert (stored.scorer_id, stored.assist_id, stored.minute) == (player_ids[1], player_ids[0], 12)

    async def test_delete_match_games(self, repo: Repository):
        match_id, team_ids, player_ids = await _match_with_teams(repo)
        await repo.create_games(
            [Game(id="g1", match_id=match_id, home_team_id=team_ids[0], away_team_id=team_ids[1], sequence=1)]
        )
        await repo.create_goal(match_id, Goal(id="goal1", game_id="g1", team_id=team_ids[0]))
        await repo.delete_match_games(match_id)
        row = await repo.get_match(match_id)
        assert row.games == []
        assert row.goals == []
        assert len(row.teams) == 2


class TestHallOfFame:
    async def test_replace_month(self, repo: Repository):
        a = await repo.create_player(name="A")
        b = await repo.create_player(name="B")
        await repo.replace_month_champions("2026-03", [("goals", a.id, 5), ("wins", a.id, 4)])
        await repo.replace_month_champions("2026-03", [("goals", b.id, 6)])
        await repo.replace_month_champions("2026-02", [("assists", a.id, 2)])

        march = await repo.get_hall_of_fame("2026-03")
        assert [(r.category, r.player_id, r.value) for r in march] == [("goals", b.id, 6)]
        assert [r.month_key for r in await repo.get_hall_of_fame()] == ["2026-03", "2026-02"]


class TestPresets:
    async def test_create_list_delete(self, repo: Repository):
        a = await repo.create_player(name="A")
        await repo.create_preset("Quinta", [a.id])
        preset = await repo.create_preset("Domingo", [a.id])
        assert [p.name for p in await repo.get_presets()] == ["Domingo", "Quinta"]

        assert await repo.delete_preset(preset.id) is True
        assert await repo.delete_preset(preset.id) is False
        assert [p.name for p in await repo.get_presets()] == ["Quinta"]


class TestSessionRollback:
    async def test_error_rolls_back(self, engine: AsyncEngine):
        with pytest.raises(RuntimeError):
            async with get_session(engine) as session:
                await Repository(session).create_player(name="Ghost")
                raise RuntimeError("boom")

        async with get_session(engine) as session:
            assert await Repository(session).get_all_players() == []


class TestSessionFactory:
    async def test_each_engine_gets_its_own_bind(self):
        for _ in range(3):
            engine = create_engine("sqlite+aiosqlite:///:memory:")
            await create_tables(engine)
            async with create_session_factory(engine)() as session:
                assert session.bind is engine
                assert await Repository(session).get_all_players() == []
            await engine.dispose()
            del engine
