"""Tests for roster seeding: demo roster, YAML round-trip, import."""

import tempfile
from pathlib import Path

from pelada.core.ratings import compute_ovr
from pelada.core.roster import list_players
from pelada.core.seeding import (
    PlayerSeed,
    RosterConfig,
    generate_demo_roster,
    import_roster,
    load_roster_yaml,
    save_roster_yaml,
)
from pelada.db.repository import Repository
from pelada.models.player import PlayerAttributes, Position


class TestDemoRoster:
    def test_size_and_keepers(self):
        config = generate_demo_roster(num_players=20, goalkeepers=4)
        assert len(config.players) == 20
        keepers = [p for p in config.players if p.position == Position.GOALKEEPER]
        assert len(keepers) == 4

    def test_every_position_present(self):
        positions = {p.position for p in generate_demo_roster().players}
        assert positions == set(Position)

    def test_ovr_range(self):
        for seed in generate_demo_roster(num_players=24).players:
            assert 55 <= seed.ovr <= 88, f"{seed.name} has {seed.ovr}"

    def test_deterministic(self):
        assert generate_demo_roster(seed=7) == generate_demo_roster(seed=7)
        assert generate_demo_roster(seed=7) != generate_demo_roster(seed=8)

    def test_unique_names(self):
        names = [p.name for p in generate_demo_roster(num_players=30).players]
        assert len(set(names)) == 30


class TestYAMLRoundTrip:
    def test_save_and_load(self):
        config = generate_demo_roster(num_players=6, goalkeepers=1)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "roster.yaml"
            save_roster_yaml(config, path)
            assert path.exists()
            loaded = load_roster_yaml(path)
        assert loaded == config

    def test_hand_written_roster(self, tmp_path: Path):
        path = tmp_path / "quinta.yaml"
        path.write_text(
            "name: Pelada de Quinta\n"
            "players:\n"
            "  - name: Caio\n"
            "    position: Forward\n"
            "    ovr: 80\n"
            "  - name: Novato\n"
        )
        config = load_roster_yaml(path)
        assert config.name == "Pelada de Quinta"
        assert config.players[0].position == Position.FORWARD
        assert config.players[1].ovr == 60
        assert config.players[1].position is None

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_roster_yaml(path) == RosterConfig()


class TestImportRoster:
    async def test_positions_get_attributes(self, repo: Repository):
        config = RosterConfig(
            players=[
                PlayerSeed(name="Caio", position=Position.FORWARD, ovr=80),
                PlayerSeed(name="Novato", ovr=58),
                PlayerSeed(
                    name="Paredão",
                    position=Position.GOALKEEPER,
                    attributes=PlayerAttributes(pace=60, shooting=40, passing=60, defending=90),
                ),
            ]
        )
        ids = await import_roster(repo, config)
        assert len(ids) == 3

        players = {p.name: p for p in await list_players(repo)}
        caio = players["Caio"]
        assert not caio.needs_onboarding
        assert caio.initial_ovr == compute_ovr(Position.FORWARD, caio.attributes)
        assert abs(caio.initial_ovr - 80) <= 1

        assert players["Novato"].needs_onboarding
        assert players["Novato"].initial_ovr == 58
        assert players["Paredão"].initial_ovr == 77

    async def test_demo_roster_imports(self, repo: Repository):
        ids = await import_roster(repo, generate_demo_roster(num_players=12, goalkeepers=2))
        assert len(set(ids)) == 12
        players = await list_players(repo)
        assert all(not p.needs_onboarding for p in players)
