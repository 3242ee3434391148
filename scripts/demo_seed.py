"""Seed a pelada roster and draft a match for demo purposes.

Usage:
    python scripts/demo_seed.py seed [ROSTER.yaml]   # Import a roster (demo roster if omitted)
    python scripts/demo_seed.py export ROSTER.yaml   # Write the generated demo roster to YAML
    python scripts/demo_seed.py draft [TYPE]         # Balance everyone into a Triangular/Quadrangular draft
    python scripts/demo_seed.py status               # Print players and matches

Uses a local SQLite database (demo_pelada.db).
"""

from __future__ import annotations

import asyncio
import os
import sys
from datetime import date
from pathlib import Path

from pelada.core import matchday, roster
from pelada.core.seeding import generate_demo_roster, import_roster, load_roster_yaml, save_roster_yaml
from pelada.core.standings import compute_standings
from pelada.db.engine import create_engine, create_tables, get_session
from pelada.db.repository import Repository
from pelada.models.match import MatchType

DEMO_DB = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///demo_pelada.db")


async def seed(path: str | None = None):
    """Import the roster into the demo database."""
    config = load_roster_yaml(Path(path)) if path else generate_demo_roster()
    engine = create_engine(DEMO_DB)
    await create_tables(engine)

    async with get_session(engine) as session:
        repo = Repository(session)
        ids = await import_roster(repo, config)
        print(f"Roster seeded: {config.name}, {len(ids)} players")

    await engine.dispose()


def export(path: str):
    save_roster_yaml(generate_demo_roster(), Path(path))
    print(f"Demo roster written to {path}")


async def draft(match_type: MatchType = MatchType.QUADRANGULAR):
    """Balance every registered player into a new draft match."""
    engine = create_engine(DEMO_DB)
    async with get_session(engine) as session:
        repo = Repository(session)
        players = await roster.list_players(repo)
        if not players:
            print("No players found. Run 'seed' first.")
            return

        match = await matchday.create_draft(
            repo, [p.id for p in players], match_type, date.today(), "Demo pitch"
        )
        print(f"Draft created: {match.id} ({match.match_type}, {len(players)} players)")
        for team in match.teams:
            print(f"  {team.name}: avg {team.avg_ovr} | total {team.total_ovr}")
            for p in team.players:
                print(f"    {p.position or '-':<11} {p.initial_ovr:>3}  {p.name}")

    await engine.dispose()


async def status():
    """Print the roster and every match with its standings."""
    engine = create_engine(DEMO_DB)
    async with get_session(engine) as session:
        repo = Repository(session)
        players = await roster.list_players(repo)
        print(f"Players: {len(players)}")
        print(f"{'Name':<20} {'Pos':<11} {'OVR':>4}  {'PAC':>3} {'SHO':>3} {'PAS':>3} {'DEF':>3}")
        print("-" * 55)
        for p in players:
            a = p.attributes
            print(
                f"{p.name:<20} {p.position or '-':<11} {p.initial_ovr:>4}  "
                f"{a.pace:>3} {a.shooting:>3} {a.passing:>3} {a.defending:>3}"
            )

        for match in await matchday.list_matches(repo):
            print(f"\n{match.date} {match.match_type} [{match.status}] {match.id}")
            for s in compute_standings(match.teams, match.games):
                print(f"  {s.team_name:<10} P{s.played:>2} {s.points:>3} pts  GD {s.goal_diff:+d}")

    await engine.dispose()


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return

    cmd = sys.argv[1]
    if cmd == "seed":
        asyncio.run(seed(sys.argv[2] if len(sys.argv) > 2 else None))
    elif cmd == "export":
        if len(sys.argv) < 3:
            print("Usage: demo_seed.py export ROSTER.yaml")
            return
        export(sys.argv[2])
    elif cmd == "draft":
        match_type = MatchType(sys.argv[2]) if len(sys.argv) > 2 else MatchType.QUADRANGULAR
        asyncio.run(draft(match_type))
    elif cmd == "status":
        asyncio.run(status())
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)


if __name__ == "__main__":
    main()
