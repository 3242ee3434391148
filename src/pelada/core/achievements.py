"""Career stats and achievements.

Stats are derived from finished matches and the hall of fame. They are never
stored: recomputing from history is cheap at pelada scale. Clean sheets are
credited per game to every player of the team, whatever their position.
That differs on purpose from the rating deltas, which weight clean sheets
by position.

Achievements pair a threshold on one stat with a 0-100 progress value.
Manual achievements have no stat. They unlock only when an administrator
grants them, and they are left out of the progress display.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel

from pelada.core.rankings import HallOfFameEntry
from pelada.core.standings import compute_standings
from pelada.models.match import GamePhase, GameStatus, Match, MatchStatus

if TYPE_CHECKING:
    from pelada.db.repository import Repository

logger = logging.getLogger(__name__)

TRICK_THRESHOLD = 3
CLEAN_STREAK_LENGTH = 3


class PlayerStats(BaseModel):
    total_matches: int = 0
    total_wins: int = 0
    total_goals: int = 0
    total_assists: int = 0
    total_clean_sheets: int = 0
    hat_tricks: int = 0
    assist_tricks: int = 0
    clean_tricks: int = 0
    total_titles: int = 0
    monthly_titles_mvp: int = 0
    monthly_titles_goals: int = 0
    monthly_titles_assists: int = 0
    monthly_titles_defense: int = 0


# Hall of fame category -> PlayerStats field.
MONTHLY_TITLE_FIELDS: dict[str, str] = {
    "wins": "monthly_titles_mvp",
    "goals": "monthly_titles_goals",
    "assists": "monthly_titles_assists",
    "clean_sheets": "monthly_titles_defense",
}


def calculate_player_stats(
    player_id: str,
    matches: list[Match],
    hall_of_fame: list[HallOfFameEntry],
) -> PlayerStats:
    """Cumulative career stats for one player, oldest match first."""
    stats = PlayerStats()
    clean_streak = 0

    finished = sorted((m for m in matches if m.status == MatchStatus.FINISHED), key=lambda m: m.date)
    for match in finished:
        team = match.team_of(player_id)
        if team is None:
            continue

        standings = compute_standings(match.teams, match.games)
        if standings and standings[0].team_id == team.id:
            stats.total_titles += 1

        for game in sorted(match.games, key=lambda g: g.sequence):
            if game.status != GameStatus.FINISHED or game.phase == GamePhase.TIEBREAK:
                continue
            if not game.involves(team.id):
                continue

            stats.total_matches += 1
            is_home = game.home_team_id == team.id
            mine = game.home_score if is_home else game.away_score
            theirs = game.away_score if is_home else game.home_score

            won = mine > theirs
            if mine == theirs and game.penalty_shootout is not None:
                shootout = game.penalty_shootout
                pens_mine = shootout.home_score if is_home else shootout.away_score
                pens_theirs = shootout.away_score if is_home else shootout.home_score
                won = pens_mine > pens_theirs
            if won:
                stats.total_wins += 1

            if theirs == 0:
                stats.total_clean_sheets += 1
                clean_streak += 1
                if clean_streak >= CLEAN_STREAK_LENGTH:
                    stats.clean_tricks += 1
                    clean_streak = 0
            else:
                clean_streak = 0

            goals = sum(1 for g in match.goals if g.game_id == game.id and g.scorer_id == player_id)
            assists = sum(1 for g in match.goals if g.game_id == game.id and g.assist_id == player_id)
            stats.total_goals += goals
            stats.total_assists += assists
            if goals >= TRICK_THRESHOLD:
                stats.hat_tricks += 1
            if assists >= TRICK_THRESHOLD:
                stats.assist_tricks += 1

    for entry in hall_of_fame:
        if entry.player_id != player_id:
            continue
        field = MONTHLY_TITLE_FIELDS.get(entry.category)
        if field is not None:
            setattr(stats, field, getattr(stats, field) + 1)

    return stats


@dataclass(frozen=True)
class Achievement:
    """A badge unlocked when ``stat`` reaches ``target``.

    Attributes:
        id: Stable identifier, also used for manual grants.
        category: Goals, Assists, Defense, Wins, Loyalty or Specials.
        title: Display name.
        description: Human-readable unlock condition.
        level: Bronze, Silver, Emerald or Elite.
        target: Value of ``stat`` that unlocks the badge.
        stat: PlayerStats field, or None for manual-only badges.
    """

    id: str
    category: str
    title: str
    description: str
    level: str
    target: int = 1
    stat: str | None = None

    @property
    def manual_only(self) -> bool:
        return self.stat is None

    def value(self, stats: PlayerStats) -> int:
        return getattr(stats, self.stat) if self.stat else 0

    def condition(self, stats: PlayerStats) -> bool:
        if self.stat is None:
            return False
        return self.value(stats) >= self.target

    def progress(self, stats: PlayerStats) -> float:
        if self.stat is None:
            return 0.0
        return min(100.0, self.value(stats) / self.target * 100)


def _tier(
    prefix: str,
    category: str,
    stat: str,
    tiers: list[tuple[int, str, str, str]],
) -> list[Achievement]:
    return [
        Achievement(
            id=f"{prefix}_{target}",
            category=category,
            title=title,
            description=description,
            level=level,
            target=target,
            stat=stat,
        )
        for target, level, title, description in tiers
    ]


ACHIEVEMENTS: list[Achievement] = [
    Achievement(
        id="special_founder",
        category="Specials",
        title="Founding Member",
        description="Was there from the very first pelada.",
        level="Elite",
    ),
    Achievement(
        id="escolinha_veganinho",
        category="Specials",
        title="Escolinha Veganinho",
        description="5 goals from outside the box with the outside of the foot.",
        level="Elite",
    ),
    *_tier("goal", "Goals", "total_goals", [
        (1, "Bronze", "First Roar", "Score your first goal."),
        (10, "Silver", "Nose for Goal", "Score 10 goals."),
        (50, "Emerald", "Born Finisher", "Reach 50 goals."),
        (100, "Elite", "Box Legend", "The 100th career goal."),
    ]),
    *_tier("hat", "Goals", "hat_tricks", [
        (1, "Silver", "Owner of the Ball", "Score a hat-trick (3 goals in one game)."),
        (10, "Emerald", "Defenders' Nightmare", "10 career hat-tricks."),
        (20, "Elite", "Goal Machine", "20 hat-tricks. Unstoppable."),
    ]),
    *_tier("title_goals", "Goals", "monthly_titles_goals", [
        (1, "Silver", "Golden Boot", "Top the monthly scoring ranking once."),
        (5, "Emerald", "King of the Box", "Top scorer of the month 5 times."),
        (10, "Elite", "Goal Dynasty", "10 monthly scoring titles."),
    ]),
    *_tier("assist", "Assists", "total_assists", [
        (1, "Bronze", "Pass It Here", "Provide your first assist."),
        (10, "Silver", "Waiter", "Set up teammates 10 times."),
        (50, "Emerald", "Maestro", "50 career assists."),
        (100, "Elite", "The Visionary", "100 career assists."),
    ]),
    *_tier("assist_trick", "Assists", "assist_tricks", [
        (1, "Silver", "Silver Tray", "3 assists in a single game."),
        (10, "Emerald", "Scissor Hands", "10 games with 3+ assists."),
        (20, "Elite", "Open Buffet", "20 games serving everyone."),
    ]),
    *_tier("title_assist", "Assists", "monthly_titles_assists", [
        (1, "Silver", "Number 10", "Top the monthly assists ranking once."),
        (5, "Emerald", "King of Assists", "Assists leader for 5 months."),
        (10, "Elite", "The Illusionist", "10 monthly assists titles."),
    ]),
    *_tier("cs", "Defense", "total_clean_sheets", [
        (1, "Bronze", "Padlock", "Finish a game without conceding."),
        (10, "Silver", "Maximum Security", "10 games without conceding."),
        (50, "Emerald", "The Wall", "50 career clean sheets."),
        (100, "Elite", "Impassable", "100 games without conceding."),
    ]),
    Achievement(
        id="cs_streak",
        category="Defense",
        title="Quiet Night",
        description="3 games in a row without conceding.",
        level="Silver",
        target=1,
        stat="clean_tricks",
    ),
    *_tier("clean_trick", "Defense", "clean_tricks", [
        (10, "Emerald", "Iron Back Line", "10 defensive clean streaks."),
        (20, "Elite", "The Unbeatable", "20 perfect defensive streaks."),
    ]),
    *_tier("title_def", "Defense", "monthly_titles_defense", [
        (1, "Silver", "Minister of Defense", "Top the monthly clean sheet ranking once."),
        (5, "Emerald", "Golden Glove", "Best defense for 5 months."),
        (10, "Elite", "The Great Barrier", "10 monthly defense titles."),
    ]),
    *_tier("win", "Wins", "total_wins", [
        (1, "Bronze", "Lucky Boots", "Win your first game."),
        (10, "Silver", "Winner", "10 wins on the board."),
        (50, "Emerald", "Invincible", "50 wins."),
        (100, "Elite", "The Conqueror", "100 wins. Historic."),
    ]),
    *_tier("mvp", "Wins", "monthly_titles_mvp", [
        (1, "Silver", "Player of the Month", "Most wins in a month."),
        (5, "Emerald", "Crowd Favourite", "Player of the month 5 times."),
        (10, "Elite", "Hall of Famer", "Player of the month 10 times."),
    ]),
    *_tier("title_event", "Wins", "total_titles", [
        (5, "Silver", "Serial Champion", "Lift the event trophy 5 times."),
        (10, "Emerald", "Trophy Collector", "10 event titles."),
        (20, "Elite", "Owner of the Cup", "20 titles. The cup has your name on it."),
    ]),
    *_tier("games", "Loyalty", "total_matches", [
        (1, "Bronze", "Debut", "Play your first game."),
        (10, "Silver", "Regular", "10 games played."),
        (50, "Emerald", "Card-Carrying", "50 games played."),
        (100, "Elite", "Club Heritage", "100 games. You are part of the story."),
    ]),
]

ACHIEVEMENTS_BY_ID: dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


class AchievementStatus(BaseModel):
    id: str
    category: str
    title: str
    description: str
    level: str
    target: int
    manual_only: bool
    unlocked: bool
    progress: float


def evaluate_achievements(
    stats: PlayerStats,
    granted_ids: list[str] | set[str],
    achievements: list[Achievement] | None = None,
) -> list[AchievementStatus]:
    """Unlock state and progress of every achievement for one player."""
    if achievements is None:
        achievements = ACHIEVEMENTS
    granted = set(granted_ids)

    statuses: list[AchievementStatus] = []
    for achievement in achievements:
        unlocked = achievement.id in granted or achievement.condition(stats)
        progress = 100.0 if unlocked else achievement.progress(stats)
        statuses.append(
            AchievementStatus(
                id=achievement.id,
                category=achievement.category,
                title=achievement.title,
                description=achievement.description,
                level=achievement.level,
                target=achievement.target,
                manual_only=achievement.manual_only,
                unlocked=unlocked,
                progress=progress,
            )
        )
    return statuses


async def load_player_achievements(
    repo: Repository,
    player_id: str,
) -> tuple[PlayerStats, list[AchievementStatus]]:
    from pelada.core.matchday import list_matches
    from pelada.core.rankings import load_hall_of_fame
    from pelada.core.roster import get_player

    player = await get_player(repo, player_id)
    matches = await list_matches(repo, MatchStatus.FINISHED)
    hall_of_fame = await load_hall_of_fame(repo)
    stats = calculate_player_stats(player_id, matches, hall_of_fame)
    statuses = evaluate_achievements(stats, player.granted_achievements)
    logger.debug(
        "achievements_evaluated player=%s unlocked=%d",
        player_id,
        sum(1 for s in statuses if s.unlocked),
    )
    return stats, statuses
