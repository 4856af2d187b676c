# player_stats.py
"""
Player statistics derived from match history.

Statistics are recomputed from the supplied history whenever they are needed;
nothing here is stored. The same counts seed fairness scoring and season
analytics.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from statistics import mean

from app_types import (
    Attendance,
    Match,
    PlayerId,
    PlayerSkills,
    PlayerStats,
    Score,
    StatsByPlayer,
    TeamSide,
)

logger = logging.getLogger("app.player_stats")


def _season_matches(matches: Iterable[Match], season_id: str | None) -> list[Match]:
    """Keeps matches of the given season. Matches without a season tag always count."""
    if season_id is None:
        return list(matches)
    return [m for m in matches if m.season_id is None or m.season_id == season_id]


def _team_skill(team: Sequence[PlayerId], skills: PlayerSkills) -> float:
    return sum(skills.get(p, 0.0) for p in team)


def count_sitouts(
    player_id: PlayerId, matches: Iterable[Match], attendance: Attendance
) -> int:
    """Counts the weeks a player was available but placed in no match.

    Args:
        player_id: The player to count for
        matches: Match history
        attendance: Week id -> players available that week

    Returns:
        Number of weeks the player sat out.
    """
    played_weeks = {m.week_id for m in matches if player_id in m.players}
    return sum(
        1
        for week_id, available in attendance.items()
        if player_id in available and week_id not in played_weeks
    )


def aggregate_stats(
    player_id: PlayerId,
    matches: Iterable[Match],
    season_id: str | None = None,
    scores: Iterable[Score] | None = None,
    skills: PlayerSkills | None = None,
    attendance: Attendance | None = None,
) -> PlayerStats:
    """Derives a player's partner, opponent and court counts from history.

    Args:
        player_id: The player to aggregate
        matches: Full match history
        season_id: Optional season filter
        scores: Optional results, used for wins and losses
        skills: Optional skill map, used for the average team-skill gap
        attendance: Optional week availability, used for sit-out counts

    Returns:
        A fresh PlayerStats instance.
    """
    season_matches = _season_matches(matches, season_id)
    player_matches = [m for m in season_matches if m.side_of(player_id) is not None]

    partners: dict[str, int] = defaultdict(int)
    opponents: dict[str, int] = defaultdict(int)
    court_exposure: dict[str, int] = defaultdict(int)

    for match in player_matches:
        teammates, opposing = match.teammates_and_opponents(player_id)
        for teammate in teammates:
            partners[teammate] += 1
        for opponent in opposing:
            opponents[opponent] += 1
        court_exposure[match.court_id] += 1

    wins = losses = 0
    if scores is not None:
        results = {s.match_id: s.winner for s in scores}
        for match in player_matches:
            winner = results.get(match.id)
            if winner not in (TeamSide.A.value, TeamSide.B.value):
                continue  # split, NA or not played yet
            if winner == match.side_of(player_id).value:
                wins += 1
            else:
                losses += 1

    average_skill_diff = 0.0
    if skills is not None and player_matches:
        average_skill_diff = mean(
            abs(_team_skill(m.team_a, skills) - _team_skill(m.team_b, skills))
            for m in player_matches
        )

    sitouts = count_sitouts(player_id, season_matches, attendance) if attendance else 0

    return PlayerStats(
        player_id=player_id,
        season_id=season_id,
        total_matches=len(player_matches),
        wins=wins,
        losses=losses,
        partners=dict(partners),
        opponents=dict(opponents),
        court_exposure=dict(court_exposure),
        sitouts=sitouts,
        average_skill_diff=average_skill_diff,
    )


def aggregate_all_stats(
    player_ids: Iterable[PlayerId],
    matches: Iterable[Match],
    season_id: str | None = None,
    scores: Iterable[Score] | None = None,
    skills: PlayerSkills | None = None,
    attendance: Attendance | None = None,
) -> StatsByPlayer:
    """Runs aggregate_stats for every player id."""
    matches = list(matches)
    scores = list(scores) if scores is not None else None
    stats = {
        pid: aggregate_stats(pid, matches, season_id, scores, skills, attendance)
        for pid in player_ids
    }
    logger.debug("Aggregated stats for %d players over %d matches", len(stats), len(matches))
    return stats


def accumulate_stats(
    stats_by_player: StatsByPlayer,
    matches: Iterable[Match],
    pool: Iterable[PlayerId],
) -> StatsByPlayer:
    """Returns new stats with a candidate week added on top of the given history.

    Every pool player not placed in any of the matches gets one more sit-out.
    The input stats are left untouched.

    Args:
        stats_by_player: Historical stats
        matches: Candidate matches of one run
        pool: Eligible players of the run

    Returns:
        Stats covering the history plus the candidate.
    """
    updated = {pid: stats.copy() for pid, stats in stats_by_player.items()}
    pool = list(pool)
    for pid in pool:
        updated.setdefault(pid, PlayerStats(player_id=pid))

    placed: set[PlayerId] = set()
    for match in matches:
        for pid in match.players:
            stats = updated.setdefault(pid, PlayerStats(player_id=pid))
            teammates, opposing = match.teammates_and_opponents(pid)
            for teammate in teammates:
                stats.partners[teammate] = stats.partners.get(teammate, 0) + 1
            for opponent in opposing:
                stats.opponents[opponent] = stats.opponents.get(opponent, 0) + 1
            stats.court_exposure[match.court_id] = (
                stats.court_exposure.get(match.court_id, 0) + 1
            )
            stats.total_matches += 1
            placed.add(pid)

    for pid in pool:
        if pid not in placed:
            updated[pid].sitouts += 1

    return updated
