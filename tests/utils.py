import random
from typing import Generator

from app_types import Match, Player, ScheduleResult
from season_logic import LeagueSeason


def generate_random_players(n, skill_range=(2.0, 5.0), rng=None, teams=None):
    """
    Generates N players with ids P1 to Pn and random skills in 0.25 steps.

    Args:
        n: Number of players to generate
        skill_range: Tuple of (min_skill, max_skill)
        rng: Optional random.Random for reproducible skills
        teams: Optional list of team ids, assigned round-robin

    Returns:
        List of Player objects.
    """
    rng = rng or random.Random()
    low, high = skill_range
    steps = int((high - low) / 0.25)
    players = []
    for i in range(1, n + 1):
        skill = low + 0.25 * rng.randint(0, steps)
        team_id = teams[(i - 1) % len(teams)] if teams else None
        players.append(Player(id=f"P{i}", name=f"Player {i}", skill=skill, team_id=team_id))
    return players


def run_season_weeks(
    players: list[Player],
    court_count: int,
    time_slots,
    num_weeks: int = 10,
    **season_kwargs,
) -> Generator[tuple[int, ScheduleResult, LeagueSeason], None, None]:
    """
    Generator that schedules several weeks of one season.

    Simulates real usage by keeping history and attendance between weeks so
    that sit-outs and partnerships accumulate.

    Yields:
        tuple: (week_number, ScheduleResult, season)
    """
    season = LeagueSeason(players, court_count, time_slots, **season_kwargs)
    for week_num in range(num_weeks):
        result = season.schedule_week()
        yield week_num, result, season


def assert_no_double_booking(matches: list[Match]):
    """Every player appears at most once per time slot and never on both sides."""
    by_slot = {}
    for match in matches:
        assert not set(match.team_a) & set(match.team_b), f"{match.id} shares a player"
        booked = by_slot.setdefault(match.time_slot, set())
        for pid in match.players:
            assert pid not in booked, f"{pid} booked twice in {match.time_slot}"
            booked.add(pid)
