# match_grid.py
"""
Court/time-slot grid helpers shared by every match producer.

A grid cell is one (court, time slot) pair and hosts at most one match.
Match ids are derived from week, court and slot so repeated runs over the
same input produce identical matches.
"""

from collections.abc import Sequence
from statistics import mean

from app_types import CourtId, Match, PlayerId, PlayerSkills
from exceptions import ConfigurationError

# A single (court, time slot) cell
Slot = tuple[CourtId, str]


def court_ids(court_count: int) -> list[CourtId]:
    """Returns court ids "c1".."cN"."""
    if court_count < 1:
        raise ConfigurationError(f"Court count must be at least 1, got {court_count}.")
    return [f"c{i + 1}" for i in range(court_count)]


def normalize_time_slots(time_slots: int | Sequence[str]) -> list[str]:
    """Accepts either a number of slots per court or explicit slot labels."""
    if isinstance(time_slots, str):
        raise ConfigurationError(
            f"Time slots must be a count or a list of labels, got the string '{time_slots}'."
        )
    if isinstance(time_slots, int):
        labels = [f"slot-{i + 1}" for i in range(time_slots)]
    else:
        labels = list(time_slots)
    if not labels:
        raise ConfigurationError("At least one time slot per court is required.")
    if len(labels) != len(set(labels)):
        raise ConfigurationError("Time slot labels must be unique.")
    return labels


def build_slot_grid(court_count: int, time_slots: int | Sequence[str]) -> list[Slot]:
    """Cells in traversal order: every court of a time slot before the next slot."""
    courts = court_ids(court_count)
    return [(court, slot) for slot in normalize_time_slots(time_slots) for court in courts]


def match_id(week_id: str, court_id: CourtId, time_slot: str) -> str:
    return f"{week_id}-{court_id}-{time_slot}"


def average_skill(players: Sequence[PlayerId], skills: PlayerSkills) -> float | None:
    known = [skills[p] for p in players if p in skills]
    return mean(known) if known else None


def create_match(
    week_id: str,
    slot: Slot,
    team_a: Sequence[PlayerId],
    team_b: Sequence[PlayerId],
    generated_by: str,
    skills: PlayerSkills,
    season_id: str | None = None,
) -> Match:
    """Builds a fresh match for a grid cell."""
    court_id, time_slot = slot
    return Match(
        id=match_id(week_id, court_id, time_slot),
        week_id=week_id,
        court_id=court_id,
        time_slot=time_slot,
        team_a=tuple(team_a),
        team_b=tuple(team_b),
        generated_by=generated_by,
        skill_level=average_skill(tuple(team_a) + tuple(team_b), skills),
        season_id=season_id,
    )
