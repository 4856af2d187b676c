"""
Service layer for roster and analytics tables.

This module converts between the scheduler's plain data classes and pandas
DataFrames: the roster table supplied by the Roster Provider, the per-player
season statistics table, and the schedule table handed to the Result Sink.
"""

import logging

import pandas as pd

from app_types import Match, Player, ShareType, StatsByPlayer
from constants import DEFAULT_SKILL, SHARE_TYPE_PERCENTAGES
from exceptions import ValidationError
from fairness import match_skill_diff

logger = logging.getLogger("app.player_service")


def parse_share(share_type, share=None) -> tuple[ShareType | None, float | None]:
    """
    Resolves a contract share code to (ShareType, percentage).

    Fixed codes map to their percentage (e.g. "TQ" -> 75); "C" (custom) takes
    the given share value. Empty values give (None, None).

    Raises:
        ValidationError: If the code is unknown or a custom share has no value.
    """
    if share_type is None or pd.isna(share_type) or str(share_type).strip() == "":
        if share is None or pd.isna(share):
            return None, None
        return None, float(share)

    code = str(share_type).strip().upper()
    try:
        parsed = ShareType(code)
    except ValueError:
        raise ValidationError(f"Unknown share type '{share_type}'.") from None

    if parsed == ShareType.CUSTOM:
        if share is None or pd.isna(share):
            raise ValidationError("Custom share type requires a share percentage.")
        return parsed, float(share)
    return parsed, SHARE_TYPE_PERCENTAGES[code]


_TRUE_FLAGS = {"true", "yes", "y", "1", "r"}
_FALSE_FLAGS = {"false", "no", "n", "0", ""}


def parse_flag(value, column: str = "Reserve") -> bool:
    """
    Reads a yes/no roster cell.

    Booleans and numbers are taken as is; text is matched case-insensitively
    against yes/no spellings. Empty cells are False.

    Raises:
        ValidationError: If a text value is not a recognised flag.
    """
    if value is None or pd.isna(value):
        return False
    if pd.api.types.is_bool(value) or pd.api.types.is_number(value):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    raise ValidationError(f"Column '{column}' has unrecognised value '{value}'.")


def dataframe_to_players(roster_df: pd.DataFrame) -> list[Player]:
    """
    Converts a roster DataFrame into Player objects.

    Required column: "Player Name". Optional columns: "Player ID" (defaults to
    the name), "Skill" (defaults to DEFAULT_SKILL), "Team", "Share Type",
    "Share", "Reserve".

    Args:
        roster_df: Roster table, one row per player

    Returns:
        Players in row order.

    Raises:
        ValidationError: If player ids repeat, or a share code or reserve flag is invalid.
    """
    players: list[Player] = []
    seen: set[str] = set()
    for _, row in roster_df.dropna(subset=["Player Name"]).iterrows():
        name = str(row["Player Name"]).strip()
        raw_id = row.get("Player ID")
        player_id = name if raw_id is None or pd.isna(raw_id) else str(raw_id)
        if player_id in seen:
            raise ValidationError(f"Duplicate player id '{player_id}' in roster.")
        seen.add(player_id)

        raw_skill = row.get("Skill")
        skill = DEFAULT_SKILL if raw_skill is None or pd.isna(raw_skill) else float(raw_skill)
        raw_team = row.get("Team")
        team_id = None if raw_team is None or pd.isna(raw_team) or raw_team == "" else str(raw_team)
        share_type, share = parse_share(row.get("Share Type"), row.get("Share"))
        reserve = parse_flag(row.get("Reserve"))

        players.append(
            Player(
                id=player_id,
                name=name,
                skill=skill,
                team_id=team_id,
                share=share,
                share_type=share_type,
                reserve=reserve,
            )
        )

    logger.info(f"Loaded {len(players)} player(s) from roster table")
    return players


def create_roster_dataframe(players: list[Player]) -> pd.DataFrame:
    """Creates a roster table from Player objects."""
    return pd.DataFrame(
        {
            "Player ID": [p.id for p in players],
            "Player Name": [p.name for p in players],
            "Skill": [p.skill for p in players],
            "Team": [p.team_id or "" for p in players],
            "Share Type": [p.share_type.value if p.share_type else "" for p in players],
            "Share": [p.share for p in players],
            "Reserve": [p.is_reserve for p in players],
        }
    )


_STATS_COLUMNS = [
    "#",
    "Player ID",
    "Player Name",
    "Matches",
    "Wins",
    "Losses",
    "Sit-outs",
    "Distinct Partners",
    "Distinct Opponents",
    "Avg Skill Diff",
]


def create_stats_dataframe(stats_by_player: StatsByPlayer, players: list[Player]) -> pd.DataFrame:
    """Creates the season analytics table, one row per rostered player."""
    rows = []
    for rank, player in enumerate(players, start=1):
        stats = stats_by_player.get(player.id)
        rows.append(
            {
                "#": rank,
                "Player ID": player.id,
                "Player Name": player.name,
                "Matches": stats.total_matches if stats else 0,
                "Wins": stats.wins if stats else 0,
                "Losses": stats.losses if stats else 0,
                "Sit-outs": stats.sitouts if stats else 0,
                "Distinct Partners": len(stats.partners) if stats else 0,
                "Distinct Opponents": len(stats.opponents) if stats else 0,
                "Avg Skill Diff": stats.average_skill_diff if stats else 0.0,
            }
        )
    return pd.DataFrame(rows, columns=_STATS_COLUMNS)


_SCHEDULE_COLUMNS = [
    "Match ID",
    "Week",
    "Court",
    "Time Slot",
    "Team A",
    "Team B",
    "Skill Level",
    "Skill Diff",
    "Generated By",
]


def create_schedule_dataframe(matches: list[Match], players: list[Player]) -> pd.DataFrame:
    """Creates the schedule table with player names resolved."""
    names = {p.id: p.name for p in players}
    skills = {p.id: p.skill for p in players}
    rows = [
        {
            "Match ID": m.id,
            "Week": m.week_id,
            "Court": m.court_id,
            "Time Slot": m.time_slot,
            "Team A": " / ".join(names.get(pid, pid) for pid in m.team_a),
            "Team B": " / ".join(names.get(pid, pid) for pid in m.team_b),
            "Skill Level": m.skill_level,
            "Skill Diff": match_skill_diff(m, skills),
            "Generated By": m.generated_by,
        }
        for m in matches
    ]
    return pd.DataFrame(rows, columns=_SCHEDULE_COLUMNS)
