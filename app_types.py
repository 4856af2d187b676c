# app_types.py
"""
Types for the league scheduler.

This module defines type aliases and the plain data classes exchanged between
the scheduling components. Every value here is a snapshot: the engine reads
players, layouts and historical matches but never mutates them.
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum

from constants import (
    COMBINATORIAL_MIN_PLAYERS,
    DEFAULT_WEIGHTS,
    MAX_SKILL_SCORE,
    OPPONENT_REPEAT_PENALTY,
    PARTNER_REPEAT_PENALTY,
    PLAYERS_PER_MATCH,
    SKILL_TOLERANCE,
    SOLVER_TIME_LIMIT,
)
from exceptions import ValidationError

# =============================================================================
# Basic Type Aliases
# =============================================================================


class TeamSide(str, Enum):
    """Side of a court a position belongs to."""

    A = "A"
    B = "B"


class ShareType(str, Enum):
    """Contract share of a player in a contract league."""

    FULL = "F"
    THREE_QUARTERS = "TQ"
    TWO_THIRDS = "TT"
    HALF = "H"
    ONE_THIRD = "OT"
    RESERVE = "R"
    CUSTOM = "C"


# An opaque player identifier
PlayerId = str

# A court identifier, e.g. "c1"
CourtId = str

# A pair of player ids, always stored sorted
PlayerPair = tuple[PlayerId, PlayerId]

# Mapping of another player (or court) id to how often it occurred
OccurrenceCounts = dict[str, int]

# Mapping of player ids to skill ratings
PlayerSkills = dict[PlayerId, float]

# Week id -> players marked available that week
Attendance = dict[str, set[PlayerId]]


def pair_key(p1: PlayerId, p2: PlayerId) -> PlayerPair:
    """Returns an order-independent key for a pair of players."""
    return (p1, p2) if p1 <= p2 else (p2, p1)


# =============================================================================
# Roster and Layout
# =============================================================================


@dataclass(frozen=True)
class Player:
    """A league player as supplied by the roster.

    Attributes:
        id: Opaque identifier
        name: Display name
        skill: Skill rating (e.g. 1.0-5.5 in 0.25 steps)
        team_id: Team affiliation, if any
        share: Contract share percentage, used only as a tie-break
        share_type: Contract share category
        reserve: Explicit reserve flag
    """

    id: PlayerId
    name: str
    skill: float
    team_id: str | None = None
    share: float | None = None
    share_type: ShareType | None = None
    reserve: bool = False

    @property
    def is_reserve(self) -> bool:
        return self.reserve or self.share_type == ShareType.RESERVE


@dataclass(frozen=True)
class Position:
    """A single slot on a court layout."""

    id: str
    team_side: TeamSide
    label: str = ""


@dataclass(frozen=True)
class CourtLayout:
    """Ordered positions of one court, shared read-only by every match of a run."""

    name: str
    positions: tuple[Position, ...]
    sport: str = "generic"

    def side_positions(self, side: TeamSide) -> tuple[Position, ...]:
        return tuple(p for p in self.positions if p.team_side == side)

    @property
    def side_a(self) -> tuple[Position, ...]:
        return self.side_positions(TeamSide.A)

    @property
    def side_b(self) -> tuple[Position, ...]:
        return self.side_positions(TeamSide.B)


# =============================================================================
# Match Data Classes
# =============================================================================


@dataclass(frozen=True)
class Match:
    """A match on one court in one time slot.

    A match with empty sides is a skeleton waiting for players.

    Attributes:
        id: Match identifier
        week_id: Week/event the match belongs to
        court_id: Court identifier
        time_slot: Time slot label
        team_a: Player ids on side A, in layout position order
        team_b: Player ids on side B, in layout position order
        generated_by: Tag of the algorithm that produced the match
        locked: Do not reassign this match
        skill_level: Average skill of the placed players
        season_id: Season the match belongs to, if tracked
    """

    id: str
    week_id: str
    court_id: CourtId
    time_slot: str
    team_a: tuple[PlayerId, ...] = ()
    team_b: tuple[PlayerId, ...] = ()
    generated_by: str = ""
    locked: bool = False
    skill_level: float | None = None
    season_id: str | None = None

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples so matches stay hashable
        object.__setattr__(self, "team_a", tuple(self.team_a))
        object.__setattr__(self, "team_b", tuple(self.team_b))

    @property
    def players(self) -> tuple[PlayerId, ...]:
        return self.team_a + self.team_b

    @property
    def is_empty(self) -> bool:
        return not self.team_a and not self.team_b

    def side_of(self, player_id: PlayerId) -> TeamSide | None:
        if player_id in self.team_a:
            return TeamSide.A
        if player_id in self.team_b:
            return TeamSide.B
        return None

    def teammates_and_opponents(
        self, player_id: PlayerId
    ) -> tuple[tuple[PlayerId, ...], tuple[PlayerId, ...]]:
        """Returns (teammates excluding the player, opponents)."""
        side = self.side_of(player_id)
        if side is None:
            return (), ()
        own, other = (
            (self.team_a, self.team_b) if side == TeamSide.A else (self.team_b, self.team_a)
        )
        return tuple(p for p in own if p != player_id), other

    def position_assignments(self, layout: CourtLayout) -> dict[str, PlayerId]:
        """Maps layout position ids to the players occupying them."""
        assignments = dict(zip((p.id for p in layout.side_a), self.team_a))
        assignments.update(zip((p.id for p in layout.side_b), self.team_b))
        return assignments


@dataclass(frozen=True)
class Score:
    """Result of a played match. winner is "A", "B", "split" or "NA"."""

    match_id: str
    winner: str
    set_scores: tuple[tuple[int, int], ...] = ()


# =============================================================================
# Statistics and Fairness
# =============================================================================


@dataclass
class PlayerStats:
    """Per-player history derived from past matches. Never persisted."""

    player_id: PlayerId
    season_id: str | None = None
    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    partners: OccurrenceCounts = field(default_factory=dict)
    opponents: OccurrenceCounts = field(default_factory=dict)
    court_exposure: OccurrenceCounts = field(default_factory=dict)
    sitouts: int = 0
    average_skill_diff: float = 0.0

    def copy(self) -> "PlayerStats":
        return PlayerStats(
            player_id=self.player_id,
            season_id=self.season_id,
            total_matches=self.total_matches,
            wins=self.wins,
            losses=self.losses,
            partners=dict(self.partners),
            opponents=dict(self.opponents),
            court_exposure=dict(self.court_exposure),
            sitouts=self.sitouts,
            average_skill_diff=self.average_skill_diff,
        )


StatsByPlayer = dict[PlayerId, PlayerStats]


@dataclass(frozen=True)
class FairnessMetrics:
    """Sub-scores on a 0-10 scale (higher is fairer) and their weighted sum."""

    skill_balance: float
    partner_diversity: float
    opponent_diversity: float
    court_balance: float
    sitout_balance: float
    overall_fairness: float


@dataclass
class ScheduleResult:
    """Result of a scheduling run.

    Attributes:
        matches: Matches in court/time-slot order
        sitouts: Eligible players not placed in any match
        fairness_score: Weighted fitness of the chosen schedule
        metrics: Sub-score breakdown of the chosen schedule
    """

    matches: list[Match]
    sitouts: list[PlayerId]
    fairness_score: float
    metrics: FairnessMetrics | None = None

    @property
    def placed_players(self) -> list[PlayerId]:
        return [p for m in self.matches for p in m.players]


# =============================================================================
# Configuration
# =============================================================================

# League rule keys accepted as aliases for the weight fields
_WEIGHT_ALIASES = {"skillParity": "skill", "skill_parity": "skill"}


@dataclass(frozen=True)
class BalanceWeights:
    """League-configurable weights of the fairness sub-scores."""

    skill: float = DEFAULT_WEIGHTS["skill"]
    partners: float = DEFAULT_WEIGHTS["partners"]
    opponents: float = DEFAULT_WEIGHTS["opponents"]
    courts: float = DEFAULT_WEIGHTS["courts"]
    sitouts: float = DEFAULT_WEIGHTS["sitouts"]

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValidationError(f"Weight '{f.name}' must not be negative.")

    @classmethod
    def from_dict(cls, weights: dict | None) -> "BalanceWeights":
        """Builds weights from a dict, filling missing keys with defaults.

        Accepts the league rules spelling ("skillParity") as well.
        """
        if not weights:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in weights.items():
            name = _WEIGHT_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown balance weight '{key}'.")
            values[name] = float(value)
        return cls(**values)

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class SchedulerConfig:
    """Tunables of a scheduling run."""

    combinatorial_threshold: int = COMBINATORIAL_MIN_PLAYERS
    skill_tolerance: float = SKILL_TOLERANCE
    max_skill_score: float = MAX_SKILL_SCORE
    partner_repeat_penalty: float = PARTNER_REPEAT_PENALTY
    opponent_repeat_penalty: float = OPPONENT_REPEAT_PENALTY
    use_solver: bool = False
    solver_time_limit: int = SOLVER_TIME_LIMIT

    def __post_init__(self) -> None:
        if self.combinatorial_threshold < PLAYERS_PER_MATCH:
            raise ValidationError(
                f"combinatorial_threshold must be at least {PLAYERS_PER_MATCH}."
            )
        if self.skill_tolerance < 0:
            raise ValidationError("skill_tolerance must not be negative.")
        if self.max_skill_score <= 0:
            raise ValidationError("max_skill_score must be positive.")
        if self.solver_time_limit <= 0:
            raise ValidationError("solver_time_limit must be positive.")
