# scheduler.py
"""
Weekly schedule selection.

build_optimal_schedule is the entry point of a scheduling run: it derives the
players' history, builds candidate schedules, scores them and returns the
best one along with the players sitting out. Pools smaller than the
combinatorial threshold take a deterministic legacy path instead: players
sorted by skill, neighbours paired, pairs placed court by court.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import replace

from app_types import (
    BalanceWeights,
    FairnessMetrics,
    Match,
    Player,
    PlayerId,
    PlayerSkills,
    ScheduleResult,
    SchedulerConfig,
    StatsByPlayer,
)
from constants import GENERATED_BY_LEGACY, PLAYERS_PER_MATCH
from exceptions import InvariantViolationError, ValidationError
from fairness import score_schedule
from logger import log_schedule_debug
from match_grid import build_slot_grid, court_ids, create_match, normalize_time_slots
from player_stats import aggregate_all_stats
from schedule_builder import build_candidate_schedules
from teams import greedy_pairs

logger = logging.getLogger("app.scheduler")


# =============================================================================
# Legacy Path
# =============================================================================


def make_matches(
    week_id: str,
    pairs: Sequence[Sequence[PlayerId]],
    courts: Sequence[tuple[str, Sequence[str]]],
    skills: PlayerSkills | None = None,
    season_id: str | None = None,
) -> list[Match]:
    """Places consecutive pairs against each other, court by court.

    Every time slot of a court is filled before moving to the next court.
    Filling stops once fewer than two pairs remain.

    Args:
        week_id: Week the matches belong to
        pairs: Teams in placement order
        courts: (court id, time slots of that court) in court order
        skills: Optional skill map for the matches' skill level
        season_id: Optional season tag

    Returns:
        The created matches.
    """
    skills = skills or {}
    matches: list[Match] = []
    idx = 0
    for court_id, time_slots in courts:
        for time_slot in time_slots:
            if idx + 1 >= len(pairs):
                break
            matches.append(
                create_match(
                    week_id,
                    (court_id, time_slot),
                    pairs[idx],
                    pairs[idx + 1],
                    GENERATED_BY_LEGACY,
                    skills,
                    season_id,
                )
            )
            idx += 2
    return matches


def legacy_schedule(
    players: list[Player],
    court_count: int,
    time_slots: int | Sequence[str],
    week_id: str,
    season_id: str | None = None,
) -> list[Match]:
    """Deterministic schedule for small pools. No randomness, no history."""
    slots = normalize_time_slots(time_slots)
    courts = [(court, slots) for court in court_ids(court_count)]
    skills = {p.id: p.skill for p in players}
    return make_matches(week_id, greedy_pairs(players), courts, skills, season_id)


# =============================================================================
# Combinatorial Path
# =============================================================================


def select_playing_players(
    players: list[Player], stats_by_player: StatsByPlayer, capacity: int
) -> list[Player]:
    """Chooses who plays when not everyone can.

    Players with the most previous sit-outs go first; ties keep input order.
    The count is a multiple of four and at most capacity matches' worth.
    The chosen players are returned in input order.
    """

    def sitouts(player: Player) -> int:
        stats = stats_by_player.get(player.id)
        return stats.sitouts if stats else 0

    count = min(len(players) // PLAYERS_PER_MATCH, capacity) * PLAYERS_PER_MATCH
    chosen = {p.id for p in sorted(players, key=sitouts, reverse=True)[:count]}
    # sorted(reverse=True) keeps ties stable, so input order breaks them
    return [p for p in players if p.id in chosen]


def find_optimal_schedule(
    candidates: Sequence[list[Match]],
    players: Sequence[Player],
    stats_by_player: StatsByPlayer,
    weights: BalanceWeights | None = None,
    max_score: float | None = None,
) -> tuple[int, list[Match], float, FairnessMetrics | None, list[float]]:
    """Scores every candidate and returns the best.

    Ties go to the earliest candidate.

    Returns:
        Tuple of (index, schedule, score, metrics, all scores). index is -1
        and the schedule empty if there were no candidates.
    """
    best_index, best_schedule = -1, []
    best_score, best_metrics = float("-inf"), None
    scores: list[float] = []
    kwargs = {} if max_score is None else {"max_score": max_score}

    for index, schedule in enumerate(candidates):
        score, metrics = score_schedule(schedule, players, stats_by_player, weights, **kwargs)
        scores.append(score)
        if score > best_score:
            best_index, best_schedule = index, schedule
            best_score, best_metrics = score, metrics

    return best_index, best_schedule, best_score, best_metrics, scores


# =============================================================================
# Invariants
# =============================================================================


def validate_schedule(
    matches: Iterable[Match],
    eligible: Iterable[PlayerId] | None = None,
    once_per_run: bool = True,
) -> None:
    """Fails loudly if a schedule double-books anyone.

    Args:
        matches: Matches of one run
        eligible: If given, every placed player must be one of these
        once_per_run: Also forbid a player appearing in two different time slots

    Raises:
        InvariantViolationError: On any violation.
    """
    eligible = set(eligible) if eligible is not None else None
    by_slot: dict[str, set[PlayerId]] = defaultdict(set)
    seen: set[PlayerId] = set()

    for match in matches:
        players = match.players
        if len(players) != len(set(players)):
            raise InvariantViolationError(f"Match {match.id} lists a player twice: {players}")
        for pid in players:
            if eligible is not None and pid not in eligible:
                raise InvariantViolationError(f"Match {match.id} places ineligible player {pid}")
            if pid in by_slot[match.time_slot]:
                raise InvariantViolationError(
                    f"Player {pid} is booked twice in time slot {match.time_slot}"
                )
            if once_per_run and pid in seen:
                raise InvariantViolationError(f"Player {pid} is booked twice in one run")
            by_slot[match.time_slot].add(pid)
            seen.add(pid)


# =============================================================================
# Entry Point
# =============================================================================


def build_optimal_schedule(
    eligible_players: list[Player],
    stats_by_player: StatsByPlayer | None,
    past_matches: Sequence[Match],
    court_count: int,
    time_slots: int | Sequence[str],
    weights: BalanceWeights | dict | None = None,
    week_id: str = "current",
    config: SchedulerConfig | None = None,
    season_id: str | None = None,
) -> ScheduleResult:
    """
    Builds the fairest schedule for one week.

    Args:
        eligible_players: Players available this week
        stats_by_player: Precomputed stats; players missing here are
            aggregated from past_matches
        past_matches: Read-only match history
        court_count: Number of courts
        time_slots: Time slots per court, as a count or as labels
        weights: Balance weights (BalanceWeights or league rules dict)
        week_id: Week the new matches belong to
        config: Scheduler tunables
        season_id: Optional season tag for new matches and stats

    Returns:
        ScheduleResult with matches, sit-outs and the fairness score.

    Raises:
        ValidationError: If player ids repeat.
        ConfigurationError: If the court grid is empty.
        InvariantViolationError: If the produced schedule double-books a player.
    """
    config = config or SchedulerConfig()
    if not isinstance(weights, BalanceWeights):
        weights = BalanceWeights.from_dict(weights)

    ids = [p.id for p in eligible_players]
    if len(ids) != len(set(ids)):
        raise ValidationError("Eligible players contain duplicate ids.")

    stats_by_player = dict(stats_by_player or {})
    missing = [pid for pid in ids if pid not in stats_by_player]
    if missing:
        stats_by_player.update(aggregate_all_stats(missing, past_matches, season_id))

    if len(eligible_players) < config.combinatorial_threshold:
        logger.info(
            "%d players is below the combinatorial threshold of %d; using legacy pairing",
            len(eligible_players),
            config.combinatorial_threshold,
        )
        matches = legacy_schedule(eligible_players, court_count, time_slots, week_id, season_id)
        fitness, metrics = score_schedule(
            matches, eligible_players, stats_by_player, weights, config.max_skill_score
        )
        chosen_index, candidate_scores = 0, [fitness]
    else:
        grid = build_slot_grid(court_count, time_slots)
        playing = select_playing_players(eligible_players, stats_by_player, len(grid))
        candidates = build_candidate_schedules(playing, grid, stats_by_player, week_id, config)
        chosen_index, matches, fitness, metrics, candidate_scores = find_optimal_schedule(
            candidates, eligible_players, stats_by_player, weights, config.max_skill_score
        )
        if chosen_index < 0:
            fitness, metrics = score_schedule(
                matches, eligible_players, stats_by_player, weights, config.max_skill_score
            )
        if season_id is not None:
            matches = [_with_season(m, season_id) for m in matches]

    validate_schedule(matches, ids)

    placed = {pid for m in matches for pid in m.players}
    sitouts = [pid for pid in ids if pid not in placed]

    logger.info(
        "Week %s: %d matches, %d sit-outs, fairness %.2f",
        week_id,
        len(matches),
        len(sitouts),
        fitness,
    )
    log_schedule_debug(
        logger, len(candidate_scores), chosen_index, candidate_scores, metrics, sitouts
    )

    return ScheduleResult(
        matches=list(matches), sitouts=sitouts, fairness_score=fitness, metrics=metrics
    )


def _with_season(match: Match, season_id: str) -> Match:
    return replace(match, season_id=season_id)
