# schedule_builder.py
"""
Candidate schedule construction.

Each strategy walks an ordered list of two-player teams and pairs every still
unused team with an opposing team, filling grid cells in traversal order
until the cells run out or no disjoint pair of teams remains. A player is
placed at most once per run.

Strategies:
- Skill proximity: teams sorted by combined skill, each paired with the next
  compatible team in that order (greedy, not a minimum-weight matching).
- Diversity: teams ranked by a replaceable history-aware ranking function,
  opponents chosen to minimise skill gap plus repeated opponent exposure.
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from functools import partial

from app_types import Match, Player, PlayerStats, SchedulerConfig, StatsByPlayer
from constants import (
    GENERATED_BY_DIVERSITY,
    GENERATED_BY_SKILL,
    OPPONENT_REPEAT_PENALTY,
)
from exceptions import OptimizerError
from match_grid import Slot, create_match
from optimizer import solver_schedule
from teams import Team, generate_team_combinations

logger = logging.getLogger("app.schedule_builder")

# (teams, stats_by_player) -> teams in walk order
TeamRanking = Callable[[list[Team], StatsByPlayer], list[Team]]

# (team, compatible candidates in walk order) -> chosen opponent or None
OpponentChooser = Callable[[Team, Iterator[Team]], Team | None]

# (players, slots, stats_by_player, week_id) -> matches
ScheduleStrategy = Callable[[list[Player], list[Slot], StatsByPlayer, str], list[Match]]


def _partner_count(team: Team, stats_by_player: StatsByPlayer) -> int:
    a, b = team.ids
    stats = stats_by_player.get(a)
    return stats.partners.get(b, 0) if stats else 0


def _opponent_exposure(team: Team, other: Team, stats_by_player: StatsByPlayer) -> int:
    total = 0
    for pid in team.ids:
        stats: PlayerStats | None = stats_by_player.get(pid)
        if stats is None:
            continue
        total += sum(stats.opponents.get(oid, 0) for oid in other.ids)
    return total


def fill_slots(
    ordered_teams: list[Team],
    slots: Sequence[Slot],
    week_id: str,
    generated_by: str,
    choose_opponent: OpponentChooser,
) -> list[Match]:
    """Greedy walk shared by all strategies.

    Args:
        ordered_teams: Teams in walk order
        slots: Grid cells in fill order
        week_id: Week the matches belong to
        generated_by: Origin tag for the produced matches
        choose_opponent: Picks an opponent among the compatible later teams

    Returns:
        Matches, one per filled cell, in fill order.
    """
    skills = {p.id: p.skill for t in ordered_teams for p in (t.player_a, t.player_b)}
    matches: list[Match] = []
    used: set[str] = set()

    for i, team in enumerate(ordered_teams):
        if len(matches) >= len(slots):
            break
        if used.intersection(team.ids):
            continue

        candidates = (
            other
            for other in ordered_teams[i + 1 :]
            if not used.intersection(other.ids) and not team.overlaps(other)
        )
        opponent = choose_opponent(team, candidates)
        if opponent is None:
            continue

        matches.append(
            create_match(
                week_id, slots[len(matches)], team.ids, opponent.ids, generated_by, skills
            )
        )
        used.update(team.ids)
        used.update(opponent.ids)

    return matches


def _first_compatible(team: Team, candidates: Iterator[Team]) -> Team | None:
    return next(candidates, None)


def skill_proximity_schedule(
    players: list[Player],
    slots: list[Slot],
    stats_by_player: StatsByPlayer,
    week_id: str,
) -> list[Match]:
    """Pairs teams of adjacent combined skill. History is ignored."""
    teams = sorted(generate_team_combinations(players), key=lambda t: t.combined_skill)
    return fill_slots(teams, slots, week_id, GENERATED_BY_SKILL, _first_compatible)


def history_penalty_ranking(teams: list[Team], stats_by_player: StatsByPlayer) -> list[Team]:
    """Fresh partnerships first, then by combined skill ascending."""
    return sorted(
        teams, key=lambda t: (_partner_count(t, stats_by_player), t.combined_skill)
    )


def diversity_schedule(
    players: list[Player],
    slots: list[Slot],
    stats_by_player: StatsByPlayer,
    week_id: str,
    ranking: TeamRanking = history_penalty_ranking,
    opponent_penalty: float = OPPONENT_REPEAT_PENALTY,
) -> list[Match]:
    """Pairs teams while steering away from recent partners and opponents.

    The opponent of each team is the compatible team with the lowest
    skill gap + opponent_penalty * previous meetings; ties go to the team
    ranked first.
    """
    teams = ranking(generate_team_combinations(players), stats_by_player)

    def choose(team: Team, candidates: Iterator[Team]) -> Team | None:
        best, best_cost = None, None
        for other in candidates:
            cost = abs(team.combined_skill - other.combined_skill) + opponent_penalty * (
                _opponent_exposure(team, other, stats_by_player)
            )
            if best_cost is None or cost < best_cost:
                best, best_cost = other, cost
        return best

    return fill_slots(teams, slots, week_id, GENERATED_BY_DIVERSITY, choose)


def default_strategies(config: SchedulerConfig) -> list[ScheduleStrategy]:
    """Strategies run for every combinatorial schedule, in generation order."""
    strategies: list[ScheduleStrategy] = [
        skill_proximity_schedule,
        partial(diversity_schedule, opponent_penalty=config.opponent_repeat_penalty),
    ]
    if config.use_solver:
        strategies.append(
            partial(
                solver_schedule,
                partner_penalty=config.partner_repeat_penalty,
                time_limit=config.solver_time_limit,
            )
        )
    return strategies


def build_candidate_schedules(
    players: list[Player],
    slots: list[Slot],
    stats_by_player: StatsByPlayer,
    week_id: str,
    config: SchedulerConfig | None = None,
    strategies: list[ScheduleStrategy] | None = None,
) -> list[list[Match]]:
    """Runs every strategy and keeps the non-empty schedules.

    A strategy that raises OptimizerError is skipped; the others still run.

    Returns:
        Candidate schedules in strategy order.
    """
    config = config or SchedulerConfig()
    if strategies is None:
        strategies = default_strategies(config)

    candidates: list[list[Match]] = []
    for strategy in strategies:
        try:
            schedule = strategy(players, slots, stats_by_player, week_id)
        except OptimizerError as e:
            logger.warning("Candidate strategy failed, skipping it: %s", e)
            continue
        if schedule:
            candidates.append(schedule)

    logger.debug(
        "Built %d candidate schedules for %d players over %d cells",
        len(candidates),
        len(players),
        len(slots),
    )
    return candidates
