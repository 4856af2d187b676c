# optimizer.py
"""
Solver-backed schedule candidate.

Formulates one week as an integer program: every grid cell gets two players
per side, every player is placed at most once, and the objective minimises
the total team-skill gap plus a penalty for partnerships that already
happened. The result is only a candidate; the fairness scorer still decides
whether it beats the greedy strategies.
"""

import logging
from itertools import combinations

import pulp

from app_types import Match, Player, StatsByPlayer
from constants import (
    GENERATED_BY_SOLVER,
    PARTNER_REPEAT_PENALTY,
    PLAYERS_PER_MATCH,
    PLAYERS_PER_TEAM,
    SOLVER_TIME_LIMIT,
)
from exceptions import OptimizerError
from match_grid import Slot, create_match

logger = logging.getLogger("app.optimizer")

SIDES = (0, 1)  # 0 = side A, 1 = side B


def solver_schedule(
    players: list[Player],
    slots: list[Slot],
    stats_by_player: StatsByPlayer,
    week_id: str,
    partner_penalty: float = PARTNER_REPEAT_PENALTY,
    time_limit: int = SOLVER_TIME_LIMIT,
) -> list[Match]:
    """
    Builds an optimised schedule for a single week with the CBC solver.

    Args:
        players: Players to place
        slots: Grid cells in fill order; the first len(players) // 4 are used
        stats_by_player: History used for the repeated-partner penalty
        week_id: Week the matches belong to
        partner_penalty: Objective weight of one repeated partnership
        time_limit: Solver time limit in seconds

    Returns:
        Matches in cell order.

    Raises:
        OptimizerError: If the solver finds no feasible solution.
    """
    num_matches = min(len(slots), len(players) // PLAYERS_PER_MATCH)
    if num_matches == 0:
        return []

    # Index players by position so solver variable names stay well-formed
    indices = range(len(players))
    cells = range(num_matches)
    skills = {i: players[i].skill for i in indices}
    player_pairs = list(combinations(indices, 2))

    def partner_count(i: int, j: int) -> int:
        stats = stats_by_player.get(players[i].id)
        return stats.partners.get(players[j].id, 0) if stats else 0

    prob = pulp.LpProblem("Week_Schedule_Optimizer", pulp.LpMinimize)

    # x: player i plays on side s of cell c
    x = pulp.LpVariable.dicts("OnSide", (indices, cells, SIDES), cat="Binary")
    # t: players i and j are partners on side s of cell c
    t = pulp.LpVariable.dicts("Partners", (player_pairs, cells, SIDES), cat="Binary")
    # gap: absolute team-skill difference of cell c
    gap = pulp.LpVariable.dicts("SkillGap", cells, lowBound=0)

    total_skill_objective = pulp.lpSum(gap[c] for c in cells)
    total_pairing_objective = pulp.lpSum(
        t[pair][c][s] * partner_count(*pair)
        for pair in player_pairs
        for c in cells
        for s in SIDES
    )
    prob += (
        total_skill_objective + partner_penalty * total_pairing_objective
    ), "Minimize_Weighted_Objectives"

    for c in cells:
        for s in SIDES:
            prob += pulp.lpSum(x[i][c][s] for i in indices) == PLAYERS_PER_TEAM
    for i in indices:
        prob += pulp.lpSum(x[i][c][s] for c in cells for s in SIDES) <= 1

    for i, j in player_pairs:
        for c in cells:
            for s in SIDES:
                prob += t[(i, j)][c][s] <= x[i][c][s]
                prob += t[(i, j)][c][s] <= x[j][c][s]
    for i in indices:
        for c in cells:
            for s in SIDES:
                prob += (
                    pulp.lpSum(t[pair][c][s] for pair in player_pairs if i in pair)
                    == x[i][c][s]
                )

    for c in cells:
        side_a = pulp.lpSum(skills[i] * x[i][c][0] for i in indices)
        side_b = pulp.lpSum(skills[i] * x[i][c][1] for i in indices)
        prob += gap[c] >= side_a - side_b
        prob += gap[c] >= side_b - side_a

    try:
        prob.solve(pulp.PULP_CBC_CMD(msg=False, timeLimit=time_limit))
    except pulp.PulpSolverError as e:
        raise OptimizerError(f"Solver failed: {e}") from e

    if prob.sol_status not in (pulp.LpSolutionOptimal, pulp.LpSolutionIntegerFeasible):
        raise OptimizerError(
            f"No feasible schedule found. Status: {pulp.LpStatus[prob.status]}"
        )

    logger.debug("Total Skill Objective: %s", pulp.value(total_skill_objective))
    logger.debug("Total Pairing Objective: %s", pulp.value(total_pairing_objective))
    logger.debug("Objective Value: %s", pulp.value(prob.objective))

    player_skills = {p.id: p.skill for p in players}
    matches = []
    for c in cells:
        team_a = [players[i].id for i in indices if x[i][c][0].value() > 0.5]
        team_b = [players[i].id for i in indices if x[i][c][1].value() > 0.5]
        if len(team_a) != PLAYERS_PER_TEAM or len(team_b) != PLAYERS_PER_TEAM:
            raise OptimizerError(f"Solver returned an incomplete match for cell {slots[c]}.")
        matches.append(
            create_match(week_id, slots[c], team_a, team_b, GENERATED_BY_SOLVER, player_skills)
        )

    return matches
