# fairness.py
"""
Fairness scoring of schedules.

All sub-scores are on a 0-10 scale where higher means fairer:

- Skill balance: per match, max(0, 10 - |skill(A) - skill(B)|), averaged.
- Partner / opponent diversity: spread of how often each unordered pair of
  pool players partnered / faced each other. Even spreading gives a low
  dispersion and a high score.
- Court balance: per player, spread of their court exposure counts across
  all courts seen, averaged over the pool.
- Sit-out balance: spread of cumulative sit-outs.

Dispersions are coefficients of variation (std / mean) so that they stay
comparable as cumulative counts grow over a season; they map to scores as
10 / (1 + cv). The overall score is the weighted sum of the five sub-scores.
"""

from collections.abc import Iterable, Sequence
from itertools import combinations
from statistics import mean, pstdev

from app_types import (
    BalanceWeights,
    FairnessMetrics,
    Match,
    Player,
    PlayerId,
    PlayerSkills,
    PlayerStats,
    StatsByPlayer,
)
from constants import MAX_SKILL_SCORE
from player_stats import accumulate_stats


def team_skill(team: Sequence[PlayerId], skills: PlayerSkills) -> float:
    # Unknown players count as zero skill
    return sum(skills.get(p, 0.0) for p in team)


def match_skill_diff(match: Match, skills: PlayerSkills) -> float:
    return abs(team_skill(match.team_a, skills) - team_skill(match.team_b, skills))


def skill_balance_score(
    matches: Sequence[Match], skills: PlayerSkills, max_score: float = MAX_SKILL_SCORE
) -> float:
    """Average per-match skill score; 0.0 for an empty schedule."""
    if not matches:
        return 0.0
    return mean(max(0.0, max_score - match_skill_diff(m, skills)) for m in matches)


def coefficient_of_variation(values: Iterable[float]) -> float:
    """Population std divided by the mean; 0.0 when all values are zero.

    Scale free, so a season of history does not drown out one week's change.
    """
    values = list(values)
    if len(values) < 2:
        return 0.0
    average = mean(values)
    if average <= 0:
        return 0.0
    return pstdev(values) / average


def dispersion_score(cv: float, max_score: float = MAX_SKILL_SCORE) -> float:
    # Strictly decreasing in cv and never clamped
    return max_score / (1.0 + cv)


def _stats_for(stats_by_player: StatsByPlayer, player_id: PlayerId) -> PlayerStats:
    return stats_by_player.get(player_id) or PlayerStats(player_id=player_id)


def pair_dispersion(
    stats_by_player: StatsByPlayer, pool: Sequence[PlayerId], kind: str
) -> float:
    """Coefficient of variation of pair counts over every unordered pool pair.

    Args:
        stats_by_player: Cumulative stats
        pool: Player ids to consider
        kind: "partners" or "opponents"
    """
    counts = [
        getattr(_stats_for(stats_by_player, a), kind).get(b, 0)
        for a, b in combinations(pool, 2)
    ]
    return coefficient_of_variation(counts)


def court_dispersion(stats_by_player: StatsByPlayer, pool: Sequence[PlayerId]) -> float:
    courts = sorted(
        {c for pid in pool for c in _stats_for(stats_by_player, pid).court_exposure}
    )
    if not courts or not pool:
        return 0.0
    return mean(
        coefficient_of_variation(
            _stats_for(stats_by_player, pid).court_exposure.get(c, 0) for c in courts
        )
        for pid in pool
    )


def sitout_dispersion(stats_by_player: StatsByPlayer, pool: Sequence[PlayerId]) -> float:
    return coefficient_of_variation(_stats_for(stats_by_player, pid).sitouts for pid in pool)


def compute_fairness_metrics(
    matches: Sequence[Match],
    players: Sequence[Player],
    stats_by_player: StatsByPlayer,
    week_id: str | None = None,
    weights: BalanceWeights | None = None,
    max_score: float = MAX_SKILL_SCORE,
) -> FairnessMetrics:
    """Computes the sub-scores and their weighted sum.

    Args:
        matches: Matches to score for skill balance
        players: The player pool; also the population for dispersion metrics
        stats_by_player: Stats the dispersion metrics are read from
        week_id: If given, only matches of this week count for skill balance
        weights: Sub-score weights (league defaults if omitted)
        max_score: Per-match skill score ceiling

    Returns:
        FairnessMetrics with every sub-score in [0, max_score].
    """
    weights = weights or BalanceWeights()
    if week_id is not None:
        matches = [m for m in matches if m.week_id == week_id]

    skills = {p.id: p.skill for p in players}
    pool = [p.id for p in players]

    skill_balance = skill_balance_score(matches, skills, max_score)
    partner_diversity = dispersion_score(
        pair_dispersion(stats_by_player, pool, "partners"), max_score
    )
    opponent_diversity = dispersion_score(
        pair_dispersion(stats_by_player, pool, "opponents"), max_score
    )
    court_balance = dispersion_score(court_dispersion(stats_by_player, pool), max_score)
    sitout_balance = dispersion_score(sitout_dispersion(stats_by_player, pool), max_score)

    overall = (
        weights.skill * skill_balance
        + weights.partners * partner_diversity
        + weights.opponents * opponent_diversity
        + weights.courts * court_balance
        + weights.sitouts * sitout_balance
    )

    return FairnessMetrics(
        skill_balance=skill_balance,
        partner_diversity=partner_diversity,
        opponent_diversity=opponent_diversity,
        court_balance=court_balance,
        sitout_balance=sitout_balance,
        overall_fairness=overall,
    )


def score_schedule(
    schedule: Sequence[Match],
    players: Sequence[Player],
    stats_by_player: StatsByPlayer,
    weights: BalanceWeights | None = None,
    max_score: float = MAX_SKILL_SCORE,
) -> tuple[float, FairnessMetrics]:
    """Scores a candidate as if it were played on top of the given history.

    Returns:
        Tuple of (fitness, metrics). Pure; the inputs are not modified.
    """
    cumulative = accumulate_stats(stats_by_player, schedule, (p.id for p in players))
    metrics = compute_fairness_metrics(
        schedule, players, cumulative, weights=weights, max_score=max_score
    )
    return metrics.overall_fairness, metrics
