# auto_match.py
"""
Slot-level auto assignment ("Auto-Draw").

Fills existing match skeletons with players. The mode depends on the pool:

- Inter-team (two or more team affiliations): each team's players are
  shuffled, team-vs-team pairings are cycled over the skeletons, one team
  takes side A and the other side B.
- Intra-team (a single shared pool): players are ordered by skill then
  contract share; each side-A player is drawn at random and the side-B
  player is drawn at random among the candidates keeping the side averages
  within the skill tolerance, or the closest one if none qualifies.

Skeletons are never mutated; filled copies are returned. The random source
is injected so draws are reproducible under a seed.
"""

import logging
import random
from collections.abc import Sequence
from dataclasses import replace
from itertools import combinations
from statistics import mean

from app_types import CourtLayout, Match, Player, PlayerId
from constants import GENERATED_BY_AUTO_TEAM, SKILL_TOLERANCE
from court_layouts import DEFAULT_LAYOUT, validate_layout
from exceptions import ValidationError
from match_grid import average_skill, build_slot_grid, match_id
from scheduler import validate_schedule

logger = logging.getLogger("app.auto_match")

# Tolerance comparisons allow for float noise in averaged ratings
_EPSILON = 1e-9


def create_match_skeletons(
    week_id: str,
    court_count: int,
    time_slots: int | Sequence[str],
    season_id: str | None = None,
) -> list[Match]:
    """Creates empty matches for every court and time slot."""
    return [
        Match(
            id=match_id(week_id, court_id, time_slot),
            week_id=week_id,
            court_id=court_id,
            time_slot=time_slot,
            season_id=season_id,
        )
        for court_id, time_slot in build_slot_grid(court_count, time_slots)
    ]


def _cleared(skeleton: Match) -> Match:
    return replace(skeleton, team_a=(), team_b=(), skill_level=None)


def _filled(skeleton: Match, team_a: list[Player], team_b: list[Player]) -> Match:
    skills = {p.id: p.skill for p in team_a + team_b}
    ids_a = tuple(p.id for p in team_a)
    ids_b = tuple(p.id for p in team_b)
    return replace(
        skeleton,
        team_a=ids_a,
        team_b=ids_b,
        generated_by=GENERATED_BY_AUTO_TEAM,
        skill_level=average_skill(ids_a + ids_b, skills),
    )


# =============================================================================
# Inter-team Mode
# =============================================================================


def assign_inter_team(
    players: list[Player],
    skeletons: list[Match],
    layout: CourtLayout,
    rng: random.Random,
) -> list[Match]:
    """Team-vs-team assignment. Every side of a match is drawn from one team.

    Pairings whose teams have run out of players are skipped. Players without
    a team are not placed in this mode.
    """
    pools: dict[str, list[Player]] = {}
    for player in players:
        if player.team_id is None:
            logger.debug("Player %s has no team and is not placed", player.id)
            continue
        pools.setdefault(player.team_id, []).append(player)
    for pool in pools.values():
        rng.shuffle(pool)

    pairings = list(combinations(pools, 2))
    n_a, n_b = len(layout.side_a), len(layout.side_b)

    result: list[Match] = []
    cursor = 0
    stopped = False
    for skeleton in skeletons:
        if stopped or sum(len(pool) for pool in pools.values()) < 2:
            stopped = True
            result.append(_cleared(skeleton))
            continue

        pairing = None
        for step in range(len(pairings)):
            team_a_id, team_b_id = pairings[(cursor + step) % len(pairings)]
            if pools[team_a_id] and pools[team_b_id]:
                pairing = (team_a_id, team_b_id)
                cursor += step + 1
                break
        if pairing is None:
            # Only one team has players left; no two-team match is possible
            stopped = True
            result.append(_cleared(skeleton))
            continue

        pool_a, pool_b = pools[pairing[0]], pools[pairing[1]]
        team_a = [pool_a.pop(0) for _ in range(min(n_a, len(pool_a)))]
        team_b = [pool_b.pop(0) for _ in range(min(n_b, len(pool_b)))]
        result.append(_filled(skeleton, team_a, team_b))

    return result


# =============================================================================
# Intra-team Mode
# =============================================================================


def _side_delta(team_a: list[Player], team_b: list[Player], candidate: Player) -> float:
    if not team_a:
        return 0.0
    return abs(mean(p.skill for p in team_b + [candidate]) - mean(p.skill for p in team_a))


def pick_balanced_partner(
    team_a: list[Player],
    team_b: list[Player],
    remaining: list[Player],
    rng: random.Random,
    tolerance: float = SKILL_TOLERANCE,
) -> Player:
    """Draws the next side-B player.

    Random among the candidates within tolerance of side A's average; the
    closest candidate (earliest in order on ties) if none is within it.
    """
    deltas = [(_side_delta(team_a, team_b, c), c) for c in remaining]
    within = [c for delta, c in deltas if delta <= tolerance + _EPSILON]
    if within:
        return rng.choice(within)

    delta, closest = min(deltas, key=lambda item: item[0])
    logger.debug(
        "No candidate within %.2f of side A; using closest %s (delta %.2f)",
        tolerance,
        closest.id,
        delta,
    )
    return closest


def assign_intra_team(
    players: list[Player],
    skeletons: list[Match],
    layout: CourtLayout,
    rng: random.Random,
    tolerance: float = SKILL_TOLERANCE,
) -> list[Match]:
    """Skill-balanced assignment from one shared pool."""
    remaining = sorted(players, key=lambda p: (-p.skill, -(p.share or 0.0)))
    n_a, n_b = len(layout.side_a), len(layout.side_b)

    result: list[Match] = []
    for skeleton in skeletons:
        if len(remaining) < 2:
            result.append(_cleared(skeleton))
            continue

        team_a: list[Player] = []
        team_b: list[Player] = []
        for i in range(max(n_a, n_b)):
            if len(remaining) < 2:
                logger.debug("Fewer than 2 players left; stopping in match %s", skeleton.id)
                break
            if i < n_a:
                pick = rng.choice(remaining)
                remaining.remove(pick)
                team_a.append(pick)
            if i < n_b:
                partner = pick_balanced_partner(team_a, team_b, remaining, rng, tolerance)
                remaining.remove(partner)
                team_b.append(partner)

        result.append(_filled(skeleton, team_a, team_b))

    return result


# =============================================================================
# Entry Point
# =============================================================================


def auto_assign_slots(
    eligible_players: list[Player],
    skeletons: list[Match],
    layout: CourtLayout = DEFAULT_LAYOUT,
    rng: random.Random | None = None,
    tolerance: float = SKILL_TOLERANCE,
) -> list[Match]:
    """
    Fills match skeletons with players.

    Locked skeletons are returned unchanged and their players are not placed
    again. Reserves are never placed. Other skeletons are cleared and refilled.

    Args:
        eligible_players: Players available for placement
        skeletons: Matches bound to a court and time slot
        layout: Court layout shared by all skeletons
        rng: Random source; a fresh unseeded one if omitted
        tolerance: Intra-team skill tolerance between side averages

    Returns:
        New matches in skeleton order.

    Raises:
        ConfigurationError: If the layout has no positions on a side.
        ValidationError: If player ids repeat.
        InvariantViolationError: If a player ends up placed twice.
    """
    validate_layout(layout)
    rng = rng or random.Random()

    ids = [p.id for p in eligible_players]
    if len(ids) != len(set(ids)):
        raise ValidationError("Eligible players contain duplicate ids.")

    locked: set[PlayerId] = {pid for m in skeletons if m.locked for pid in m.players}
    pool = [p for p in eligible_players if not p.is_reserve and p.id not in locked]
    open_skeletons = [m for m in skeletons if not m.locked]

    team_ids = {p.team_id for p in pool if p.team_id is not None}
    if len(team_ids) >= 2:
        mode = "inter-team"
        filled = assign_inter_team(pool, open_skeletons, layout, rng)
    else:
        mode = "intra-team"
        filled = assign_intra_team(pool, open_skeletons, layout, rng, tolerance)

    refilled = iter(filled)
    result = [m if m.locked else next(refilled) for m in skeletons]

    validate_schedule(result)

    placed = sum(len(m.players) for m in result if not m.locked)
    logger.info(
        "Auto-assigned %d of %d players to %d matches (%s)",
        placed,
        len(pool),
        len(open_skeletons),
        mode,
    )
    return result
