import random

import pytest

from app_types import BalanceWeights, Match, Player, PlayerStats, SchedulerConfig
from constants import GENERATED_BY_LEGACY
from exceptions import InvariantViolationError, ValidationError
from fairness import match_skill_diff
from scheduler import (
    build_optimal_schedule,
    find_optimal_schedule,
    legacy_schedule,
    make_matches,
    select_playing_players,
    validate_schedule,
)
from tests.utils import assert_no_double_booking, generate_random_players


def _players(*skills):
    return [Player(id=f"P{i}", name=f"P{i}", skill=s) for i, s in enumerate(skills, start=1)]


# =============================================================================
# Legacy Path
# =============================================================================


def test_make_matches_fills_courts_and_times_in_order():
    courts = [("c1", ["18:00", "19:15"]), ("c2", ["18:00"])]
    pairs = [("a", "b"), ("c", "d"), ("e", "f"), ("g", "h")]

    matches = make_matches("w1", pairs, courts)

    assert len(matches) == 2
    assert [m.court_id for m in matches] == ["c1", "c1"]
    assert [m.time_slot for m in matches] == ["18:00", "19:15"]
    assert matches[1].team_a == ("e", "f")
    assert matches[1].team_b == ("g", "h")


def test_fallback_scenario_six_players_one_court_two_slots():
    players = _players(2.0, 2.5, 3.0, 3.5, 4.0, 4.5)

    result = build_optimal_schedule(players, None, [], court_count=1, time_slots=2)

    assert len(result.matches) == 1
    match = result.matches[0]
    assert match.team_a == ("P1", "P2")
    assert match.team_b == ("P3", "P4")
    assert match.court_id == "c1"
    assert match.time_slot == "slot-1"
    assert match.generated_by == GENERATED_BY_LEGACY
    assert result.sitouts == ["P5", "P6"]


def test_fallback_is_deterministic():
    players = generate_random_players(7, rng=random.Random(3))

    runs = [
        build_optimal_schedule(players, None, [], court_count=2, time_slots=1)
        for _ in range(5)
    ]

    first = runs[0]
    for other in runs[1:]:
        assert other.matches == first.matches
        assert other.sitouts == first.sitouts
        assert other.fairness_score == first.fairness_score


def test_fallback_fills_court_major():
    players = _players(1.0, 1.5, 2.0, 2.5, 3.0, 3.5)
    matches = legacy_schedule(players, court_count=2, time_slots=["18:00", "19:15"], week_id="w1")

    # Three pairs give one match; it goes to the first slot of the first court
    assert len(matches) == 1
    assert (matches[0].court_id, matches[0].time_slot) == ("c1", "18:00")


@pytest.mark.parametrize("n", [0, 1, 3])
def test_insufficient_players_all_sit_out(n):
    players = _players(*[3.0] * n)
    result = build_optimal_schedule(players, None, [], court_count=2, time_slots=1)

    assert result.matches == []
    assert result.sitouts == [p.id for p in players]


# =============================================================================
# Combinatorial Path
# =============================================================================


def test_combinatorial_scenario_twelve_clustered_players():
    skills = [3.0, 3.25, 3.5, 3.75, 4.0, 3.0, 3.25, 3.5, 3.75, 4.0, 3.5, 3.5]
    players = _players(*skills)
    player_skills = {p.id: p.skill for p in players}

    result = build_optimal_schedule(players, {}, [], court_count=3, time_slots=1)

    assert len(result.matches) == 3
    assert result.sitouts == []
    assert sorted(result.placed_players) == sorted(p.id for p in players)
    for match in result.matches:
        assert len(match.team_a) == 2
        assert len(match.team_b) == 2
        assert 10 - match_skill_diff(match, player_skills) >= 8
    assert_no_double_booking(result.matches)


@pytest.mark.parametrize("n, courts, slots", [(8, 2, 1), (9, 2, 1), (13, 2, 2), (20, 3, 1), (10, 1, 3)])
def test_sitout_completeness(n, courts, slots):
    players = generate_random_players(n, rng=random.Random(n))
    ids = [p.id for p in players]

    result = build_optimal_schedule(players, None, [], court_count=courts, time_slots=slots)

    placed = result.placed_players
    assert len(placed) == len(set(placed))
    assert not set(placed) & set(result.sitouts)
    assert sorted(placed + result.sitouts) == sorted(ids)
    assert len(result.matches) <= courts * slots
    assert_no_double_booking(result.matches)


def test_week_id_and_season_are_applied():
    players = generate_random_players(8, rng=random.Random(5))
    result = build_optimal_schedule(
        players, None, [], court_count=2, time_slots=["18:00"], week_id="w7", season_id="2026"
    )
    assert all(m.week_id == "w7" for m in result.matches)
    assert all(m.season_id == "2026" for m in result.matches)
    assert {m.id for m in result.matches} == {"w7-c1-18:00", "w7-c2-18:00"}


def test_threshold_is_configurable():
    players = generate_random_players(8, rng=random.Random(9))
    config = SchedulerConfig(combinatorial_threshold=12)
    result = build_optimal_schedule(players, None, [], 2, 1, config=config)
    assert all(m.generated_by == GENERATED_BY_LEGACY for m in result.matches)


def test_weights_accept_league_rule_keys():
    players = generate_random_players(8, rng=random.Random(2))
    result = build_optimal_schedule(
        players, None, [], 2, 1, weights={"skillParity": 1, "partners": 0, "opponents": 0,
                                          "courts": 0, "sitouts": 0}
    )
    assert result.fairness_score == pytest.approx(result.metrics.skill_balance)


def test_history_is_used_when_stats_are_missing():
    players = _players(*[3.0] * 8)
    past = [
        Match(id="old", week_id="w0", court_id="c1", time_slot="s",
              team_a=("P1", "P2"), team_b=("P3", "P4")),
    ]
    result = build_optimal_schedule(players, None, past, 2, 1, week_id="w1")

    for match in result.matches:
        assert set(match.team_a) != {"P1", "P2"}
        assert set(match.team_b) != {"P1", "P2"}


def test_duplicate_player_ids_rejected():
    players = _players(3.0, 3.0) + _players(3.0)
    with pytest.raises(ValidationError):
        build_optimal_schedule(players, None, [], 1, 1)


def test_select_playing_players_prefers_previous_sitouts():
    players = _players(*[3.0] * 9)
    stats = {"P9": PlayerStats("P9", sitouts=1)}

    playing = select_playing_players(players, stats, capacity=2)

    assert [p.id for p in playing] == ["P1", "P2", "P3", "P4", "P5", "P6", "P7", "P9"]


def test_select_playing_players_respects_capacity():
    players = _players(*[3.0] * 12)
    assert len(select_playing_players(players, {}, capacity=2)) == 8


def test_previous_sitout_plays_this_week():
    players = _players(*[3.0] * 9)
    stats = {"P9": PlayerStats("P9", sitouts=1)}
    result = build_optimal_schedule(players, stats, [], court_count=2, time_slots=1)
    assert result.sitouts == ["P8"]


# =============================================================================
# Selection and Invariants
# =============================================================================


def test_find_optimal_schedule_ties_go_to_first():
    players = _players(3.0, 3.0, 3.0, 3.0)
    schedule = [Match("m", "w1", "c1", "s", ("P1", "P2"), ("P3", "P4"))]

    index, chosen, score, metrics, scores = find_optimal_schedule(
        [schedule, list(schedule)], players, {}
    )

    assert index == 0
    assert chosen is schedule
    assert scores[0] == scores[1] == score
    assert metrics is not None


def test_find_optimal_schedule_picks_best_skill_balance():
    players = _players(1.0, 2.0, 3.0, 4.0)
    unbalanced = [Match("m", "w1", "c1", "s", ("P1", "P2"), ("P3", "P4"))]
    balanced = [Match("m", "w1", "c1", "s", ("P1", "P4"), ("P2", "P3"))]

    index, chosen, _, _, _ = find_optimal_schedule(
        [unbalanced, balanced], players, {}, BalanceWeights()
    )

    assert index == 1
    assert chosen is balanced


def test_find_optimal_schedule_without_candidates():
    index, chosen, _, metrics, scores = find_optimal_schedule([], [], {})
    assert index == -1
    assert chosen == []
    assert metrics is None
    assert scores == []


class TestValidateSchedule:
    """Tests for the double-booking guard."""

    def test_valid_schedule_passes(self):
        validate_schedule(
            [
                Match("m1", "w", "c1", "18:00", ("a", "b"), ("c", "d")),
                Match("m2", "w", "c2", "18:00", ("e", "f"), ("g", "h")),
            ],
            eligible=list("abcdefgh"),
        )

    def test_player_on_both_sides(self):
        with pytest.raises(InvariantViolationError):
            validate_schedule([Match("m1", "w", "c1", "18:00", ("a", "b"), ("b", "c"))])

    def test_player_in_two_matches_same_slot(self):
        with pytest.raises(InvariantViolationError):
            validate_schedule(
                [
                    Match("m1", "w", "c1", "18:00", ("a", "b"), ("c", "d")),
                    Match("m2", "w", "c2", "18:00", ("a", "e"), ("f", "g")),
                ],
                once_per_run=False,
            )

    def test_player_twice_in_one_run(self):
        matches = [
            Match("m1", "w", "c1", "18:00", ("a", "b"), ("c", "d")),
            Match("m2", "w", "c1", "19:15", ("a", "e"), ("f", "g")),
        ]
        validate_schedule(matches, once_per_run=False)
        with pytest.raises(InvariantViolationError):
            validate_schedule(matches)

    def test_ineligible_player(self):
        with pytest.raises(InvariantViolationError):
            validate_schedule(
                [Match("m1", "w", "c1", "18:00", ("a", "b"), ("c", "z"))], eligible="abcd"
            )
