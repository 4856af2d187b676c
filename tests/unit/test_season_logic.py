import random
from collections import Counter

import pytest

from app_types import FairnessMetrics, Player
from auto_match import create_match_skeletons
from exceptions import ConfigurationError, ValidationError
from season_logic import LeagueSeason
from tests.utils import assert_no_double_booking, generate_random_players, run_season_weeks


def _players(*skills):
    return [Player(id=f"P{i}", name=f"P{i}", skill=s) for i, s in enumerate(skills, start=1)]


@pytest.fixture
def small_season():
    """Four players on one court: a single legacy match per week."""
    return LeagueSeason(_players(2.0, 2.5, 3.0, 3.5), court_count=1, time_slots=1)


class TestRoster:
    """Tests for roster changes between weeks."""

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError):
            LeagueSeason(_players(3.0) + _players(3.0), 1, 1)

    def test_add_and_remove_player(self, small_season):
        newcomer = Player(id="P9", name="P9", skill=3.0)
        assert small_season.add_player(newcomer) is True
        assert small_season.add_player(newcomer) is False
        assert small_season.remove_player("P9") is True
        assert small_season.remove_player("P9") is False

    def test_removed_player_is_not_scheduled(self, small_season):
        small_season.add_player(Player(id="P5", name="P5", skill=3.0))
        small_season.remove_player("P1")
        result = small_season.schedule_week()
        assert "P1" not in result.placed_players + result.sitouts

    def test_update_courts(self, small_season):
        small_season.update_courts(3)
        assert small_season.court_count == 3
        with pytest.raises(ValidationError):
            small_season.update_courts(0)


class TestScheduling:
    """Tests for week-by-week scheduling."""

    def test_week_ids_and_history(self, small_season):
        first = small_season.schedule_week()
        second = small_season.schedule_week()

        assert first.matches[0].week_id == "week-1"
        assert second.matches[0].week_id == "week-2"
        assert small_season.week_num == 2
        assert len(small_season.match_history) == 2
        assert small_season.current_week_matches == second.matches

    def test_duplicate_week_rejected(self, small_season):
        small_season.schedule_week(week_id="opening")
        with pytest.raises(ValidationError):
            small_season.schedule_week(week_id="opening")

    def test_unknown_players_rejected(self, small_season):
        with pytest.raises(ValidationError):
            small_season.schedule_week(available=["P1", "Ghost"])
        assert small_season.week_num == 0

    def test_failed_week_leaves_season_untouched(self):
        season = LeagueSeason(_players(2.0, 2.5, 3.0, 3.5), court_count=1, time_slots=0)
        with pytest.raises(ConfigurationError):
            season.schedule_week()

        assert season.week_num == 0
        assert season.attendance == {}

        season.time_slots = 1
        result = season.schedule_week()
        assert result.matches[0].week_id == "week-1"
        assert season.week_num == 1

    def test_only_available_players_are_scheduled(self, small_season):
        result = small_season.schedule_week(available=["P1", "P2", "P3"])

        assert result.matches == []
        assert result.sitouts == ["P1", "P2", "P3"]
        assert small_season.attendance["week-1"] == {"P1", "P2", "P3"}

    def test_sitouts_rotate_through_the_roster(self):
        players = generate_random_players(9, rng=random.Random(21))
        sitouts = Counter()

        for _, result, season in run_season_weeks(players, 2, 1, num_weeks=9):
            assert len(result.sitouts) == 1
            assert season.sitting_out == result.sitouts
            assert_no_double_booking(result.matches)
            sitouts.update(result.sitouts)

        assert sitouts == Counter({p.id: 1 for p in players})

    def test_sitouts_are_recorded_in_stats(self):
        players = generate_random_players(9, rng=random.Random(22))
        season = LeagueSeason(players, 2, 1)
        result = season.schedule_week()

        stats = season.stats_by_player()
        assert stats[result.sitouts[0]].sitouts == 1
        assert sum(s.sitouts for s in stats.values()) == 1

    def test_season_tag_applied(self):
        players = generate_random_players(8, rng=random.Random(23))
        season = LeagueSeason(players, 2, 1, season_id="spring")
        result = season.schedule_week()
        assert all(m.season_id == "spring" for m in result.matches)

    def test_partnerships_rotate_over_weeks(self):
        players = generate_random_players(8, skill_range=(3.0, 3.0))
        partnerships = Counter()

        for _, result, _ in run_season_weeks(players, 2, 1, num_weeks=4):
            for match in result.matches:
                partnerships[frozenset(match.team_a)] += 1
                partnerships[frozenset(match.team_b)] += 1

        assert max(partnerships.values()) == 1


class TestAutoDraw:
    """Tests for the Auto-Draw week."""

    def test_inter_team_draw(self, sample_players, rng):
        season = LeagueSeason(sample_players, court_count=2, time_slots=["19:00"])
        matches = season.auto_draw_week(rng=rng)

        assert [m.id for m in matches] == ["week-1-c1-19:00", "week-1-c2-19:00"]
        assert season.sitting_out == []
        assert season.match_history == matches
        assert_no_double_booking(matches)

    def test_empty_skeletons_are_not_recorded(self, rng):
        season = LeagueSeason(_players(3.0, 3.0, 3.0, 3.0, 3.0), 2, 1)
        matches = season.auto_draw_week(rng=rng)

        assert len(matches) == 2
        assert matches[1].is_empty
        assert len(season.match_history) == 1
        assert len(season.sitting_out) == 1

    def test_skeletons_of_another_week_rejected(self, sample_players, rng):
        season = LeagueSeason(sample_players, court_count=2, time_slots=1)
        with pytest.raises(ValidationError):
            season.auto_draw_week(skeletons=create_match_skeletons("week-7", 2, 1), rng=rng)

        assert season.week_num == 0
        assert season.attendance == {}

    def test_supplied_skeletons_count_as_played(self, sample_players, rng):
        season = LeagueSeason(sample_players, court_count=2, time_slots=1)
        season.auto_draw_week(
            week_id="derby", skeletons=create_match_skeletons("derby", 2, 1), rng=rng
        )

        stats = season.stats_by_player()
        assert all(s.sitouts == 0 for s in stats.values())
        assert all(s.total_matches == 1 for s in stats.values())


class TestResults:
    """Tests for scores, standings and reports."""

    def test_record_score_and_standings(self, small_season):
        match = small_season.schedule_week().matches[0]
        small_season.record_score(match.id, "A", [(6, 3), (6, 4)])

        standings = small_season.standings()

        assert standings[:2] == [(pid, 1, 0) for pid in match.team_a]
        assert sorted(standings[2:]) == sorted((pid, 0, 1) for pid in match.team_b)
        assert small_season.scores[match.id].set_scores == ((6, 3), (6, 4))

    def test_split_result_counts_for_nobody(self, small_season):
        match = small_season.schedule_week().matches[0]
        small_season.record_score(match.id, "split")
        assert all(wins == 0 and losses == 0 for _, wins, losses in small_season.standings())

    def test_invalid_winner_rejected(self, small_season):
        match = small_season.schedule_week().matches[0]
        with pytest.raises(ValidationError):
            small_season.record_score(match.id, "C")

    def test_unknown_match_rejected(self, small_season):
        small_season.schedule_week()
        with pytest.raises(ValidationError):
            small_season.record_score("no-such-match", "A")

    def test_fairness_report(self, small_season):
        small_season.schedule_week()
        small_season.schedule_week()

        season_report = small_season.fairness_report()
        week_report = small_season.fairness_report(week_id="week-2")

        assert isinstance(season_report, FairnessMetrics)
        assert 0.0 <= week_report.skill_balance <= 10.0
        assert season_report.sitout_balance == pytest.approx(10.0)
