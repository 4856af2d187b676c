# season_logic.py
import logging
import random
from collections.abc import Iterable, Sequence

from app_types import (
    Attendance,
    BalanceWeights,
    CourtLayout,
    FairnessMetrics,
    Match,
    Player,
    PlayerId,
    ScheduleResult,
    SchedulerConfig,
    Score,
    StatsByPlayer,
    TeamSide,
)
from auto_match import auto_assign_slots, create_match_skeletons
from constants import DEFAULT_COURT_COUNT, DEFAULT_TIME_SLOTS
from court_layouts import DEFAULT_LAYOUT, validate_layout
from exceptions import ValidationError
from fairness import compute_fairness_metrics
from player_stats import aggregate_all_stats
from scheduler import build_optimal_schedule

logger = logging.getLogger("app.season_logic")

VALID_WINNERS = (TeamSide.A.value, TeamSide.B.value, "split", "NA")


class LeagueSeason:
    """
    Orchestrates a league season week by week.
    Keeps the roster, match history, attendance and scores in memory and hands
    snapshots of them to the scheduling engine. No persistence code.
    """

    def __init__(
        self,
        players: Iterable[Player],
        court_count: int = DEFAULT_COURT_COUNT,
        time_slots: int | Sequence[str] = DEFAULT_TIME_SLOTS,
        weights: BalanceWeights | dict | None = None,
        config: SchedulerConfig | None = None,
        season_id: str | None = None,
        layout: CourtLayout = DEFAULT_LAYOUT,
    ):
        self.player_pool: dict[PlayerId, Player] = {}
        for player in players:
            if player.id in self.player_pool:
                raise ValidationError(f"Duplicate player id '{player.id}'.")
            self.player_pool[player.id] = player

        self.court_count = court_count
        self.time_slots = time_slots
        self.weights = (
            weights if isinstance(weights, BalanceWeights) else BalanceWeights.from_dict(weights)
        )
        self.config = config or SchedulerConfig()
        self.season_id = season_id
        self.layout = validate_layout(layout)

        self.week_num = 0
        self.match_history: list[Match] = []
        self.scores: dict[str, Score] = {}
        self.attendance: Attendance = {}
        self.current_week_matches: list[Match] | None = None
        self.sitting_out: list[PlayerId] = []

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add_player(self, player: Player) -> bool:
        """Adds a player for future weeks. Returns False if the id already exists."""
        if player.id in self.player_pool:
            return False
        self.player_pool[player.id] = player
        return True

    def remove_player(self, player_id: PlayerId) -> bool:
        """Removes a player from future weeks. Their history is kept."""
        return self.player_pool.pop(player_id, None) is not None

    def update_courts(self, new_court_count: int) -> None:
        """Updates available courts; applies to the next scheduled week."""
        new_court_count = int(new_court_count)
        if new_court_count < 1:
            raise ValidationError("Number of courts must be at least 1.")
        self.court_count = new_court_count

    # ------------------------------------------------------------------
    # Weeks
    # ------------------------------------------------------------------

    def _start_week(self, available: Iterable[PlayerId] | None, week_id: str | None):
        week_id = week_id or f"week-{self.week_num + 1}"
        if week_id in self.attendance:
            raise ValidationError(f"Week '{week_id}' is already scheduled.")

        if available is None:
            available_ids = set(self.player_pool)
        else:
            available_ids = set(available)
            unknown = available_ids - set(self.player_pool)
            if unknown:
                raise ValidationError(f"Unknown players: {sorted(unknown)}")

        # Keep roster order so runs are reproducible
        eligible = [p for pid, p in self.player_pool.items() if pid in available_ids]
        return week_id, eligible

    def _finish_week(self, week_id: str, eligible: list[Player], matches: list[Match]):
        self.week_num += 1
        self.attendance[week_id] = {p.id for p in eligible}
        self.match_history.extend(matches)
        self.current_week_matches = matches
        placed = {pid for m in matches for pid in m.players}
        self.sitting_out = [p.id for p in eligible if p.id not in placed]

    def schedule_week(
        self, available: Iterable[PlayerId] | None = None, week_id: str | None = None
    ) -> ScheduleResult:
        """
        Schedules the next week for the available players and records it.

        Args:
            available: Ids of players available this week (everyone if omitted)
            week_id: Week identifier (defaults to "week-<n>")

        Returns:
            The ScheduleResult of the week.
        """
        week_id, eligible = self._start_week(available, week_id)

        result = build_optimal_schedule(
            eligible_players=eligible,
            stats_by_player=self.stats_by_player(),
            past_matches=self.match_history,
            court_count=self.court_count,
            time_slots=self.time_slots,
            weights=self.weights,
            week_id=week_id,
            config=self.config,
            season_id=self.season_id,
        )

        self._finish_week(week_id, eligible, result.matches)
        logger.info("Scheduled %s with %d matches", week_id, len(result.matches))
        return result

    def auto_draw_week(
        self,
        available: Iterable[PlayerId] | None = None,
        week_id: str | None = None,
        skeletons: list[Match] | None = None,
        rng: random.Random | None = None,
    ) -> list[Match]:
        """Fills match skeletons for the next week with the slot-level assigner.

        Without explicit skeletons, one per court and time slot is created.
        Supplied skeletons must all belong to the week being drawn.

        Raises:
            ValidationError: If a supplied skeleton belongs to another week.
        """
        week_id, eligible = self._start_week(available, week_id)
        if skeletons is None:
            skeletons = create_match_skeletons(
                week_id, self.court_count, self.time_slots, self.season_id
            )
        else:
            stray = sorted({m.week_id for m in skeletons if m.week_id != week_id})
            if stray:
                raise ValidationError(
                    f"Skeletons belong to week(s) {stray}, not to '{week_id}'."
                )

        matches = auto_assign_slots(
            eligible, skeletons, self.layout, rng, self.config.skill_tolerance
        )
        played = [m for m in matches if not m.is_empty]

        self._finish_week(week_id, eligible, played)
        return matches

    # ------------------------------------------------------------------
    # Results and Reports
    # ------------------------------------------------------------------

    def record_score(
        self, match_id: str, winner: str, set_scores: Sequence[tuple[int, int]] = ()
    ) -> Score:
        """Records the result of a played match."""
        if winner not in VALID_WINNERS:
            raise ValidationError(f"Winner must be one of {VALID_WINNERS}, got '{winner}'.")
        if not any(m.id == match_id for m in self.match_history):
            raise ValidationError(f"Unknown match '{match_id}'.")
        score = Score(match_id=match_id, winner=winner, set_scores=tuple(set_scores))
        self.scores[match_id] = score
        return score

    def stats_by_player(self) -> StatsByPlayer:
        """Season stats of every rostered player, recomputed from history."""
        return aggregate_all_stats(
            self.player_pool,
            self.match_history,
            season_id=self.season_id,
            scores=self.scores.values(),
            skills={pid: p.skill for pid, p in self.player_pool.items()},
            attendance=self.attendance,
        )

    def standings(self) -> list[tuple[PlayerId, int, int]]:
        """Returns (player id, wins, losses), most wins first, then fewest losses."""
        stats = self.stats_by_player()
        rows = [(pid, s.wins, s.losses) for pid, s in stats.items()]
        return sorted(rows, key=lambda row: (-row[1], row[2]))

    def fairness_report(self, week_id: str | None = None) -> FairnessMetrics:
        """Fairness of the season so far, or of one week's skill balance."""
        return compute_fairness_metrics(
            self.match_history,
            list(self.player_pool.values()),
            self.stats_by_player(),
            week_id=week_id,
            weights=self.weights,
            max_score=self.config.max_skill_score,
        )
