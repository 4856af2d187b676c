# teams.py
"""
Two-player team generation.

Team generation is exhaustive: n players give n(n-1)/2 teams. Pools are
league sized (tens of players); larger rosters should be split, e.g. per team,
before calling into the scheduler.
"""

from dataclasses import dataclass
from itertools import combinations

from app_types import Player, PlayerId, PlayerPair, pair_key


@dataclass(frozen=True)
class Team:
    """A doubles team of two players."""

    player_a: Player
    player_b: Player

    @property
    def combined_skill(self) -> float:
        return self.player_a.skill + self.player_b.skill

    @property
    def ids(self) -> tuple[PlayerId, PlayerId]:
        return (self.player_a.id, self.player_b.id)

    @property
    def key(self) -> PlayerPair:
        return pair_key(self.player_a.id, self.player_b.id)

    def overlaps(self, other: "Team") -> bool:
        return bool(set(self.ids) & set(other.ids))


def generate_team_combinations(players: list[Player]) -> list[Team]:
    """Enumerates every unordered pair of players, following input order."""
    return [Team(a, b) for a, b in combinations(players, 2)]


def greedy_pairs(players: list[Player]) -> list[tuple[PlayerId, PlayerId]]:
    """Sorts players by skill ascending and pairs neighbours.

    A trailing odd player is left unpaired.
    """
    ordered = sorted(players, key=lambda p: p.skill)
    return [
        (ordered[i].id, ordered[i + 1].id) for i in range(0, len(ordered) - 1, 2)
    ]
