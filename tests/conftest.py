import random

import pytest
from app_types import Player


@pytest.fixture
def sample_players():
    """Returns a list of eight players across two teams."""
    return [
        Player(id="Alice", name="Alice", skill=3.0, team_id="Aces", share=100.0),
        Player(id="Bob", name="Bob", skill=3.5, team_id="Aces", share=75.0),
        Player(id="Charlie", name="Charlie", skill=4.0, team_id="Aces", share=50.0),
        Player(id="Dave", name="Dave", skill=2.5, team_id="Aces", share=100.0),
        Player(id="Eve", name="Eve", skill=3.0, team_id="Volleys", share=67.0),
        Player(id="Frank", name="Frank", skill=3.5, team_id="Volleys", share=100.0),
        Player(id="Grace", name="Grace", skill=4.5, team_id="Volleys", share=33.0),
        Player(id="Heidi", name="Heidi", skill=2.0, team_id="Volleys", share=100.0),
    ]


@pytest.fixture
def single_pool_players(sample_players):
    """The sample players without team affiliation."""
    return [
        Player(id=p.id, name=p.name, skill=p.skill, share=p.share) for p in sample_players
    ]


@pytest.fixture
def player_skills(sample_players):
    """Returns a mapping of player ids to their skills."""
    return {p.id: p.skill for p in sample_players}


@pytest.fixture
def rng():
    """A seeded random source."""
    return random.Random(1234)
