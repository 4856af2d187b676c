# Match Constants
PLAYERS_PER_TEAM = 2
PLAYERS_PER_MATCH = 2 * PLAYERS_PER_TEAM

# Match origin tags
GENERATED_BY_LEGACY = "legacy-greedy"
GENERATED_BY_SKILL = "skill-optimizer"
GENERATED_BY_DIVERSITY = "diversity-optimizer"
GENERATED_BY_SOLVER = "ilp-optimizer"
GENERATED_BY_AUTO_TEAM = "auto-team"

# Scheduling Constants
COMBINATORIAL_MIN_PLAYERS = 8  # Below this, use the legacy sorted pairing
MAX_SKILL_SCORE = 10.0
SKILL_TOLERANCE = 0.5
PARTNER_REPEAT_PENALTY = 1.0
OPPONENT_REPEAT_PENALTY = 0.5
SOLVER_TIME_LIMIT = 10  # seconds

# League "balanceWeights" defaults
DEFAULT_WEIGHTS = {"skill": 5, "partners": 3, "opponents": 2, "courts": 1, "sitouts": 4}

# Contract share types (percentage of a full share)
SHARE_TYPE_PERCENTAGES = {
    "F": 100.0,
    "TQ": 75.0,
    "TT": 67.0,
    "H": 50.0,
    "OT": 33.0,
    "R": 0.0,
}

# Setup Constants
DEFAULT_COURT_COUNT = 2
DEFAULT_TIME_SLOTS = ("18:00", "19:15")
DEFAULT_SKILL = 3.0
