# logger.py
"""
Logging configuration for the league scheduler.

This module provides centralized logging setup. The setup_logging() function
should be called once by the embedding application at startup.

All scheduler modules should use the "app" namespace:
    import logging
    logger = logging.getLogger("app.module_name")

This keeps third-party library logs (e.g. the pulp solver) quiet while allowing
granular control over the scheduler's own logging level via the LOG_LEVEL
environment variable.
"""

import logging
import os
import sys

# App namespace prefix - all scheduler loggers should use this
APP_LOGGER_NAME = "app"


def get_env_log_level(default: int = logging.INFO) -> int:
    """Reads the LOG_LEVEL environment variable (e.g. "DEBUG"), falling back to default."""
    level_name = os.environ.get("LOG_LEVEL", "").strip().upper()
    if not level_name:
        return default
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else default


def setup_logging(app_level: int | None = None) -> None:
    """
    Configure logging for the application.

    - Root logger is set to WARNING (keeps third-party libraries quiet)
    - App namespace logger ("app.*") is set to the specified level

    This should be called ONCE at application startup (entry point).

    Args:
        app_level: The logging level for app modules. Defaults to LOG_LEVEL
            from the environment, or INFO.
    """
    if app_level is None:
        app_level = get_env_log_level()

    # Configure root logger to WARNING - silences third-party library noise
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    # Avoid adding duplicate handlers if setup is called multiple times
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)  # Handler accepts all; loggers filter

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(app_level)


def log_schedule_debug(
    logger: logging.Logger,
    num_candidates: int,
    chosen_index: int,
    candidate_scores: list[float],
    metrics,
    sitouts: list[str],
) -> None:
    """
    Log schedule selection debug information in a consistent format.

    Args:
        logger: Logger instance to use
        num_candidates: Number of candidate schedules that were scored
        chosen_index: Index of the winning candidate
        candidate_scores: Fitness score of every candidate, in generation order
        metrics: FairnessMetrics of the chosen schedule
        sitouts: Player ids sitting out
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug("Candidates Scored: %s", num_candidates)
    logger.debug("Candidate Scores: %s", [round(s, 3) for s in candidate_scores])
    logger.debug("Chosen Candidate: %s", chosen_index)
    logger.debug("Skill Balance: %s", metrics.skill_balance)
    logger.debug("Partner Diversity: %s", metrics.partner_diversity)
    logger.debug("Opponent Diversity: %s", metrics.opponent_diversity)
    logger.debug("Court Balance: %s", metrics.court_balance)
    logger.debug("Sit-out Balance: %s", metrics.sitout_balance)
    logger.debug("Overall Fairness: %s", metrics.overall_fairness)
    logger.debug("Sit-outs: %s", sitouts)
