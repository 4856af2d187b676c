# exceptions.py
"""
Custom exceptions for the league scheduler.

This module defines domain-specific exceptions for better error handling
and debugging throughout the scheduling engine. Expected edge cases (small
player pools, partially filled matches, no candidate within skill tolerance)
are not exceptions; they are handled where they occur.
"""


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""

    pass


class ConfigurationError(SchedulerError):
    """Raised when a court layout or court grid cannot host a two-sided match."""

    pass


class ValidationError(SchedulerError):
    """Raised when input validation fails."""

    pass


class InvariantViolationError(SchedulerError):
    """Raised when a produced schedule double-books a player.

    This always indicates a bug in the engine and is never recovered from.
    """

    pass


class OptimizerError(SchedulerError):
    """Raised when the ILP solver fails to find a solution."""

    pass
