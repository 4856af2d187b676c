# court_layouts.py
"""
Built-in court layouts and layout validation.

A layout lists the positions of one court, each tagged with the side it
belongs to. Matches store their players per side in layout position order.
"""

from app_types import CourtLayout, Position, TeamSide
from exceptions import ConfigurationError

TENNIS_DOUBLES_LAYOUT = CourtLayout(
    name="Tennis Doubles",
    sport="tennis",
    positions=(
        Position("a_deuce", TeamSide.A, "deuce"),
        Position("a_ad", TeamSide.A, "ad"),
        Position("b_deuce", TeamSide.B, "deuce"),
        Position("b_ad", TeamSide.B, "ad"),
    ),
)

TENNIS_SINGLES_LAYOUT = CourtLayout(
    name="Tennis Singles",
    sport="tennis",
    positions=(
        Position("a_center", TeamSide.A),
        Position("b_center", TeamSide.B),
    ),
)

PICKLEBALL_DOUBLES_LAYOUT = CourtLayout(
    name="Pickleball Doubles",
    sport="pickleball",
    positions=(
        Position("a_left", TeamSide.A, "left"),
        Position("a_right", TeamSide.A, "right"),
        Position("b_left", TeamSide.B, "left"),
        Position("b_right", TeamSide.B, "right"),
    ),
)

GENERIC_FIELD_LAYOUT = CourtLayout(
    name="Field",
    sport="generic",
    positions=(
        Position("a_pos1", TeamSide.A, "1"),
        Position("a_pos2", TeamSide.A, "2"),
        Position("a_pos3", TeamSide.A, "3"),
        Position("b_pos1", TeamSide.B, "1"),
        Position("b_pos2", TeamSide.B, "2"),
        Position("b_pos3", TeamSide.B, "3"),
    ),
)

DEFAULT_LAYOUT = TENNIS_DOUBLES_LAYOUT

_LAYOUTS = {
    "tennis_doubles": TENNIS_DOUBLES_LAYOUT,
    "tennis_singles": TENNIS_SINGLES_LAYOUT,
    "pickleball_doubles": PICKLEBALL_DOUBLES_LAYOUT,
    "generic_field": GENERIC_FIELD_LAYOUT,
}


def get_layout(key: str) -> CourtLayout:
    """Returns a built-in layout by key, e.g. "tennis_doubles"."""
    try:
        return _LAYOUTS[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown court layout '{key}'. Known layouts: {sorted(_LAYOUTS)}"
        ) from None


def validate_layout(layout: CourtLayout) -> CourtLayout:
    """Rejects layouts that cannot host a two-sided match.

    Raises:
        ConfigurationError: If either side has no positions, or position ids repeat.
    """
    if not layout.side_a or not layout.side_b:
        raise ConfigurationError(
            f"Court layout '{layout.name}' needs at least one position on each side "
            f"(A={len(layout.side_a)}, B={len(layout.side_b)})."
        )
    ids = [p.id for p in layout.positions]
    if len(ids) != len(set(ids)):
        raise ConfigurationError(f"Court layout '{layout.name}' repeats position ids.")
    return layout
