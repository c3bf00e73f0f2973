"""Level derivation from total points.

Levels advance every ``points_per_level`` points; names past the last
entry stay at the last entry.
"""

from __future__ import annotations

LEVEL_NAMES: list[str] = ["Novice", "Apprentice", "Expert", "Master", "Legend"]

DEFAULT_POINTS_PER_LEVEL = 1000


def compute_level(total_points: int, points_per_level: int = DEFAULT_POINTS_PER_LEVEL) -> dict:
    """Compute level info from total points."""
    if total_points < 0:
        total_points = 0
    level = total_points // points_per_level + 1
    name = LEVEL_NAMES[min(level - 1, len(LEVEL_NAMES) - 1)]
    return {
        "level": level,
        "name": name,
        "points_into_level": total_points - (level - 1) * points_per_level,
        "points_for_level": points_per_level,
    }
