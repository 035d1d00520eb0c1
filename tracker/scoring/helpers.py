"""
Scoring Helper Functions

Numeric utilities shared by consolidation, recommendations and reporting.
"""

import math
from typing import Sequence


def round_half_up(value: float) -> int:
    """Round to the nearest int with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def round_to(value: float, decimals: int) -> float:
    """Round half-up to a number of decimals."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def coverage_impact(frequency: int, rater_count: int) -> int:
    """
    Share of raters reporting an item, as a 0-100 impact score.

    Args:
        frequency: Number of raters reporting the item
        rater_count: Number of raters queried

    Returns:
        min(100, round(frequency / rater_count * 100)); 0 without raters
    """
    if rater_count <= 0:
        return 0
    return min(100, round_half_up(frequency / rater_count * 100))
