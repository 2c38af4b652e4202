"""Percent rounding shared by scores, averages and completion figures."""

import math


def round_half_up(value: float) -> int:
    """Round .5 upward (62.5 -> 63), unlike Python's round-half-even."""
    return math.floor(value + 0.5)


def percent_of(part: float, whole: float) -> int:
    """Rounded percent of part in whole; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part * 100 / whole)
