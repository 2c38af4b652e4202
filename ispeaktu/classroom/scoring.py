"""
Score percentages and feedback tiers.

The tiers partition 0-100 into contiguous, non-overlapping inclusive ranges,
so every integer percent maps to exactly one tier.
"""

from dataclasses import dataclass

from ispeaktu.utils.rounding import percent_of


@dataclass(frozen=True)
class ScoreTier:
    name: str
    low: int
    high: int
    title: str
    message: str

    def contains(self, percent: int) -> bool:
        return self.low <= percent <= self.high


SCORE_TIERS: tuple[ScoreTier, ...] = (
    ScoreTier("BEGINNER", 0, 39, "Keep Practicing",
              "Review the lesson notes and try again. Every attempt builds your foundation."),
    ScoreTier("ELEMENTARY", 40, 54, "Getting There",
              "You know some of this already. Focus on the explanations for the questions you missed."),
    ScoreTier("INTERMEDIATE", 55, 69, "Almost There",
              "So close to the 70% mark. One more focused attempt should do it."),
    ScoreTier("PROFICIENT", 70, 84, "Well Done",
              "You passed! Your teacher can now verify this lesson."),
    ScoreTier("MASTERY", 85, 100, "Outstanding",
              "Excellent command of this lesson. Keep the momentum going."),
)


def tier_for_percent(percent: int) -> ScoreTier:
    """
    Get the feedback tier for a percent score.

    Raises:
        ValueError: If percent is outside 0-100
    """
    for tier in SCORE_TIERS:
        if tier.contains(percent):
            return tier
    raise ValueError(f"Percent out of range: {percent}")


def calculate_percent(score: int, total: int) -> int:
    """Rounded (half up) percent; a zero total scores 0."""
    return percent_of(score, total)
