"""iSpeaktu utilities."""

from .rounding import round_half_up, percent_of
from .identity import (
    MASTERY_REVIEW_PREFIX,
    student_uid,
    progress_id,
    reminder_id,
    mastery_review_lesson_id,
    is_mastery_review_id,
)

__all__ = [
    "round_half_up",
    "percent_of",
    "MASTERY_REVIEW_PREFIX",
    "student_uid",
    "progress_id",
    "reminder_id",
    "mastery_review_lesson_id",
    "is_mastery_review_id",
]
