"""
Deterministic identifiers for students, progress records and reminders.

These formats are shared with records already stored remotely and must not
change:

    student uid       user_<lowercased, trimmed name, whitespace -> "_">
    progress id       <student uid>_<material id>_<lesson id>
    reminder id       <student id>_<lesson id>
    mastery review    mastery_review_<block start index>
"""

import re

MASTERY_REVIEW_PREFIX = "mastery_review_"

_WHITESPACE_RUN = re.compile(r"\s+")


def student_uid(display_name: str) -> str:
    """Derive the student uid from a display name."""
    clean = _WHITESPACE_RUN.sub("_", display_name.strip().lower())
    return f"user_{clean}"


def progress_id(student_id: str, material_id: str, lesson_id: str) -> str:
    """Progress records are keyed per (student, material, lesson) so resubmission overwrites."""
    return f"{student_id}_{material_id}_{lesson_id}"


def reminder_id(student_id: str, lesson_id: str) -> str:
    return f"{student_id}_{lesson_id}"


def mastery_review_lesson_id(block_start: int) -> str:
    """Synthetic lesson id of the review that gates the block starting at `block_start`."""
    return f"{MASTERY_REVIEW_PREFIX}{block_start}"


def is_mastery_review_id(lesson_id: str) -> bool:
    return str(lesson_id).startswith(MASTERY_REVIEW_PREFIX)
