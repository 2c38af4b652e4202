"""
Error types for iSpeaktu.

Aggregation code never raises these for dirty data (it skips bad records);
the quiz session and teacher actions raise them strictly.
"""


class IspeaktuError(Exception):
    """Base class for all iSpeaktu errors."""


class DataUnavailable(IspeaktuError):
    """The remote store could not be reached or returned an error."""


class InvalidTransition(IspeaktuError, ValueError):
    """A quiz session operation was invoked out of order."""


class EmptyLesson(IspeaktuError, ValueError):
    """A lesson without questions cannot be turned into a quiz."""


class MalformedRecord(IspeaktuError, ValueError):
    """A stored record is missing required fields or holds invalid values."""


class BelowThreshold(IspeaktuError):
    """A teacher tried to verify a submission scoring under the pass mark."""

    def __init__(self, progress_id: str, percent: int):
        self.progress_id = progress_id
        self.percent = percent
        super().__init__(
            f"Cannot verify {progress_id}: score {percent}% is below the 70% pass mark"
        )


class LessonLocked(IspeaktuError):
    """The mastery gate locks the requested lesson."""

    def __init__(self, lesson_id: str, reason: str):
        self.lesson_id = lesson_id
        self.reason = reason
        super().__init__(f"Lesson {lesson_id} is locked: {reason}")


class AccessDenied(IspeaktuError):
    """Login was refused (wrong teacher access code)."""
