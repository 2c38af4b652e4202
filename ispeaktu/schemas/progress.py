"""
Progress tracking schemas for iSpeaktu.

Defines Pydantic models for student progress including:
- Per-question responses within an attempt
- Progress records (latest attempt per student/material/lesson)
- Teacher reminders
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator

from ispeaktu.utils.identity import is_mastery_review_id, progress_id
from ispeaktu.utils.rounding import percent_of

from .curriculum import Identifier, Text

# Pass mark for verification and the mastery gate, in percent.
PASS_PERCENT = 70


def meets_threshold(score: int, total: int) -> bool:
    """score/total >= 70%, compared in integers to avoid float edge cases."""
    return total > 0 and score * 100 >= PASS_PERCENT * total


class LessonStatus(str, Enum):
    NOT_STARTED = "not_started"
    SUBMITTED = "submitted"   # attempt saved, awaiting teacher verification
    VERIFIED = "verified"


class Response(BaseModel):
    question_index: int = Field(..., ge=0, validation_alias=AliasChoices("question_index", "questionIndex"))
    selected_option: str = Field(..., validation_alias=AliasChoices("selected_option", "selectedOption"))
    is_correct: bool = Field(..., validation_alias=AliasChoices("is_correct", "isCorrect"))


class ProgressRecord(BaseModel):
    """
    A student's latest attempt at one lesson.

    The id is derived from (student, material, lesson), so saving a retake
    overwrites the previous record instead of adding a new one.
    """
    id: Identifier
    student_id: Identifier = Field(..., validation_alias=AliasChoices("student_id", "studentId"))
    student_name: Text = Field(default="", validation_alias=AliasChoices("student_name", "studentName"))
    material_id: Identifier = Field(..., validation_alias=AliasChoices("material_id", "materialId"))
    lesson_id: Identifier = Field(..., validation_alias=AliasChoices("lesson_id", "lessonId"))
    score: int = Field(..., ge=0)
    total: int = Field(..., ge=1)
    verified: bool = False
    is_mastery_review: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_mastery_review", "isMasteryReview"),
    )
    responses: list[Response] = []
    updated_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))

    @model_validator(mode="after")
    def score_within_total(self):
        if self.score > self.total:
            raise ValueError(f"score {self.score} exceeds total {self.total}")
        if is_mastery_review_id(self.lesson_id):
            self.is_mastery_review = True
        return self

    @classmethod
    def for_attempt(
        cls,
        student_id: str,
        student_name: str,
        material_id: str,
        lesson_id: str,
        score: int,
        total: int,
        responses: list[Response],
    ) -> "ProgressRecord":
        """Build an unverified record for a freshly completed attempt."""
        return cls(
            id=progress_id(student_id, material_id, lesson_id),
            student_id=student_id,
            student_name=student_name,
            material_id=material_id,
            lesson_id=lesson_id,
            score=score,
            total=total,
            verified=False,
            responses=responses,
            updated_at=datetime.now(),
        )

    @property
    def fraction(self) -> float:
        return self.score / self.total

    @property
    def percent(self) -> int:
        return percent_of(self.score, self.total)

    @property
    def passed(self) -> bool:
        return meets_threshold(self.score, self.total)

    @property
    def status(self) -> LessonStatus:
        return LessonStatus.VERIFIED if self.verified else LessonStatus.SUBMITTED


class ReminderRecord(BaseModel):
    """Teacher nudge for one student/lesson pair; at most one per pair."""
    id: Identifier
    student_id: Identifier = Field(..., validation_alias=AliasChoices("student_id", "studentId"))
    lesson_id: Identifier = Field(..., validation_alias=AliasChoices("lesson_id", "lessonId"))
    material_id: Identifier = Field(default="", validation_alias=AliasChoices("material_id", "materialId"))
    sent_by: Text = Field(default="", validation_alias=AliasChoices("sent_by", "sentBy"))
    sent_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("sent_at", "sentAt"))
