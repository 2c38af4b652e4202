"""
Navigator - Lesson sequencing, mastery gating, and review generation.

Provides:
- Mastery gate: lessons past the first block of ten unlock only after the
  preceding block's mastery review is passed
- Mastery review generation at milestone lessons (every tenth lesson)
- Next/previous lesson navigation
- Lesson list with status indicators for one material

Gate state is never stored: it is recomputed from progress records on every
call, so saving a review attempt takes effect on the next evaluation.
"""

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ispeaktu.schemas import (
    Lesson,
    LessonStatus,
    Material,
    ProgressRecord,
    ReminderRecord,
    meets_threshold,
)
from ispeaktu.utils.identity import mastery_review_lesson_id

from .analytics import material_completion, sanitize_records

BLOCK_SIZE = 10
REVIEW_QUESTIONS_PER_LESSON = 2
REVIEW_MAX_QUESTIONS = 20

REVIEW_REQUIRED = "Mastery Review Required"
REVIEW_NOT_PASSED = "Mastery Review Not Passed"


class LessonAvailability(str, Enum):
    """Lesson availability for UI display."""
    UNLOCKED = "unlocked"
    LOCKED = "locked"


@dataclass
class GateDecision:
    availability: LessonAvailability
    reason: Optional[str] = None

    @property
    def is_locked(self) -> bool:
        return self.availability == LessonAvailability.LOCKED


@dataclass
class NavigationLesson:
    """Lesson with navigation metadata."""
    index: int
    lesson: Lesson
    availability: LessonAvailability
    lock_reason: Optional[str]
    status: LessonStatus
    record: Optional[ProgressRecord]
    has_reminder: bool
    is_milestone: bool


# -----------------------------------------------------------------------------
# Mastery gate
# -----------------------------------------------------------------------------

def block_start(lesson_index: int) -> int:
    """Index of the first lesson in the block of ten containing lesson_index."""
    return (lesson_index // BLOCK_SIZE) * BLOCK_SIZE


def is_milestone(lesson_index: int) -> bool:
    """Every tenth lesson (indices 9, 19, 29, ...) is a mastery-review milestone."""
    return lesson_index >= 0 and (lesson_index + 1) % BLOCK_SIZE == 0


def find_review_record(
    records: Iterable[Any],
    student_id: str,
    block: int,
    material_id: Optional[str] = None,
) -> Optional[ProgressRecord]:
    """Get the student's mastery review record gating the block starting at `block`."""
    review_id = mastery_review_lesson_id(block)
    for record in sanitize_records(records):
        if record.student_id != student_id or record.lesson_id != review_id:
            continue
        if material_id is not None and record.material_id != material_id:
            continue
        return record
    return None


def lesson_gate(
    lesson_index: int,
    records: Iterable[Any],
    student_id: str,
    material_id: Optional[str] = None,
) -> GateDecision:
    """
    Decide whether a lesson is locked pending a mastery review.

    Only the review for the lesson's own block is consulted; the first
    block is never gated.

    Args:
        lesson_index: Zero-based position of the lesson in its material
        records: Progress records (malformed ones are ignored)
        student_id: Student to evaluate
        material_id: Restrict the review lookup to one material
    """
    block = block_start(lesson_index)
    if block <= 0:
        return GateDecision(LessonAvailability.UNLOCKED)

    review = find_review_record(records, student_id, block, material_id)
    if review is None:
        return GateDecision(LessonAvailability.LOCKED, REVIEW_REQUIRED)
    if not meets_threshold(review.score, review.total):
        return GateDecision(LessonAvailability.LOCKED, REVIEW_NOT_PASSED)
    return GateDecision(LessonAvailability.UNLOCKED)


# -----------------------------------------------------------------------------
# Review generation
# -----------------------------------------------------------------------------

def generate_mastery_review(
    lessons: Sequence[Lesson],
    milestone_index: int,
    rng: Optional[random.Random] = None,
    material_id: str = "",
) -> Lesson:
    """
    Synthesize a mastery review quiz for a milestone lesson.

    Samples two questions with replacement from each lesson in
    [max(0, m - 10), m) that has questions, in lesson order, capped at 20.
    The review is saved under the id of the block it unlocks (m + 1).

    Args:
        lessons: Ordered lessons of one material
        milestone_index: Milestone position m, where (m + 1) % 10 == 0
        rng: Random source; pass a seeded random.Random for reproducible draws
        material_id: Material the review belongs to

    Raises:
        ValueError: If milestone_index is not a milestone
    """
    if not is_milestone(milestone_index):
        raise ValueError(f"Lesson index {milestone_index} is not a mastery-review milestone")
    rng = rng or random.Random()

    start = max(0, milestone_index - BLOCK_SIZE)
    questions = []
    for lesson in lessons[start:milestone_index]:
        if not lesson.questions:
            continue
        for _ in range(REVIEW_QUESTIONS_PER_LESSON):
            questions.append(lesson.questions[rng.randrange(len(lesson.questions))])
    questions = questions[:REVIEW_MAX_QUESTIONS]

    return Lesson(
        id=mastery_review_lesson_id(milestone_index + 1),
        material_id=material_id,
        title=f"Mastery Review: Lessons {start + 1}-{milestone_index}",
        order_index=milestone_index,
        questions=questions,
        is_mastery_review=True,
    )


# -----------------------------------------------------------------------------
# Navigator
# -----------------------------------------------------------------------------

class Navigator:
    """
    Navigate one material's lessons for one student.

    Combines the material (content) with progress records and reminders
    (user state). Build a fresh Navigator after progress changes; it holds
    a snapshot of the records it was given.
    """

    def __init__(
        self,
        material: Material,
        records: Iterable[Any],
        student_id: str,
        reminders: Iterable[ReminderRecord] = (),
    ):
        """
        Initialize navigator.

        Args:
            material: Material with lessons in display order
            records: Progress records (any student; filtered here)
            student_id: Student being navigated
            reminders: Reminder records (any student; filtered here)
        """
        self.material = material
        self.student_id = student_id
        self.records = [
            r for r in sanitize_records(records)
            if r.student_id == student_id and r.material_id == material.id
        ]
        self._records_by_lesson = {r.lesson_id: r for r in self.records}
        self._reminded = {
            r.lesson_id for r in reminders if r.student_id == student_id
        }

    @property
    def total_lessons(self) -> int:
        return len(self.material.lessons)

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def get_lesson_availability(self, index: int) -> GateDecision:
        return lesson_gate(index, self.records, self.student_id, self.material.id)

    def is_lesson_available(self, index: int) -> bool:
        return not self.get_lesson_availability(index).is_locked

    def get_lesson_status(self, lesson_id: str) -> LessonStatus:
        record = self._records_by_lesson.get(lesson_id)
        return record.status if record else LessonStatus.NOT_STARTED

    def get_record(self, lesson_id: str) -> Optional[ProgressRecord]:
        return self._records_by_lesson.get(lesson_id)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def get_recommended_lesson_index(self) -> Optional[int]:
        """
        Get the lesson the student should take next.

        Priority:
        1. First unlocked lesson never attempted
        2. First unlocked lesson submitted but not verified
        3. First lesson
        """
        if not self.material.lessons:
            return None
        submitted = None
        for index, lesson in enumerate(self.material.lessons):
            if not self.is_lesson_available(index):
                continue
            status = self.get_lesson_status(lesson.id)
            if status == LessonStatus.NOT_STARTED:
                return index
            if status == LessonStatus.SUBMITTED and submitted is None:
                submitted = index
        return submitted if submitted is not None else 0

    def get_navigation_lessons(self) -> list[NavigationLesson]:
        """Get the material's lessons annotated with gate, status and reminders."""
        result = []
        for index, lesson in enumerate(self.material.lessons):
            decision = self.get_lesson_availability(index)
            result.append(NavigationLesson(
                index=index,
                lesson=lesson,
                availability=decision.availability,
                lock_reason=decision.reason,
                status=self.get_lesson_status(lesson.id),
                record=self.get_record(lesson.id),
                has_reminder=lesson.id in self._reminded,
                is_milestone=is_milestone(index),
            ))
        return result

    def get_status_indicator(self, index: int) -> str:
        """
        Get status indicator for lesson cards.

        Returns:
            ✓ for verified
            … for submitted, awaiting verification
            ○ for available
            ◌ for locked
        """
        if not self.is_lesson_available(index):
            return "◌"
        status = self.get_lesson_status(self.material.lessons[index].id)
        if status == LessonStatus.VERIFIED:
            return "✓"
        if status == LessonStatus.SUBMITTED:
            return "…"
        return "○"

    # -------------------------------------------------------------------------
    # Mastery reviews
    # -------------------------------------------------------------------------

    def get_review_record(self, milestone_index: int) -> Optional[ProgressRecord]:
        """Review record produced at a milestone (it gates the next block)."""
        return find_review_record(
            self.records, self.student_id, milestone_index + 1, self.material.id
        )

    def build_mastery_review(self, milestone_index: int, rng: Optional[random.Random] = None) -> Lesson:
        return generate_mastery_review(
            self.material.lessons, milestone_index, rng=rng, material_id=self.material.id
        )

    # -------------------------------------------------------------------------
    # Progress Summary
    # -------------------------------------------------------------------------

    def get_progress_summary(self) -> dict:
        """Get progress summary for display."""
        lesson_ids = {lesson.id for lesson in self.material.lessons}
        verified = sum(
            1 for r in self.records if r.verified and r.lesson_id in lesson_ids
        )
        return {
            "total_lessons": self.total_lessons,
            "verified": verified,
            "completion_percent": material_completion(self.material, self.records, self.student_id),
        }
