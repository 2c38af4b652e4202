"""
QuizSession - One attempt at one lesson.

State machine:

    ANSWERING(i, selection?) --check_answer--> FEEDBACK_SHOWN(i)
    FEEDBACK_SHOWN(i) --advance--> ANSWERING(i + 1, None) | COMPLETED

Out-of-order calls raise InvalidTransition and leave the score untouched.
Abandoning a session needs no cleanup: nothing is persisted until
to_progress_record() is saved by the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ispeaktu.errors import EmptyLesson, InvalidTransition
from ispeaktu.schemas import Lesson, ProgressRecord, Question, Response

from .scoring import ScoreTier, calculate_percent, tier_for_percent


class SessionState(str, Enum):
    ANSWERING = "answering"
    FEEDBACK_SHOWN = "feedback_shown"
    COMPLETED = "completed"


@dataclass
class QuizResult:
    """Final outcome of a completed session."""
    score: int
    total: int
    responses: list[Response]

    @property
    def percent(self) -> int:
        return calculate_percent(self.score, self.total)

    @property
    def tier(self) -> ScoreTier:
        return tier_for_percent(self.percent)


class QuizSession:
    """
    Drive a single quiz attempt.

    Usage:
        session = QuizSession(lesson)
        session.select_option("went")
        session.check_answer()
        session.advance()
        ...
        record = session.to_progress_record(student_id, name, material_id)
    """

    def __init__(self, lesson: Lesson):
        """
        Start a session at the first question.

        Raises:
            EmptyLesson: If the lesson has no questions
        """
        if not lesson.questions:
            raise EmptyLesson(f"Lesson {lesson.id} has no questions")
        self.lesson = lesson
        self.state = SessionState.ANSWERING
        self.question_index = 0
        self.selected_option: Optional[str] = None
        self.score = 0
        self.responses: list[Response] = []

    @property
    def total(self) -> int:
        return len(self.lesson.questions)

    @property
    def current_question(self) -> Question:
        return self.lesson.questions[self.question_index]

    @property
    def is_completed(self) -> bool:
        return self.state == SessionState.COMPLETED

    @property
    def last_response(self) -> Optional[Response]:
        return self.responses[-1] if self.responses else None

    def _require(self, state: SessionState, action: str):
        if self.state != state:
            raise InvalidTransition(f"Cannot {action} while {self.state.value}")

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def select_option(self, option: str):
        """Set the pending selection. No scoring happens here."""
        self._require(SessionState.ANSWERING, "select an option")
        if option not in self.current_question.options:
            raise ValueError(f"Not an option for this question: {option!r}")
        self.selected_option = option

    def check_answer(self) -> bool:
        """
        Score the pending selection and show feedback.

        Returns:
            True if the selection was correct
        """
        self._require(SessionState.ANSWERING, "check an answer")
        if self.selected_option is None:
            raise InvalidTransition("Cannot check an answer before selecting an option")

        is_correct = self.current_question.is_correct(self.selected_option)
        if is_correct:
            self.score += 1
        self.responses.append(Response(
            question_index=self.question_index,
            selected_option=self.selected_option,
            is_correct=is_correct,
        ))
        self.state = SessionState.FEEDBACK_SHOWN
        return is_correct

    def advance(self) -> SessionState:
        """Move to the next question, or complete after the last one."""
        self._require(SessionState.FEEDBACK_SHOWN, "advance")
        if self.question_index + 1 < self.total:
            self.question_index += 1
            self.selected_option = None
            self.state = SessionState.ANSWERING
        else:
            self.state = SessionState.COMPLETED
        return self.state

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    @property
    def result(self) -> QuizResult:
        self._require(SessionState.COMPLETED, "read the result")
        return QuizResult(score=self.score, total=self.total, responses=list(self.responses))

    def to_progress_record(self, student_id: str, student_name: str, material_id: str) -> ProgressRecord:
        """
        Build the unverified progress record to save for this attempt.

        Raises:
            InvalidTransition: If the session is not completed
            ValueError: If the score falls outside 0..total
        """
        result = self.result
        if not 0 <= result.score <= result.total:
            raise ValueError(f"Score {result.score} outside 0..{result.total}")
        return ProgressRecord.for_attempt(
            student_id=student_id,
            student_name=student_name,
            material_id=material_id,
            lesson_id=self.lesson.id,
            score=result.score,
            total=result.total,
            responses=result.responses,
        )
