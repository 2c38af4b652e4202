"""
Shared builders for curriculum and progress test data.
"""

from datetime import datetime
from typing import Optional

import pytest

from ispeaktu.schemas import Lesson, Material, ProgressRecord, Question
from ispeaktu.utils.identity import progress_id


def build_question(question_id: str, lesson_id: str = "", correct: str = "b", order_index: int = 0) -> Question:
    return Question(
        id=question_id,
        lesson_id=lesson_id,
        text=f"Question {question_id}",
        options=["a", "b", "c"],
        correct_option=correct,
        feedback_text=f"Because {correct}.",
        order_index=order_index,
    )


def build_lesson(lesson_id: str, material_id: str = "m1", n_questions: int = 2, order_index: int = 0) -> Lesson:
    return Lesson(
        id=lesson_id,
        material_id=material_id,
        title=f"Lesson {lesson_id}",
        order_index=order_index,
        questions=[
            build_question(f"{lesson_id}_q{i}", lesson_id, order_index=i)
            for i in range(1, n_questions + 1)
        ],
    )


def build_material(material_id: str = "m1", n_lessons: int = 4, n_questions: int = 2) -> Material:
    """Material with lessons L1..Ln in order."""
    return Material(
        id=material_id,
        name=f"Material {material_id}",
        order_index=0,
        lessons=[
            build_lesson(f"L{i}", material_id, n_questions, order_index=i)
            for i in range(1, n_lessons + 1)
        ],
    )


def build_record(
    student_id: str,
    lesson_id: str,
    score: int,
    total: int = 10,
    verified: bool = False,
    material_id: str = "m1",
    student_name: Optional[str] = None,
    updated_at: Optional[datetime] = None,
) -> ProgressRecord:
    return ProgressRecord(
        id=progress_id(student_id, material_id, lesson_id),
        student_id=student_id,
        student_name=student_name if student_name is not None else student_id,
        material_id=material_id,
        lesson_id=lesson_id,
        score=score,
        total=total,
        verified=verified,
        updated_at=updated_at or datetime(2024, 1, 1, 12, 0),
    )


@pytest.fixture
def make_question():
    return build_question


@pytest.fixture
def make_lesson():
    return build_lesson


@pytest.fixture
def make_material():
    return build_material


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def material():
    return build_material("m1", n_lessons=4)


@pytest.fixture
def long_material():
    """25 lessons: two full blocks of ten plus five."""
    return build_material("m1", n_lessons=25, n_questions=3)
