"""
Curriculum schemas for iSpeaktu.

Defines Pydantic models for the curriculum tree:
- Material: top-level grouping of lessons
- Lesson: ordered quiz unit within a material
- Question: multiple-choice question with feedback

Field names are snake_case (database rows); camelCase keys are accepted
on input so records from either source validate the same way.
"""

from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    Field,
    model_validator,
)


def _coerce_identifier(v: Any) -> Any:
    """Remote stores hand out integer or UUID keys; ids are compared as strings."""
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


def _none_to_empty(v: Any) -> Any:
    return "" if v is None else v


Identifier = Annotated[str, BeforeValidator(_coerce_identifier)]
Text = Annotated[str, BeforeValidator(_none_to_empty)]


class Question(BaseModel):
    id: Identifier
    lesson_id: Identifier = Field(default="", validation_alias=AliasChoices("lesson_id", "lessonId"))
    text: str
    options: list[str] = Field(..., min_length=2)
    correct_option: str = Field(..., validation_alias=AliasChoices("correct_option", "correctOption"))
    feedback_text: Text = Field(
        default="",
        validation_alias=AliasChoices("feedback_text", "feedbackText", "explanation"),
    )
    order_index: int = Field(default=0, validation_alias=AliasChoices("order_index", "orderIndex"))

    @model_validator(mode="after")
    def correct_option_is_unique_choice(self):
        matches = self.options.count(self.correct_option)
        if matches != 1:
            raise ValueError(
                f"correct_option must match exactly one option (matched {matches})"
            )
        return self

    def is_correct(self, option: str) -> bool:
        return option == self.correct_option


class Lesson(BaseModel):
    """
    A quiz unit within a material.

    A lesson's position in its material decides mastery-review membership;
    synthesized review lessons carry is_mastery_review=True.
    """
    id: Identifier
    material_id: Identifier = Field(default="", validation_alias=AliasChoices("material_id", "materialId"))
    title: Text = ""
    order_index: int = Field(default=0, validation_alias=AliasChoices("order_index", "orderIndex"))
    questions: list[Question] = []
    is_mastery_review: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_mastery_review", "isMasteryReview"),
    )

    @property
    def question_count(self) -> int:
        return len(self.questions)


class Material(BaseModel):
    id: Identifier
    name: Text = Field(default="", validation_alias=AliasChoices("name", "title"))
    description: Text = ""
    order_index: int = Field(default=0, validation_alias=AliasChoices("order_index", "orderIndex"))
    lessons: list[Lesson] = []

    def lesson_index(self, lesson_id: str) -> int:
        """Zero-based position of a lesson in this material, or -1."""
        for idx, lesson in enumerate(self.lessons):
            if lesson.id == lesson_id:
                return idx
        return -1

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        idx = self.lesson_index(lesson_id)
        return self.lessons[idx] if idx >= 0 else None
