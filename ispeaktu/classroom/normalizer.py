"""
Curriculum normalizer - Turn raw fetched curriculum rows into ordered models.

Runs once at the data-access boundary:
- Missing order_index becomes 0 (stable sort keeps fetch order for ties)
- Missing or malformed nested lists become empty lists
- Malformed entries are skipped and logged, never raised
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from ispeaktu.schemas import Lesson, Material, Question

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _as_dict(raw: Any) -> Optional[dict]:
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return dict(raw)
    return None


def _order_index(data: dict) -> int:
    value = data.get("order_index", data.get("orderIndex"))
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _resolve_correct_option(data: dict) -> dict:
    """Accept an integer `correct` index into options in place of correct_option text."""
    if data.get("correct_option") is not None or data.get("correctOption") is not None:
        return data
    idx = data.get("correct")
    options = data.get("options")
    if (
        isinstance(idx, int)
        and not isinstance(idx, bool)
        and isinstance(options, list)
        and 0 <= idx < len(options)
    ):
        data["correct_option"] = options[idx]
    return data


def normalize_question(raw: Any, lesson_id: str = "") -> Optional[Question]:
    """Validate one question row. Returns None if it cannot be used."""
    data = _as_dict(raw)
    if data is None:
        return None
    data["order_index"] = _order_index(data)
    if lesson_id and not (data.get("lesson_id") or data.get("lessonId")):
        data["lesson_id"] = lesson_id
    data = _resolve_correct_option(data)
    try:
        return Question.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed question {data.get('id')!r}: {e.error_count()} error(s)")
        return None


def normalize_lesson(raw: Any, material_id: str = "") -> Optional[Lesson]:
    """Validate one lesson row with its questions sorted by order_index."""
    data = _as_dict(raw)
    if data is None:
        return None
    lesson_id = data.get("id")
    questions = [
        q for q in (
            normalize_question(item, str(lesson_id) if lesson_id is not None else "")
            for item in _as_list(data.get("questions"))
        )
        if q is not None
    ]
    data["questions"] = sorted(questions, key=lambda q: q.order_index)
    data["order_index"] = _order_index(data)
    if material_id and not (data.get("material_id") or data.get("materialId")):
        data["material_id"] = material_id
    try:
        return Lesson.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed lesson {lesson_id!r}: {e.error_count()} error(s)")
        return None


def normalize_material(raw: Any) -> Optional[Material]:
    """Validate one material row with its lessons sorted by order_index."""
    data = _as_dict(raw)
    if data is None:
        return None
    material_id = data.get("id")
    lessons = [
        lesson for lesson in (
            normalize_lesson(item, str(material_id) if material_id is not None else "")
            for item in _as_list(data.get("lessons"))
        )
        if lesson is not None
    ]
    data["lessons"] = sorted(lessons, key=lambda lesson: lesson.order_index)
    data["order_index"] = _order_index(data)
    try:
        return Material.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed material {material_id!r}: {e.error_count()} error(s)")
        return None


def normalize_curriculum(raw_materials: Any) -> list[Material]:
    """
    Normalize a fetched curriculum.

    Args:
        raw_materials: List of material rows with nested lessons/questions
            (dicts or models). Anything that is not a list is treated as empty.

    Returns:
        Materials sorted by order_index, each with lessons and questions
        sorted the same way.
    """
    materials = [
        m for m in (normalize_material(item) for item in _as_list(raw_materials))
        if m is not None
    ]
    return sorted(materials, key=lambda m: m.order_index)


def find_material(materials: Iterable[Material], material_id: str) -> Optional[Material]:
    for material in materials:
        if material.id == material_id:
            return material
    return None


def index_lessons(materials: Iterable[Material]) -> dict[str, tuple[Material, Lesson]]:
    """Map lesson id -> (material, lesson) for title lookups."""
    index = {}
    for material in materials:
        for lesson in material.lessons:
            index.setdefault(lesson.id, (material, lesson))
    return index
