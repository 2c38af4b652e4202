"""
Analytics - Progress aggregation and failure-rate reporting.

Provides:
- Per-material completion (teacher-verified lessons only)
- Average score, quizzes taken and leaderboard rank per student
- Per-lesson failure rates for the teacher report
- Pending-submission queue for teacher review

All functions are total over dirty input: records that fail validation are
logged and skipped, never raised.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from ispeaktu.errors import MalformedRecord
from ispeaktu.schemas import Material, ProgressRecord, ReminderRecord, meets_threshold
from ispeaktu.utils.rounding import percent_of, round_half_up

from .normalizer import index_lessons

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardEntry:
    """One student's standing by number of verified lessons."""
    rank: int
    student_id: str
    student_name: str
    verified_lessons: int


@dataclass
class LessonFailureRate:
    """Historical failure rate for one lesson across all students."""
    lesson_id: str
    name: str
    material_name: str
    failure_rate: float
    total_attempts: int
    failed_attempts: int


@dataclass
class StudentSummary:
    """Dashboard figures for one student."""
    student_id: str
    average_score: int
    rank: int
    total_students: int
    quizzes_taken: int
    completion: dict[str, int] = field(default_factory=dict)  # material id -> percent


# -----------------------------------------------------------------------------
# Record sanitizing
# -----------------------------------------------------------------------------

def parse_progress_record(raw: Any) -> ProgressRecord:
    """
    Validate a single raw progress record.

    Raises:
        MalformedRecord: If required fields are missing or invalid
    """
    if isinstance(raw, ProgressRecord):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedRecord(f"Progress record must be a mapping, got {type(raw).__name__}")
    try:
        return ProgressRecord.model_validate(dict(raw))
    except ValidationError as e:
        raise MalformedRecord(f"Malformed progress record {raw.get('id')!r}: {e.error_count()} error(s)") from e


def sanitize_records(records: Optional[Iterable[Any]]) -> list[ProgressRecord]:
    """Validate records, dropping malformed ones."""
    result = []
    for raw in records or []:
        try:
            result.append(parse_progress_record(raw))
        except MalformedRecord as e:
            logger.warning(f"Excluding record from aggregation: {e}")
    return result


def sanitize_reminders(reminders: Optional[Iterable[Any]]) -> list[ReminderRecord]:
    """Validate reminder rows, dropping malformed ones."""
    result = []
    for raw in reminders or []:
        if isinstance(raw, ReminderRecord):
            result.append(raw)
        elif not isinstance(raw, Mapping):
            logger.warning(f"Skipping reminder that is not a mapping: {raw!r}")
        else:
            try:
                result.append(ReminderRecord.model_validate(dict(raw)))
            except ValidationError as e:
                logger.warning(f"Skipping malformed reminder {raw.get('id')!r}: {e.error_count()} error(s)")
    return result


def _student_records(records: Iterable[Any], student_id: str) -> list[ProgressRecord]:
    return [r for r in sanitize_records(records) if r.student_id == student_id]


def _verified_lessons_by_student(records: list[ProgressRecord]) -> dict[str, set[str]]:
    verified: dict[str, set[str]] = defaultdict(set)
    for record in records:
        if record.verified:
            verified[record.student_id].add(record.lesson_id)
    return verified


# -----------------------------------------------------------------------------
# Progress aggregation
# -----------------------------------------------------------------------------

def material_completion(material: Material, records: Iterable[Any], student_id: str) -> int:
    """
    Percent of a material's lessons the student has had verified.

    Returns 0 for a material without lessons.
    """
    if not material.lessons:
        return 0
    lesson_ids = {lesson.id for lesson in material.lessons}
    verified = {
        r.lesson_id
        for r in _student_records(records, student_id)
        if r.verified and r.material_id == material.id and r.lesson_id in lesson_ids
    }
    return percent_of(len(verified), len(material.lessons))


def average_score(records: Iterable[Any], student_id: str) -> int:
    """Mean of score/total over the student's records, as a rounded percent."""
    own = _student_records(records, student_id)
    if not own:
        return 0
    return round_half_up(sum(r.fraction for r in own) / len(own) * 100)


def total_quizzes_taken(records: Iterable[Any], student_id: str) -> int:
    """Distinct verified lessons; retakes overwrite the same record so count once."""
    return len({r.lesson_id for r in _student_records(records, student_id) if r.verified})


def leaderboard(records: Iterable[Any]) -> list[LeaderboardEntry]:
    """
    Rank students by count of distinct verified lessons, descending.

    Ties share a rank and are listed by student id; the following rank
    skips accordingly (5, 5, 2 -> ranks 1, 1, 3). Only students with at
    least one verified lesson appear.
    """
    clean = sanitize_records(records)
    names = {r.student_id: r.student_name for r in clean}
    verified = _verified_lessons_by_student(clean)

    ordered = sorted(verified.items(), key=lambda item: (-len(item[1]), item[0]))
    entries = []
    previous_count = None
    rank = 0
    for position, (student_id, lessons) in enumerate(ordered, start=1):
        if len(lessons) != previous_count:
            rank = position
            previous_count = len(lessons)
        entries.append(LeaderboardEntry(
            rank=rank,
            student_id=student_id,
            student_name=names.get(student_id, ""),
            verified_lessons=len(lessons),
        ))
    return entries


def leaderboard_rank(records: Iterable[Any], student_id: str) -> tuple[int, int]:
    """
    Get (rank, total students) for a student.

    A student with no verified lessons ranks after everyone: (total + 1, total).
    """
    entries = leaderboard(records)
    for entry in entries:
        if entry.student_id == student_id:
            return entry.rank, len(entries)
    return len(entries) + 1, len(entries)


def student_summary(
    materials: Iterable[Material],
    records: Iterable[Any],
    student_id: str,
    ranking_records: Optional[Iterable[Any]] = None,
) -> StudentSummary:
    """
    Collect the dashboard figures for one student.

    Rank is computed over ranking_records (the whole class) when given,
    otherwise over records.
    """
    clean = sanitize_records(records)
    ranked = clean if ranking_records is None else sanitize_records(ranking_records)
    rank, total_students = leaderboard_rank(ranked, student_id)
    return StudentSummary(
        student_id=student_id,
        average_score=average_score(clean, student_id),
        rank=rank,
        total_students=total_students,
        quizzes_taken=total_quizzes_taken(clean, student_id),
        completion={m.id: material_completion(m, clean, student_id) for m in materials},
    )


# -----------------------------------------------------------------------------
# Teacher analytics
# -----------------------------------------------------------------------------

def failure_rates(records: Iterable[Any], materials: Iterable[Material]) -> list[LessonFailureRate]:
    """
    Per-lesson failure rates across all students, worst first.

    A failed attempt scores under 70%. Mastery-review records are excluded
    and lessons without attempts are omitted.
    """
    lookup = index_lessons(materials)
    attempts: dict[str, int] = defaultdict(int)
    failures: dict[str, int] = defaultdict(int)
    for record in sanitize_records(records):
        if record.is_mastery_review:
            continue
        attempts[record.lesson_id] += 1
        if not meets_threshold(record.score, record.total):
            failures[record.lesson_id] += 1

    rates = []
    for lesson_id, total in attempts.items():
        material, lesson = lookup.get(lesson_id, (None, None))
        failed = failures[lesson_id]
        rates.append(LessonFailureRate(
            lesson_id=lesson_id,
            name=lesson.title if lesson else lesson_id,
            material_name=material.name if material else "",
            failure_rate=failed / total,
            total_attempts=total,
            failed_attempts=failed,
        ))
    rates.sort(key=lambda r: (-r.failure_rate, -r.total_attempts, r.lesson_id))
    return rates


def pending_submissions(
    records: Iterable[Any],
    materials: Iterable[Material],
    search: str = "",
) -> list[ProgressRecord]:
    """
    Unverified lesson submissions awaiting teacher review, newest first.

    Args:
        records: Progress records (all students)
        materials: Curriculum, for lesson title search
        search: Case-insensitive filter on student name or lesson title
    """
    lookup = index_lessons(materials)
    needle = search.strip().casefold()

    def matches(record: ProgressRecord) -> bool:
        if not needle:
            return True
        _, lesson = lookup.get(record.lesson_id, (None, None))
        title = lesson.title if lesson else record.lesson_id
        return needle in record.student_name.casefold() or needle in title.casefold()

    pending = [
        r for r in sanitize_records(records)
        if not r.verified and not r.is_mastery_review and matches(r)
    ]
    pending.sort(key=lambda r: r.updated_at.timestamp() if r.updated_at else 0.0, reverse=True)
    return pending


def student_roster(records: Iterable[Any]) -> list[tuple[str, str]]:
    """(student id, display name) pairs seen in progress data, sorted by name."""
    names: dict[str, str] = {}
    for record in sanitize_records(records):
        names[record.student_id] = record.student_name or record.student_id
    return sorted(names.items(), key=lambda item: (item[1].casefold(), item[0]))
