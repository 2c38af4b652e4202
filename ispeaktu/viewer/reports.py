"""
Report tables - Teacher analytics as pandas DataFrames for display and CSV export.
"""

import pandas as pd

from ispeaktu.classroom.analytics import LeaderboardEntry, LessonFailureRate
from ispeaktu.classroom.normalizer import index_lessons
from ispeaktu.schemas import Material, ProgressRecord

FAILURE_COLUMNS = ["Lesson", "Material", "Failure rate (%)", "Failed", "Attempts"]
LEADERBOARD_COLUMNS = ["Rank", "Student", "Verified lessons"]
PENDING_COLUMNS = ["Student", "Material", "Lesson", "Score", "Percent", "Submitted"]


def failure_rates_frame(rates: list[LessonFailureRate]) -> pd.DataFrame:
    """Failure-rate report, worst lesson first."""
    rows = [
        {
            "Lesson": r.name,
            "Material": r.material_name,
            "Failure rate (%)": round(r.failure_rate * 100, 1),
            "Failed": r.failed_attempts,
            "Attempts": r.total_attempts,
        }
        for r in rates
    ]
    return pd.DataFrame(rows, columns=FAILURE_COLUMNS)


def leaderboard_frame(entries: list[LeaderboardEntry]) -> pd.DataFrame:
    rows = [
        {
            "Rank": e.rank,
            "Student": e.student_name or e.student_id,
            "Verified lessons": e.verified_lessons,
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=LEADERBOARD_COLUMNS)


def pending_frame(records: list[ProgressRecord], materials: list[Material]) -> pd.DataFrame:
    """Pending submissions with lesson and material titles resolved."""
    lookup = index_lessons(materials)
    rows = []
    for record in records:
        material, lesson = lookup.get(record.lesson_id, (None, None))
        rows.append({
            "Student": record.student_name or record.student_id,
            "Material": material.name if material else record.material_id,
            "Lesson": lesson.title if lesson else record.lesson_id,
            "Score": f"{record.score}/{record.total}",
            "Percent": record.percent,
            "Submitted": record.updated_at.strftime("%Y-%m-%d %H:%M") if record.updated_at else "",
        })
    return pd.DataFrame(rows, columns=PENDING_COLUMNS)


def to_csv_bytes(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")
