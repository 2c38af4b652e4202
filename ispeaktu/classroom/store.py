"""
Progress stores - Data access for curriculum, progress and reminders.

ProgressStore is the narrow interface the app depends on. SQLiteStore
keeps everything in a local SQLite file; SupabaseStore (supabase_store.py)
talks to a hosted database with the same tables.

Every write is an upsert keyed by a deterministic id, so repeating a write
never duplicates a record and concurrent writers resolve last-write-wins.
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from ispeaktu.errors import DataUnavailable
from ispeaktu.schemas import Material, ProgressRecord, ReminderRecord

from .analytics import sanitize_records, sanitize_reminders
from .normalizer import normalize_curriculum

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data/ispeaktu.db")


def _decode_options(raw: Optional[str], question_id) -> list:
    """Options column as a list; unreadable values become [] so the question is dropped."""
    try:
        options = json.loads(raw or "[]")
    except ValueError:
        logger.warning(f"Unreadable options for question {question_id!r}")
        return []
    return options if isinstance(options, list) else []


class ProgressStore(ABC):
    """Remote store interface. Fetches raise DataUnavailable when unreachable."""

    @abstractmethod
    def fetch_curriculum(self) -> list[Material]:
        """Materials with nested lessons and questions, normalized and ordered."""

    @abstractmethod
    def fetch_progress(
        self,
        student_id: Optional[str] = None,
        material_id: Optional[str] = None,
    ) -> list[ProgressRecord]:
        """Progress records, optionally filtered. Malformed rows are skipped."""

    @abstractmethod
    def fetch_reminders(self, student_id: Optional[str] = None) -> list[ReminderRecord]:
        """Reminder records, optionally for one student."""

    @abstractmethod
    def upsert_progress(self, record: ProgressRecord):
        """Insert or overwrite by record id. A verified record stays verified."""

    @abstractmethod
    def upsert_reminder(self, record: ReminderRecord):
        """Insert or overwrite the reminder for (student, lesson)."""

    @abstractmethod
    def delete_reminder(self, student_id: str, lesson_id: str):
        """Remove the reminder for (student, lesson) if one exists."""

    @abstractmethod
    def set_verified(self, progress_id: str, verified: bool = True):
        """Mark a record verified. Never clears an existing verification."""

    def get_progress(self, progress_id: str) -> Optional[ProgressRecord]:
        for record in self.fetch_progress():
            if record.id == progress_id:
                return record
        return None


class SQLiteStore(ProgressStore):
    """
    Store curriculum and progress in a SQLite database.

    Each method opens its own connection, so one instance can be shared
    across Streamlit reruns.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            db_path: Path to the database file (default: data/ispeaktu.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS materials (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    order_index INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS lessons (
                    id TEXT PRIMARY KEY,
                    material_id TEXT NOT NULL REFERENCES materials(id),
                    title TEXT,
                    order_index INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS questions (
                    id TEXT PRIMARY KEY,
                    lesson_id TEXT NOT NULL REFERENCES lessons(id),
                    text TEXT NOT NULL,
                    options JSON NOT NULL DEFAULT '[]',
                    correct_option TEXT NOT NULL,
                    feedback_text TEXT,
                    order_index INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS progress (
                    id TEXT PRIMARY KEY,
                    student_id TEXT NOT NULL,
                    student_name TEXT,
                    material_id TEXT NOT NULL,
                    lesson_id TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    total INTEGER NOT NULL,
                    verified INTEGER NOT NULL DEFAULT 0,
                    is_mastery_review INTEGER NOT NULL DEFAULT 0,
                    responses JSON NOT NULL DEFAULT '[]',
                    updated_at TEXT
                );

                CREATE TABLE IF NOT EXISTS reminders (
                    id TEXT PRIMARY KEY,
                    student_id TEXT NOT NULL,
                    lesson_id TEXT NOT NULL,
                    material_id TEXT,
                    sent_by TEXT,
                    sent_at TEXT,
                    UNIQUE (student_id, lesson_id)
                );

                CREATE INDEX IF NOT EXISTS idx_lessons_material ON lessons(material_id);
                CREATE INDEX IF NOT EXISTS idx_questions_lesson ON questions(lesson_id);
                CREATE INDEX IF NOT EXISTS idx_progress_student ON progress(student_id);
                CREATE INDEX IF NOT EXISTS idx_reminders_student ON reminders(student_id);
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    # -------------------------------------------------------------------------
    # Curriculum
    # -------------------------------------------------------------------------

    def fetch_curriculum(self) -> list[Material]:
        conn = self._get_connection()
        try:
            materials = [dict(row) for row in conn.execute(
                "SELECT id, name, description, order_index FROM materials ORDER BY rowid"
            )]
            lessons = [dict(row) for row in conn.execute(
                "SELECT id, material_id, title, order_index FROM lessons ORDER BY rowid"
            )]
            questions = [dict(row) for row in conn.execute(
                """SELECT id, lesson_id, text, options, correct_option, feedback_text, order_index
                   FROM questions ORDER BY rowid"""
            )]
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not read curriculum from {self.db_path}: {e}") from e
        finally:
            conn.close()

        questions_by_lesson: dict[str, list[dict]] = {}
        for question in questions:
            question["options"] = _decode_options(question["options"], question["id"])
            questions_by_lesson.setdefault(question["lesson_id"], []).append(question)

        lessons_by_material: dict[str, list[dict]] = {}
        for lesson in lessons:
            lesson["questions"] = questions_by_lesson.get(lesson["id"], [])
            lessons_by_material.setdefault(lesson["material_id"], []).append(lesson)

        for material in materials:
            material["lessons"] = lessons_by_material.get(material["id"], [])

        return normalize_curriculum(materials)

    def seed_curriculum(self, materials: Iterable[Material]):
        """Write materials, lessons and questions, overwriting rows with the same ids."""
        conn = self._get_connection()
        try:
            for material in materials:
                conn.execute(
                    """INSERT INTO materials (id, name, description, order_index)
                       VALUES (?, ?, ?, ?)
                       ON CONFLICT(id) DO UPDATE SET
                         name = excluded.name,
                         description = excluded.description,
                         order_index = excluded.order_index""",
                    (material.id, material.name, material.description, material.order_index)
                )
                for lesson in material.lessons:
                    conn.execute(
                        """INSERT INTO lessons (id, material_id, title, order_index)
                           VALUES (?, ?, ?, ?)
                           ON CONFLICT(id) DO UPDATE SET
                             material_id = excluded.material_id,
                             title = excluded.title,
                             order_index = excluded.order_index""",
                        (lesson.id, material.id, lesson.title, lesson.order_index)
                    )
                    for question in lesson.questions:
                        conn.execute(
                            """INSERT INTO questions
                                 (id, lesson_id, text, options, correct_option, feedback_text, order_index)
                               VALUES (?, ?, ?, ?, ?, ?, ?)
                               ON CONFLICT(id) DO UPDATE SET
                                 lesson_id = excluded.lesson_id,
                                 text = excluded.text,
                                 options = excluded.options,
                                 correct_option = excluded.correct_option,
                                 feedback_text = excluded.feedback_text,
                                 order_index = excluded.order_index""",
                            (
                                question.id,
                                lesson.id,
                                question.text,
                                json.dumps(question.options, ensure_ascii=False),
                                question.correct_option,
                                question.feedback_text,
                                question.order_index,
                            )
                        )
            conn.commit()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not seed curriculum into {self.db_path}: {e}") from e
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def fetch_progress(
        self,
        student_id: Optional[str] = None,
        material_id: Optional[str] = None,
    ) -> list[ProgressRecord]:
        clauses = []
        params = []
        if student_id is not None:
            clauses.append("student_id = ?")
            params.append(student_id)
        if material_id is not None:
            clauses.append("material_id = ?")
            params.append(material_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_connection()
        try:
            rows = conn.execute(
                f"""SELECT id, student_id, student_name, material_id, lesson_id, score, total,
                           verified, is_mastery_review, responses, updated_at
                    FROM progress {where}
                    ORDER BY rowid""",
                params
            ).fetchall()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not read progress from {self.db_path}: {e}") from e
        finally:
            conn.close()

        raw = []
        for row in rows:
            data = dict(row)
            data["verified"] = bool(data["verified"])
            data["is_mastery_review"] = bool(data["is_mastery_review"])
            try:
                data["responses"] = json.loads(data["responses"] or "[]")
            except json.JSONDecodeError:
                data["responses"] = None  # fails validation, record is skipped
            raw.append(data)
        return sanitize_records(raw)

    def get_progress(self, progress_id: str) -> Optional[ProgressRecord]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT student_id FROM progress WHERE id = ?", (progress_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not read progress from {self.db_path}: {e}") from e
        finally:
            conn.close()
        if not row:
            return None
        for record in self.fetch_progress(student_id=row["student_id"]):
            if record.id == progress_id:
                return record
        return None

    def upsert_progress(self, record: ProgressRecord):
        updated_at = (record.updated_at or datetime.now()).isoformat()
        responses = json.dumps([r.model_dump() for r in record.responses], ensure_ascii=False)
        conn = self._get_connection()
        try:
            conn.execute(
                """INSERT INTO progress
                     (id, student_id, student_name, material_id, lesson_id, score, total,
                      verified, is_mastery_review, responses, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                     student_name = excluded.student_name,
                     score = excluded.score,
                     total = excluded.total,
                     verified = MAX(verified, excluded.verified),
                     is_mastery_review = excluded.is_mastery_review,
                     responses = excluded.responses,
                     updated_at = excluded.updated_at""",
                (
                    record.id,
                    record.student_id,
                    record.student_name,
                    record.material_id,
                    record.lesson_id,
                    record.score,
                    record.total,
                    int(record.verified),
                    int(record.is_mastery_review),
                    responses,
                    updated_at,
                )
            )
            conn.commit()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not save progress {record.id}: {e}") from e
        finally:
            conn.close()
        logger.info(f"Saved progress {record.id} ({record.score}/{record.total})")

    def set_verified(self, progress_id: str, verified: bool = True):
        if not verified:
            logger.debug(f"Ignoring request to clear verification on {progress_id}")
            return
        conn = self._get_connection()
        try:
            conn.execute("UPDATE progress SET verified = 1 WHERE id = ?", (progress_id,))
            conn.commit()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not verify progress {progress_id}: {e}") from e
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def fetch_reminders(self, student_id: Optional[str] = None) -> list[ReminderRecord]:
        conn = self._get_connection()
        try:
            if student_id is None:
                rows = conn.execute(
                    """SELECT id, student_id, lesson_id, material_id, sent_by, sent_at
                       FROM reminders ORDER BY rowid"""
                ).fetchall()
            else:
                rows = conn.execute(
                    """SELECT id, student_id, lesson_id, material_id, sent_by, sent_at
                       FROM reminders WHERE student_id = ? ORDER BY rowid""",
                    (student_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not read reminders from {self.db_path}: {e}") from e
        finally:
            conn.close()
        return sanitize_reminders(dict(row) for row in rows)

    def upsert_reminder(self, record: ReminderRecord):
        sent_at = (record.sent_at or datetime.now()).isoformat()
        conn = self._get_connection()
        try:
            conn.execute(
                """INSERT INTO reminders (id, student_id, lesson_id, material_id, sent_by, sent_at)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(student_id, lesson_id) DO UPDATE SET
                     material_id = excluded.material_id,
                     sent_by = excluded.sent_by,
                     sent_at = excluded.sent_at""",
                (record.id, record.student_id, record.lesson_id,
                 record.material_id, record.sent_by, sent_at)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not save reminder {record.id}: {e}") from e
        finally:
            conn.close()

    def delete_reminder(self, student_id: str, lesson_id: str):
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM reminders WHERE student_id = ? AND lesson_id = ?",
                (student_id, lesson_id)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Could not delete reminder for {student_id}/{lesson_id}: {e}") from e
        finally:
            conn.close()
