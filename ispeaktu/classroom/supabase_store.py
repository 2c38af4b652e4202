"""
SupabaseStore - ProgressStore backed by a hosted Supabase database.

Tables mirror SQLiteStore: materials, lessons, questions, progress and
reminders. The client is any object with the supabase-py query builder
interface (table().select().eq().execute()), so tests can pass a fake.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from supabase import create_client

from ispeaktu.errors import DataUnavailable
from ispeaktu.schemas import Material, ProgressRecord, ReminderRecord

from .analytics import sanitize_records, sanitize_reminders
from .normalizer import normalize_curriculum
from .store import ProgressStore

logger = logging.getLogger(__name__)

CURRICULUM_SELECT = "*, lessons(*, questions(*))"


def create_supabase_store(url: str, key: str) -> "SupabaseStore":
    """Connect to Supabase with the anon key and wrap the client."""
    try:
        client = create_client(url, key)
    except Exception as e:
        raise DataUnavailable(f"Could not initialize Supabase client: {e}") from e
    logger.info("Supabase client initialized")
    return SupabaseStore(client)


class SupabaseStore(ProgressStore):
    def __init__(self, client: Any):
        self.client = client

    def _execute(self, query, action: str) -> list[dict]:
        try:
            response = query.execute()
        except Exception as e:
            raise DataUnavailable(f"Supabase {action} failed: {e}") from e
        return response.data or []

    # -------------------------------------------------------------------------
    # Curriculum
    # -------------------------------------------------------------------------

    def fetch_curriculum(self) -> list[Material]:
        rows = self._execute(
            self.client.table("materials").select(CURRICULUM_SELECT).order("order_index"),
            "curriculum fetch",
        )
        return normalize_curriculum(rows)

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def fetch_progress(
        self,
        student_id: Optional[str] = None,
        material_id: Optional[str] = None,
    ) -> list[ProgressRecord]:
        query = self.client.table("progress").select("*")
        if student_id is not None:
            query = query.eq("student_id", student_id)
        if material_id is not None:
            query = query.eq("material_id", material_id)
        return sanitize_records(self._execute(query, "progress fetch"))

    def upsert_progress(self, record: ProgressRecord):
        existing = self._execute(
            self.client.table("progress").select("verified").eq("id", record.id),
            "progress lookup",
        )
        already_verified = any(row.get("verified") for row in existing)

        payload = record.model_dump(mode="json")
        payload["verified"] = record.verified or already_verified
        payload["updated_at"] = (record.updated_at or datetime.now()).isoformat()
        self._execute(
            self.client.table("progress").upsert(payload, on_conflict="id"),
            "progress upsert",
        )
        logger.info(f"Saved progress {record.id} ({record.score}/{record.total})")

    def set_verified(self, progress_id: str, verified: bool = True):
        if not verified:
            logger.debug(f"Ignoring request to clear verification on {progress_id}")
            return
        self._execute(
            self.client.table("progress").update({"verified": True}).eq("id", progress_id),
            "verification",
        )

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def fetch_reminders(self, student_id: Optional[str] = None) -> list[ReminderRecord]:
        query = self.client.table("reminders").select("*")
        if student_id is not None:
            query = query.eq("student_id", student_id)
        return sanitize_reminders(self._execute(query, "reminder fetch"))

    def upsert_reminder(self, record: ReminderRecord):
        payload = record.model_dump(mode="json")
        payload["sent_at"] = (record.sent_at or datetime.now()).isoformat()
        self._execute(
            self.client.table("reminders").upsert(payload, on_conflict="student_id,lesson_id"),
            "reminder upsert",
        )

    def delete_reminder(self, student_id: str, lesson_id: str):
        self._execute(
            self.client.table("reminders").delete().eq("student_id", student_id).eq("lesson_id", lesson_id),
            "reminder delete",
        )
