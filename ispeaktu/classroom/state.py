"""
AppState - Explicit application state for one signed-in session.

Holds the signed-in user, the curriculum, progress and reminder
collections and the active quiz. Every component receives the AppState
instead of reaching for module-level globals.

Lifecycle:
    state = AppState(store, cache, teacher_code)
    state.initialize()          # resume cached user, load data
    state.login("Ana", "student")
    ...
    state.logout()              # drop the user and cached auth
    state.teardown()            # drop everything held in memory

Remote fetch failures degrade to the last cached collections (or empty
ones); the UI keeps working and `offline` is set.
"""

import logging
import random
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from ispeaktu.errors import AccessDenied, BelowThreshold, DataUnavailable, LessonLocked
from ispeaktu.schemas import Material, ProgressRecord, ReminderRecord, User
from ispeaktu.utils.identity import reminder_id

from . import analytics
from .analytics import (
    LeaderboardEntry,
    LessonFailureRate,
    StudentSummary,
    sanitize_records,
    sanitize_reminders,
)
from .cache import AUTH_KEY, CURRICULUM_KEY, PROGRESS_KEY, REMINDERS_KEY, LocalCache
from .navigator import Navigator
from .normalizer import find_material, normalize_curriculum
from .session import QuizSession
from .store import ProgressStore

logger = logging.getLogger(__name__)

STUDENT_ROLE = "student"
TEACHER_ROLE = "teacher"


class AppState:
    def __init__(
        self,
        store: Optional[ProgressStore] = None,
        cache: Optional[LocalCache] = None,
        teacher_code: Optional[str] = None,
    ):
        """
        Args:
            store: Remote store; None runs from the cache only
            cache: Local cache; None disables caching
            teacher_code: Shared code for the teacher view; None refuses teacher login
        """
        self.store = store
        self.cache = cache
        self.teacher_code = teacher_code
        self.teardown()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self):
        """Restore the cached user, then load curriculum and progress."""
        cached_user = self._cache_get(AUTH_KEY)
        if cached_user:
            try:
                self.user = User.model_validate(cached_user)
                logger.info(f"Resumed session for {self.user.uid}")
            except ValidationError as e:
                logger.warning(f"Discarding cached user: {e.error_count()} error(s)")
                self._cache_remove(AUTH_KEY)
        self.refresh()
        self.initialized = True

    def teardown(self):
        """Forget everything held in memory. The cache is left as is."""
        self.user: Optional[User] = None
        self.materials: list[Material] = []
        self.progress: list[ProgressRecord] = []
        self.standings: list[ProgressRecord] = []  # verified records of the whole class, for rank
        self.reminders: list[ReminderRecord] = []
        self.quiz: Optional[QuizSession] = None
        self.quiz_material_id: Optional[str] = None
        self.offline = False
        self.initialized = False

    def refresh(self):
        """Reload curriculum, progress and reminders from the store."""
        self.offline = False
        self.materials = self._load_curriculum()
        self.progress = self._load_progress()
        self.standings = self._load_standings()
        self.reminders = self._load_reminders()

    def _load_curriculum(self) -> list[Material]:
        if self.store is not None:
            try:
                materials = self.store.fetch_curriculum()
                self._cache_set(CURRICULUM_KEY, [m.model_dump(mode="json") for m in materials])
                return materials
            except DataUnavailable as e:
                logger.warning(f"Using cached curriculum: {e}")
                self.offline = True
        return normalize_curriculum(self._cache_get(CURRICULUM_KEY, []))

    def _load_progress(self) -> list[ProgressRecord]:
        if self.user is None:
            return []
        student_id = None if self.user.is_teacher else self.user.uid
        if self.store is not None:
            try:
                records = self.store.fetch_progress(student_id=student_id)
                self._mirror_progress(records)
                return records
            except DataUnavailable as e:
                logger.warning(f"Using cached progress: {e}")
                self.offline = True
        records = sanitize_records(self._cache_get(PROGRESS_KEY, []))
        if student_id is not None:
            records = [r for r in records if r.student_id == student_id]
        return records

    def _load_standings(self) -> list[ProgressRecord]:
        if self.user is None or self.user.is_teacher or self.store is None:
            return []
        try:
            return [r for r in self.store.fetch_progress() if r.verified]
        except DataUnavailable as e:
            logger.warning(f"Class standings unavailable, ranking own progress only: {e}")
            return []

    def _load_reminders(self) -> list[ReminderRecord]:
        if self.user is None:
            return []
        student_id = None if self.user.is_teacher else self.user.uid
        if self.store is not None:
            try:
                reminders = self.store.fetch_reminders(student_id=student_id)
                self._mirror_reminders(reminders)
                return reminders
            except DataUnavailable as e:
                logger.warning(f"Using cached reminders: {e}")
                self.offline = True
        reminders = sanitize_reminders(self._cache_get(REMINDERS_KEY, []))
        if student_id is not None:
            reminders = [r for r in reminders if r.student_id == student_id]
        return reminders

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    def _cache_get(self, key: str, default=None):
        if self.cache is None:
            return default
        return self.cache.get(key, default)

    def _cache_set(self, key: str, value):
        if self.cache is not None:
            self.cache.set(key, value)

    def _cache_remove(self, key: str):
        if self.cache is not None:
            self.cache.remove(key)

    def _mirror_progress(self, records: list[ProgressRecord]):
        self._cache_set(PROGRESS_KEY, [r.model_dump(mode="json") for r in records])

    def _mirror_reminders(self, reminders: list[ReminderRecord]):
        self._cache_set(REMINDERS_KEY, [r.model_dump(mode="json") for r in reminders])

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    @property
    def is_teacher(self) -> bool:
        return bool(self.user and self.user.is_teacher)

    def login(self, display_name: str, role: str = STUDENT_ROLE, access_code: Optional[str] = None) -> User:
        """
        Sign in by display name.

        Raises:
            ValueError: If the name is blank or the role is unknown
            AccessDenied: If the teacher code does not match
        """
        if not display_name or not display_name.strip():
            raise ValueError("Display name is required")
        if role not in (STUDENT_ROLE, TEACHER_ROLE):
            raise ValueError(f"Unknown role: {role}")

        is_teacher = role == TEACHER_ROLE
        if is_teacher and (not self.teacher_code or access_code != self.teacher_code):
            logger.warning("Rejected teacher login")
            raise AccessDenied("Invalid Code")

        self.user = User.from_display_name(display_name, is_teacher=is_teacher)
        self._cache_set(AUTH_KEY, self.user.model_dump(mode="json"))
        logger.info(f"Signed in {self.user.uid} as {role}")
        self.refresh()
        return self.user

    def logout(self):
        if self.user:
            logger.info(f"Signed out {self.user.uid}")
        self._cache_remove(AUTH_KEY)
        self.user = None
        self.progress = []
        self.standings = []
        self.reminders = []
        self.quiz = None
        self.quiz_material_id = None

    def _require_user(self) -> User:
        if self.user is None:
            raise AccessDenied("Sign in first")
        return self.user

    def _require_teacher(self) -> User:
        user = self._require_user()
        if not user.is_teacher:
            raise AccessDenied("Teacher view required")
        return user

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_material(self, material_id: str) -> Material:
        material = find_material(self.materials, material_id)
        if material is None:
            raise KeyError(f"Unknown material: {material_id}")
        return material

    def navigator(self, material_id: str, student_id: Optional[str] = None) -> Navigator:
        """Navigator for the signed-in student, or for student_id in teacher views."""
        student_id = student_id or self._require_user().uid
        return Navigator(self.get_material(material_id), self.progress, student_id, self.reminders)

    def get_record(self, record_id: str) -> Optional[ProgressRecord]:
        for record in self.progress:
            if record.id == record_id:
                return record
        return None

    def reminders_for(self, student_id: str) -> list[ReminderRecord]:
        return [r for r in self.reminders if r.student_id == student_id]

    # -------------------------------------------------------------------------
    # Quiz flow
    # -------------------------------------------------------------------------

    def start_quiz(self, material_id: str, lesson_id: str) -> QuizSession:
        """
        Start a quiz for a lesson, clearing any reminder for it.

        Raises:
            LessonLocked: If the mastery gate locks the lesson
            EmptyLesson: If the lesson has no questions
        """
        user = self._require_user()
        material = self.get_material(material_id)
        index = material.lesson_index(lesson_id)
        if index < 0:
            raise KeyError(f"Unknown lesson {lesson_id} in material {material_id}")

        decision = self.navigator(material_id).get_lesson_availability(index)
        if decision.is_locked:
            raise LessonLocked(lesson_id, decision.reason)

        session = QuizSession(material.lessons[index])
        self._clear_reminder(user.uid, lesson_id)
        self.quiz = session
        self.quiz_material_id = material_id
        return session

    def start_mastery_review(
        self,
        material_id: str,
        milestone_index: int,
        rng: Optional[random.Random] = None,
    ) -> QuizSession:
        """
        Synthesize and start the mastery review for a milestone lesson.

        Raises:
            LessonLocked: If the mastery gate locks the milestone lesson itself
        """
        self._require_user()
        material = self.get_material(material_id)
        if not 0 <= milestone_index < len(material.lessons):
            raise KeyError(f"Unknown lesson index {milestone_index} in material {material_id}")

        nav = self.navigator(material_id)
        decision = nav.get_lesson_availability(milestone_index)
        if decision.is_locked:
            raise LessonLocked(material.lessons[milestone_index].id, decision.reason)

        review = nav.build_mastery_review(milestone_index, rng=rng)
        session = QuizSession(review)
        self.quiz = session
        self.quiz_material_id = material_id
        return session

    def abandon_quiz(self):
        self.quiz = None
        self.quiz_material_id = None

    def save_attempt(self, session: Optional[QuizSession] = None, material_id: Optional[str] = None) -> ProgressRecord:
        """
        Persist a completed quiz session as an unverified progress record.

        Raises:
            InvalidTransition: If the session is not completed
            DataUnavailable: If the store rejects the write
        """
        user = self._require_user()
        session = session or self.quiz
        material_id = material_id or self.quiz_material_id
        if session is None or material_id is None:
            raise ValueError("No quiz to save")

        record = session.to_progress_record(user.uid, user.display_name, material_id)
        if self.store is not None:
            self.store.upsert_progress(record)
        record = self._merge_record(record)
        self._mirror_progress(self.progress)

        if session is self.quiz:
            self.abandon_quiz()
        return record

    def _merge_record(self, record: ProgressRecord) -> ProgressRecord:
        existing = self.get_record(record.id)
        if existing and existing.verified and not record.verified:
            record = record.model_copy(update={"verified": True})
        self.progress = [r for r in self.progress if r.id != record.id] + [record]
        return record

    def _clear_reminder(self, student_id: str, lesson_id: str):
        if not any(r.student_id == student_id and r.lesson_id == lesson_id for r in self.reminders):
            return
        if self.store is not None:
            try:
                self.store.delete_reminder(student_id, lesson_id)
            except DataUnavailable as e:
                logger.warning(f"Could not clear reminder for {student_id}/{lesson_id}: {e}")
        self.reminders = [
            r for r in self.reminders
            if not (r.student_id == student_id and r.lesson_id == lesson_id)
        ]
        self._mirror_reminders(self.reminders)

    # -------------------------------------------------------------------------
    # Teacher actions
    # -------------------------------------------------------------------------

    def verify(self, progress_id: str) -> ProgressRecord:
        """
        Approve a submission.

        Raises:
            BelowThreshold: If the record scores under 70%; it is left unchanged
        """
        self._require_teacher()
        record = self.get_record(progress_id)
        if record is None and self.store is not None:
            record = self.store.get_progress(progress_id)
        if record is None:
            raise KeyError(f"Unknown progress record: {progress_id}")
        if not record.passed:
            raise BelowThreshold(progress_id, record.percent)
        if record.verified:
            return record

        if self.store is not None:
            self.store.set_verified(progress_id, True)
        verified = record.model_copy(update={"verified": True})
        self.progress = [verified if r.id == progress_id else r for r in self.progress]
        if verified not in self.progress:
            self.progress.append(verified)
        self._mirror_progress(self.progress)
        logger.info(f"Verified {progress_id}")
        return verified

    def send_reminder(self, student_id: str, lesson_id: str, material_id: str = "") -> ReminderRecord:
        teacher = self._require_teacher()
        reminder = ReminderRecord(
            id=reminder_id(student_id, lesson_id),
            student_id=student_id,
            lesson_id=lesson_id,
            material_id=material_id,
            sent_by=teacher.display_name,
            sent_at=datetime.now(),
        )
        if self.store is not None:
            self.store.upsert_reminder(reminder)
        self.reminders = [
            r for r in self.reminders
            if not (r.student_id == student_id and r.lesson_id == lesson_id)
        ] + [reminder]
        self._mirror_reminders(self.reminders)
        logger.info(f"Reminder sent to {student_id} for {lesson_id}")
        return reminder

    def cancel_reminder(self, student_id: str, lesson_id: str):
        self._require_teacher()
        if self.store is not None:
            self.store.delete_reminder(student_id, lesson_id)
        self.reminders = [
            r for r in self.reminders
            if not (r.student_id == student_id and r.lesson_id == lesson_id)
        ]
        self._mirror_reminders(self.reminders)

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def student_summary(self, student_id: Optional[str] = None) -> StudentSummary:
        student_id = student_id or self._require_user().uid
        return analytics.student_summary(
            self.materials, self.progress, student_id, ranking_records=self._ranking_records()
        )

    def pending_submissions(self, search: str = "") -> list[ProgressRecord]:
        self._require_teacher()
        return analytics.pending_submissions(self.progress, self.materials, search)

    def failure_report(self) -> list[LessonFailureRate]:
        self._require_teacher()
        return analytics.failure_rates(self.progress, self.materials)

    def leaderboard(self) -> list[LeaderboardEntry]:
        return analytics.leaderboard(self._ranking_records())

    def _ranking_records(self) -> list[ProgressRecord]:
        """Class standings overlaid with the freshest local records."""
        merged = {r.id: r for r in self.standings}
        merged.update((r.id, r) for r in self.progress)
        return list(merged.values())
