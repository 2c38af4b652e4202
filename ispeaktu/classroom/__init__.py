"""
iSpeaktu Classroom - Runtime components for quizzes, gating and analytics.

This module provides:
- Normalizer: Turn fetched curriculum rows into ordered models
- Analytics: Completion, averages, leaderboard and failure rates
- Navigator: Lesson sequencing, mastery gate and review generation
- QuizSession: One quiz attempt as a state machine
- Stores: SQLite and Supabase data access, plus the local cache
- AppState: Explicit application state for one session
"""

from .normalizer import (
    normalize_curriculum,
    find_material,
    index_lessons,
)

from .scoring import (
    ScoreTier,
    SCORE_TIERS,
    tier_for_percent,
    calculate_percent,
)

from .analytics import (
    LeaderboardEntry,
    LessonFailureRate,
    StudentSummary,
    sanitize_records,
    material_completion,
    average_score,
    total_quizzes_taken,
    leaderboard,
    leaderboard_rank,
    student_summary,
    failure_rates,
    pending_submissions,
    student_roster,
)

from .navigator import (
    Navigator,
    LessonAvailability,
    GateDecision,
    NavigationLesson,
    lesson_gate,
    generate_mastery_review,
    is_milestone,
)

from .session import (
    QuizSession,
    QuizResult,
    SessionState,
)

from .store import (
    ProgressStore,
    SQLiteStore,
    DEFAULT_DB_PATH,
)

from .supabase_store import (
    SupabaseStore,
    create_supabase_store,
)

from .cache import (
    LocalCache,
    DEFAULT_CACHE_PATH,
)

from .state import (
    AppState,
    STUDENT_ROLE,
    TEACHER_ROLE,
)

__all__ = [
    # Normalizer
    "normalize_curriculum",
    "find_material",
    "index_lessons",
    # Scoring
    "ScoreTier",
    "SCORE_TIERS",
    "tier_for_percent",
    "calculate_percent",
    # Analytics
    "LeaderboardEntry",
    "LessonFailureRate",
    "StudentSummary",
    "sanitize_records",
    "material_completion",
    "average_score",
    "total_quizzes_taken",
    "leaderboard",
    "leaderboard_rank",
    "student_summary",
    "failure_rates",
    "pending_submissions",
    "student_roster",
    # Navigator
    "Navigator",
    "LessonAvailability",
    "GateDecision",
    "NavigationLesson",
    "lesson_gate",
    "generate_mastery_review",
    "is_milestone",
    # Session
    "QuizSession",
    "QuizResult",
    "SessionState",
    # Stores
    "ProgressStore",
    "SQLiteStore",
    "DEFAULT_DB_PATH",
    "SupabaseStore",
    "create_supabase_store",
    "LocalCache",
    "DEFAULT_CACHE_PATH",
    # State
    "AppState",
    "STUDENT_ROLE",
    "TEACHER_ROLE",
]
