"""
iSpeaktu Viewer - Rendering components for quizzes and dashboards.

This module provides:
- Quiz question, feedback and score display
- Student stat cards, material cards and lesson cards
- Teacher report tables (pandas) with CSV export
"""

from .quiz import (
    get_quiz_css,
    render_question,
    render_feedback,
    render_quiz_score,
)

from .dashboard import (
    get_dashboard_css,
    render_stat_cards,
    render_material_card,
    render_lesson_card,
    STATUS_LABELS,
)

from .reports import (
    failure_rates_frame,
    leaderboard_frame,
    pending_frame,
    to_csv_bytes,
)

__all__ = [
    # Quiz
    "get_quiz_css",
    "render_question",
    "render_feedback",
    "render_quiz_score",
    # Dashboard
    "get_dashboard_css",
    "render_stat_cards",
    "render_material_card",
    "render_lesson_card",
    "STATUS_LABELS",
    # Reports
    "failure_rates_frame",
    "leaderboard_frame",
    "pending_frame",
    "to_csv_bytes",
]
