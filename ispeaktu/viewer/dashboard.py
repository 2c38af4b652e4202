"""
Dashboard renderer - Student stats, material cards and lesson cards.

Provides:
- Stat cards for the student summary
- Material cards with completion bars
- Lesson cards with gate and review status
"""

import html

from ispeaktu.classroom.analytics import StudentSummary
from ispeaktu.classroom.navigator import LessonAvailability, NavigationLesson
from ispeaktu.schemas import LessonStatus, Material

STATUS_LABELS = {
    LessonStatus.NOT_STARTED: "Not started",
    LessonStatus.SUBMITTED: "Awaiting verification",
    LessonStatus.VERIFIED: "Verified",
}


def get_dashboard_css() -> str:
    """Get CSS styles for dashboard display."""
    return """
    <style>
    .stat-grid {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 1em;
        margin: 1em 0;
    }
    .stat-card {
        background: white;
        border: 1px solid #e0e0e0;
        border-radius: 12px;
        padding: 1em;
        text-align: center;
    }
    .stat-value {
        font-size: 1.8em;
        font-weight: 700;
        color: #4338ca;
    }
    .stat-label {
        color: #888;
        font-size: 0.85em;
        text-transform: uppercase;
        letter-spacing: 0.05em;
    }
    .material-card {
        background: white;
        border: 1px solid #e0e0e0;
        border-radius: 12px;
        padding: 1.2em;
        margin: 0.8em 0;
        box-shadow: 0 2px 4px rgba(0,0,0,0.05);
    }
    .material-name {
        font-size: 1.2em;
        font-weight: 600;
        color: #3730a3;
    }
    .material-description {
        color: #666;
        margin: 0.4em 0 0.8em;
        line-height: 1.5;
    }
    .completion-bar {
        height: 8px;
        background: #e0e7ff;
        border-radius: 4px;
        overflow: hidden;
    }
    .completion-fill {
        height: 100%;
        background: #059669;
    }
    .completion-label {
        font-size: 0.85em;
        color: #666;
        margin-top: 0.3em;
    }
    .lesson-card {
        border: 1px solid #e0e0e0;
        border-radius: 10px;
        padding: 0.8em 1em;
        margin: 0.5em 0;
        display: flex;
        justify-content: space-between;
        align-items: center;
    }
    .lesson-card.locked {
        background: #f5f5f5;
        color: #999;
    }
    .lesson-card.verified {
        border-color: #059669;
    }
    .lesson-title {
        font-weight: 600;
    }
    .lesson-meta {
        font-size: 0.85em;
        color: #888;
    }
    .lesson-reminder {
        background: #fff7ed;
        color: #c2410c;
        border-radius: 4px;
        padding: 0.1em 0.5em;
        font-size: 0.8em;
        margin-left: 0.5em;
    }
    .lesson-indicator {
        font-size: 1.3em;
    }
    </style>
    """


def render_stat_cards(summary: StudentSummary) -> str:
    rank = f"#{summary.rank}" if summary.rank <= summary.total_students else "-"
    stats = [
        (f"{summary.average_score}%", "Average score"),
        (f"{rank} of {summary.total_students}", "Rank"),
        (str(summary.quizzes_taken), "Quizzes verified"),
    ]
    parts = ['<div class="stat-grid">']
    for value, label in stats:
        parts.append('<div class="stat-card">')
        parts.append(f'<div class="stat-value">{html.escape(value)}</div>')
        parts.append(f'<div class="stat-label">{label}</div>')
        parts.append('</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_material_card(material: Material, completion: int) -> str:
    """
    Render a material card with its completion bar.

    Args:
        material: Material to show
        completion: Percent of lessons verified (0-100)
    """
    completion = max(0, min(100, completion))
    parts = ['<div class="material-card">']
    parts.append(f'<div class="material-name">{html.escape(material.name)}</div>')
    if material.description:
        parts.append(f'<div class="material-description">{html.escape(material.description)}</div>')
    parts.append(f'<div class="completion-bar"><div class="completion-fill" style="width: {completion}%"></div></div>')
    parts.append(
        f'<div class="completion-label">{completion}% complete · {len(material.lessons)} lessons</div>'
    )
    parts.append('</div>')
    return ''.join(parts)


def render_lesson_card(item: NavigationLesson, indicator: str) -> str:
    """
    Render a lesson card for the material view.

    Args:
        item: Lesson with navigation metadata
        indicator: Status glyph from Navigator.get_status_indicator
    """
    classes = ["lesson-card"]
    if item.availability == LessonAvailability.LOCKED:
        classes.append("locked")
    elif item.status == LessonStatus.VERIFIED:
        classes.append("verified")

    if item.availability == LessonAvailability.LOCKED:
        meta = item.lock_reason or "Locked"
    else:
        meta = STATUS_LABELS[item.status]
        if item.record is not None:
            meta = f"{meta} · last score {item.record.percent}%"

    title = html.escape(item.lesson.title or f"Lesson {item.index + 1}")
    parts = [f'<div class="{" ".join(classes)}">']
    parts.append('<div>')
    parts.append(f'<span class="lesson-title">{item.index + 1}. {title}</span>')
    if item.has_reminder:
        parts.append('<span class="lesson-reminder">Reminder from your teacher</span>')
    parts.append(f'<div class="lesson-meta">{html.escape(meta)}</div>')
    parts.append('</div>')
    parts.append(f'<span class="lesson-indicator">{indicator}</span>')
    parts.append('</div>')
    return ''.join(parts)
