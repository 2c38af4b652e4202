"""
iSpeaktu Schemas - Pydantic models for the quiz platform.

This module exports all schema classes for:
- Curriculum: materials, lessons, questions
- Progress: responses, progress records, reminders
- User: signed-in user
"""

# Curriculum schemas
from .curriculum import (
    Identifier,
    Question,
    Lesson,
    Material,
)

# Progress schemas
from .progress import (
    PASS_PERCENT,
    meets_threshold,
    LessonStatus,
    Response,
    ProgressRecord,
    ReminderRecord,
)

# User schema
from .user import User

__all__ = [
    # Curriculum
    'Identifier',
    'Question',
    'Lesson',
    'Material',
    # Progress
    'PASS_PERCENT',
    'meets_threshold',
    'LessonStatus',
    'Response',
    'ProgressRecord',
    'ReminderRecord',
    # User
    'User',
]
