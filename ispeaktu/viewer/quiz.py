"""
Quiz renderer - Multiple-choice question and result display.

Provides:
- Question card with progress header
- Answer feedback with explanation
- Score card with feedback tier
"""

import html
from typing import Optional

from ispeaktu.classroom.scoring import tier_for_percent
from ispeaktu.schemas import Question, Response


def get_quiz_css() -> str:
    """Get CSS styles for quiz display."""
    return """
    <style>
    .quiz-container {
        background: #eef2ff;
        border-radius: 12px;
        padding: 1.5em;
        margin: 1.5em 0;
        border-left: 4px solid #4338ca;
    }
    .quiz-header {
        display: flex;
        align-items: center;
        justify-content: space-between;
        margin-bottom: 1em;
    }
    .quiz-title {
        font-weight: 600;
        color: #3730a3;
        font-size: 1.1em;
    }
    .quiz-counter {
        color: #666;
        font-size: 0.9em;
    }
    .quiz-progress {
        height: 6px;
        background: #e0e7ff;
        border-radius: 3px;
        margin-bottom: 1em;
        overflow: hidden;
    }
    .quiz-progress-fill {
        height: 100%;
        background: #4338ca;
    }
    .quiz-question {
        font-size: 1.15em;
        color: #333;
        line-height: 1.6;
    }
    .quiz-feedback {
        border-radius: 8px;
        padding: 1em;
        margin-top: 1em;
    }
    .quiz-feedback.correct {
        background: #ecfdf5;
        border: 1px solid #059669;
    }
    .quiz-feedback.incorrect {
        background: #fef2f2;
        border: 1px solid #dc2626;
    }
    .quiz-feedback-label {
        font-weight: 600;
        margin-bottom: 0.5em;
    }
    .quiz-feedback.correct .quiz-feedback-label {
        color: #059669;
    }
    .quiz-feedback.incorrect .quiz-feedback-label {
        color: #dc2626;
    }
    .quiz-feedback-content {
        color: #333;
        line-height: 1.6;
        opacity: 0.85;
    }
    .quiz-score-box {
        background: #ecfdf5;
        border-radius: 8px;
        padding: 1.5em;
        margin-top: 1.5em;
        text-align: center;
    }
    .quiz-score-box.below-pass {
        background: #fff7ed;
    }
    .quiz-score-value {
        font-size: 2.4em;
        font-weight: 700;
        color: #059669;
    }
    .quiz-score-box.below-pass .quiz-score-value {
        color: #c2410c;
    }
    .quiz-score-title {
        font-weight: 600;
        font-size: 1.2em;
        margin-top: 0.3em;
    }
    .quiz-score-label {
        color: #666;
        font-size: 0.9em;
    }
    </style>
    """


def render_question(
    question: Question,
    index: int,
    total: int,
    lesson_title: str = "",
) -> str:
    """
    Render a question card.

    Args:
        question: Question to show
        index: Zero-based position in the quiz
        total: Number of questions in the quiz
        lesson_title: Shown in the card header

    Returns:
        HTML string for the question
    """
    fill = round((index / total) * 100) if total else 0
    parts = ['<div class="quiz-container">']

    parts.append('<div class="quiz-header">')
    parts.append(f'<span class="quiz-title">{html.escape(lesson_title)}</span>')
    parts.append(f'<span class="quiz-counter">Question {index + 1} of {total}</span>')
    parts.append('</div>')

    parts.append(f'<div class="quiz-progress"><div class="quiz-progress-fill" style="width: {fill}%"></div></div>')
    parts.append(f'<div class="quiz-question">{html.escape(question.text)}</div>')

    parts.append('</div>')
    return ''.join(parts)


def render_feedback(question: Question, response: Response) -> str:
    """Render feedback for a checked answer, with the explanation if any."""
    state = "correct" if response.is_correct else "incorrect"
    if response.is_correct:
        label = "Correct!"
    else:
        label = f"Not quite. The answer is: {html.escape(question.correct_option)}"

    parts = [f'<div class="quiz-feedback {state}">']
    parts.append(f'<div class="quiz-feedback-label">{label}</div>')
    if question.feedback_text:
        parts.append(f'<div class="quiz-feedback-content">{html.escape(question.feedback_text)}</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_quiz_score(score: int, total: int, percent: int, passed: Optional[bool] = None) -> str:
    """Render the final score with its feedback tier."""
    tier = tier_for_percent(percent)
    box_class = "quiz-score-box" if passed is not False else "quiz-score-box below-pass"
    return f"""
    <div class="{box_class}">
        <div class="quiz-score-value">{percent}%</div>
        <div class="quiz-score-title">{html.escape(tier.title)}</div>
        <div class="quiz-score-label">{score} of {total} correct</div>
        <p>{html.escape(tier.message)}</p>
    </div>
    """
