"""
Tests for progress aggregation and teacher analytics.
"""

from datetime import datetime

import pytest

from ispeaktu.classroom.analytics import (
    average_score,
    failure_rates,
    leaderboard,
    leaderboard_rank,
    material_completion,
    pending_submissions,
    sanitize_records,
    sanitize_reminders,
    student_roster,
    student_summary,
    total_quizzes_taken,
)
from ispeaktu.schemas import Material


def verified_set(make_record, student_id, count, material_id="m1"):
    return [
        make_record(student_id, f"L{i}", 8, verified=True, material_id=material_id)
        for i in range(1, count + 1)
    ]


class TestSanitizing:
    """Test that malformed records are skipped, not raised."""

    def test_skips_malformed(self, make_record):
        good = make_record("user_a", "L1", 7)
        records = [
            good,
            {"id": "x", "student_id": "user_a", "material_id": "m1", "lesson_id": "L2"},
            {"id": "y", "student_id": "user_a", "material_id": "m1", "lesson_id": "L3", "score": 5, "total": 0},
            "garbage",
            None,
        ]
        assert sanitize_records(records) == [good]

    def test_accepts_raw_dicts(self):
        records = sanitize_records([{
            "id": "r", "student_id": "s", "material_id": "m1", "lesson_id": "L1",
            "score": 3, "total": 4,
        }])
        assert records[0].percent == 75

    def test_none_is_empty(self):
        assert sanitize_records(None) == []

    def test_skips_malformed_reminders(self):
        reminders = sanitize_reminders([
            {"student_id": "user_a", "lesson_id": "L1"},
            {"id": "user_a_L2", "student_id": "user_a", "lesson_id": "L2", "sent_at": "soon"},
            "user_a_L3",
            {"id": "user_a_L4", "studentId": "user_a", "lessonId": "L4"},
        ])
        assert [r.lesson_id for r in reminders] == ["L4"]


class TestCompletion:
    """Test per-material completion."""

    def test_half_complete(self, material, make_record):
        records = [
            make_record("user_a", "L1", 8, verified=True),
            make_record("user_a", "L3", 9, verified=True),
            make_record("user_a", "L2", 9, verified=False),
        ]
        assert material_completion(material, records, "user_a") == 50

    def test_other_students_and_materials_ignored(self, material, make_record):
        records = [
            make_record("user_b", "L1", 8, verified=True),
            make_record("user_a", "L1", 8, verified=True, material_id="m2"),
        ]
        assert material_completion(material, records, "user_a") == 0

    def test_material_without_lessons(self, make_record):
        empty = Material(id="m1", name="Empty")
        assert material_completion(empty, [make_record("user_a", "L1", 8, verified=True)], "user_a") == 0

    def test_never_exceeds_100(self, material, make_record):
        records = verified_set(make_record, "user_a", 4) + [
            make_record("user_a", "mastery_review_10", 10, verified=True),
        ]
        assert material_completion(material, records, "user_a") == 100


class TestStudentFigures:
    """Test average score and quiz counts."""

    def test_average_score(self, make_record):
        records = [
            make_record("user_a", "L1", 7, total=10),
            make_record("user_a", "L2", 1, total=2),
            make_record("user_b", "L1", 0, total=10),
        ]
        assert average_score(records, "user_a") == 60

    def test_average_score_rounds_half_up(self, make_record):
        records = [
            make_record("user_a", "L1", 5, total=8),
        ]
        assert average_score(records, "user_a") == 63

    def test_average_score_without_records(self):
        assert average_score([], "user_a") == 0

    def test_quizzes_taken_counts_verified_lessons_once(self, make_record):
        records = [
            make_record("user_a", "L1", 8, verified=True),
            make_record("user_a", "L1", 9, verified=True, material_id="m2"),
            make_record("user_a", "L2", 9, verified=False),
        ]
        assert total_quizzes_taken(records, "user_a") == 1


class TestLeaderboard:
    """Test competition ranking by verified lessons."""

    @pytest.fixture
    def records(self, make_record):
        return (
            verified_set(make_record, "user_b", 5)
            + verified_set(make_record, "user_a", 5)
            + verified_set(make_record, "user_c", 2)
            + [make_record("user_d", "L1", 9, verified=False)]
        )

    def test_ties_share_rank(self, records):
        entries = leaderboard(records)
        assert [(e.student_id, e.rank) for e in entries] == [
            ("user_a", 1),
            ("user_b", 1),
            ("user_c", 3),
        ]
        assert entries[0].verified_lessons == 5

    def test_rank_lookup(self, records):
        assert leaderboard_rank(records, "user_b") == (1, 3)
        assert leaderboard_rank(records, "user_c") == (3, 3)

    def test_student_without_verified_lessons_ranks_last(self, records):
        assert leaderboard_rank(records, "user_d") == (4, 3)

    def test_empty(self):
        assert leaderboard([]) == []
        assert leaderboard_rank([], "user_a") == (1, 0)


class TestStudentSummary:
    """Test the combined dashboard figures."""

    def test_summary(self, material, make_record):
        records = [
            make_record("user_a", "L1", 8, verified=True),
            make_record("user_a", "L2", 6, verified=False),
            make_record("user_b", "L1", 9, verified=True),
            make_record("user_b", "L2", 9, verified=True),
        ]
        summary = student_summary([material], records, "user_a")
        assert summary.average_score == 70
        assert summary.rank == 2
        assert summary.total_students == 2
        assert summary.quizzes_taken == 1
        assert summary.completion == {"m1": 25}

    def test_rank_over_class_records(self, material, make_record):
        own = [make_record("user_a", "L1", 8, verified=True)]
        class_records = own + verified_set(make_record, "user_b", 3) + verified_set(make_record, "user_c", 1)
        summary = student_summary([material], own, "user_a", ranking_records=class_records)
        assert (summary.rank, summary.total_students) == (2, 3)
        assert summary.quizzes_taken == 1
        assert summary.average_score == 80


class TestFailureRates:
    """Test per-lesson failure rates."""

    def test_failure_rate(self, material, make_record):
        records = [
            make_record(f"user_{i}", "L1", 5 if i < 3 else 8)
            for i in range(10)
        ]
        rates = failure_rates(records, [material])
        assert len(rates) == 1
        rate = rates[0]
        assert rate.lesson_id == "L1"
        assert rate.failure_rate == pytest.approx(0.3)
        assert rate.total_attempts == 10
        assert rate.failed_attempts == 3
        assert rate.name == "Lesson L1"
        assert rate.material_name == "Material m1"

    def test_excludes_mastery_reviews_and_omits_unattempted(self, material, make_record):
        records = [
            make_record("user_a", "L2", 9),
            make_record("user_a", "mastery_review_10", 2),
        ]
        rates = failure_rates(records, [material])
        assert [r.lesson_id for r in rates] == ["L2"]
        assert rates[0].failure_rate == 0.0

    def test_sorted_worst_first(self, material, make_record):
        records = [
            make_record("user_a", "L1", 9),
            make_record("user_a", "L2", 1),
            make_record("user_b", "L3", 1),
            make_record("user_c", "L3", 9),
        ]
        rates = failure_rates(records, [material])
        assert [r.lesson_id for r in rates] == ["L2", "L3", "L1"]

    def test_exactly_70_percent_is_not_a_failure(self, material, make_record):
        rates = failure_rates([make_record("user_a", "L1", 7)], [material])
        assert rates[0].failed_attempts == 0


class TestPendingSubmissions:
    """Test the teacher review queue."""

    @pytest.fixture
    def records(self, make_record):
        return [
            make_record("user_ana", "L1", 8, student_name="Ana", updated_at=datetime(2024, 1, 1)),
            make_record("user_ben", "L2", 5, student_name="Ben", updated_at=datetime(2024, 1, 3)),
            make_record("user_cy", "L3", 9, student_name="Cy", verified=True),
            make_record("user_ana", "mastery_review_10", 9, student_name="Ana"),
            make_record("user_dee", "L4", 9, student_name="Dee", updated_at=datetime(2024, 1, 2)),
        ]

    def test_newest_first_unverified_only(self, material, records):
        pending = pending_submissions(records, [material])
        assert [r.student_id for r in pending] == ["user_ben", "user_dee", "user_ana"]

    def test_search_by_student_name(self, material, records):
        pending = pending_submissions(records, [material], search="ANA")
        assert [r.lesson_id for r in pending] == ["L1"]

    def test_search_by_lesson_title(self, material, records):
        pending = pending_submissions(records, [material], search="lesson l4")
        assert [r.student_id for r in pending] == ["user_dee"]


class TestRoster:
    """Test the student roster."""

    def test_roster_sorted_by_name(self, make_record):
        records = [
            make_record("user_b", "L1", 5, student_name="bob"),
            make_record("user_a", "L1", 5, student_name="Alice"),
            make_record("user_x", "L1", 5, student_name=""),
        ]
        assert student_roster(records) == [
            ("user_a", "Alice"),
            ("user_b", "bob"),
            ("user_x", "user_x"),
        ]
