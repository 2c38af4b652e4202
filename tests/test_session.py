"""
Tests for the quiz session state machine and score tiers.
"""

import pytest

from ispeaktu.classroom.scoring import SCORE_TIERS, calculate_percent, tier_for_percent
from ispeaktu.classroom.session import QuizSession, SessionState
from ispeaktu.errors import EmptyLesson, InvalidTransition


def answer(session, option):
    session.select_option(option)
    correct = session.check_answer()
    session.advance()
    return correct


class TestQuizSession:
    """Test legal and illegal transitions."""

    def test_initial_state(self, make_lesson):
        session = QuizSession(make_lesson("L1", n_questions=3))
        assert session.state == SessionState.ANSWERING
        assert session.question_index == 0
        assert session.selected_option is None
        assert session.score == 0

    def test_empty_lesson_rejected(self, make_lesson):
        with pytest.raises(EmptyLesson):
            QuizSession(make_lesson("L1", n_questions=0))

    def test_full_run(self, make_lesson):
        session = QuizSession(make_lesson("L1", n_questions=3))
        assert answer(session, "b") is True
        assert answer(session, "a") is False
        assert answer(session, "b") is True
        assert session.is_completed
        result = session.result
        assert result.score == 2
        assert result.total == 3
        assert result.percent == 67
        assert [r.is_correct for r in result.responses] == [True, False, True]
        assert [r.question_index for r in result.responses] == [0, 1, 2]

    def test_select_does_not_score(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        session.select_option("b")
        assert session.score == 0
        assert session.responses == []

    def test_reselect_before_check(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        session.select_option("a")
        session.select_option("b")
        assert session.check_answer() is True

    def test_check_without_selection(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        with pytest.raises(InvalidTransition):
            session.check_answer()

    def test_double_check_does_not_double_count(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        session.select_option("b")
        session.check_answer()
        with pytest.raises(InvalidTransition):
            session.check_answer()
        assert session.score == 1
        assert len(session.responses) == 1

    def test_select_during_feedback_rejected(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        session.select_option("a")
        session.check_answer()
        assert session.state == SessionState.FEEDBACK_SHOWN
        with pytest.raises(InvalidTransition):
            session.select_option("b")

    def test_advance_before_check_rejected(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        with pytest.raises(InvalidTransition):
            session.advance()

    def test_unknown_option_rejected(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        with pytest.raises(ValueError):
            session.select_option("z")

    def test_advance_clears_selection(self, make_lesson):
        session = QuizSession(make_lesson("L1", n_questions=2))
        answer(session, "b")
        assert session.state == SessionState.ANSWERING
        assert session.question_index == 1
        assert session.selected_option is None

    def test_completed_is_terminal(self, make_lesson):
        session = QuizSession(make_lesson("L1", n_questions=1))
        answer(session, "b")
        with pytest.raises(InvalidTransition):
            session.select_option("b")
        with pytest.raises(InvalidTransition):
            session.advance()

    def test_result_requires_completion(self, make_lesson):
        session = QuizSession(make_lesson("L1"))
        with pytest.raises(InvalidTransition):
            session.result

    def test_to_progress_record(self, make_lesson):
        session = QuizSession(make_lesson("L2", n_questions=2))
        answer(session, "b")
        answer(session, "b")
        record = session.to_progress_record("user_ana", "Ana", "m1")
        assert record.id == "user_ana_m1_L2"
        assert record.score == 2
        assert record.total == 2
        assert record.verified is False
        assert len(record.responses) == 2

    def test_mastery_review_record_is_flagged(self, make_lesson):
        lesson = make_lesson("mastery_review_10", n_questions=1)
        session = QuizSession(lesson)
        answer(session, "b")
        assert session.to_progress_record("user_ana", "Ana", "m1").is_mastery_review


class TestScoreTiers:
    """Test the feedback tier partition."""

    def test_boundaries(self):
        assert tier_for_percent(39).name == "BEGINNER"
        assert tier_for_percent(40).name == "ELEMENTARY"
        assert tier_for_percent(69).name == "INTERMEDIATE"
        assert tier_for_percent(70).name == "PROFICIENT"
        assert tier_for_percent(85).name == "MASTERY"
        assert tier_for_percent(100).name == "MASTERY"

    def test_every_percent_has_exactly_one_tier(self):
        for percent in range(101):
            assert sum(tier.contains(percent) for tier in SCORE_TIERS) == 1

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            tier_for_percent(101)
        with pytest.raises(ValueError):
            tier_for_percent(-1)

    def test_calculate_percent(self):
        assert calculate_percent(7, 10) == 70
        assert calculate_percent(0, 0) == 0
