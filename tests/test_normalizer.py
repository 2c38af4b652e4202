"""
Tests for curriculum normalization at the data-access boundary.
"""

from ispeaktu.classroom.normalizer import (
    find_material,
    index_lessons,
    normalize_curriculum,
    normalize_question,
)


def raw_question(qid, order_index=None, **extra):
    data = {"id": qid, "text": f"Q{qid}", "options": ["a", "b"], "correct_option": "a"}
    if order_index is not None:
        data["order_index"] = order_index
    data.update(extra)
    return data


class TestOrdering:
    """Test order_index sorting and defaults."""

    def test_materials_sorted_with_missing_index_as_zero(self):
        materials = normalize_curriculum([
            {"id": "b", "order_index": 2},
            {"id": "a", "order_index": 1},
            {"id": "c"},
        ])
        assert [m.id for m in materials] == ["c", "a", "b"]

    def test_ties_keep_fetch_order(self):
        materials = normalize_curriculum([
            {"id": "m", "lessons": [
                {"id": "x", "order_index": 1},
                {"id": "y", "order_index": 1},
                {"id": "z", "order_index": 0},
            ]},
        ])
        assert [l.id for l in materials[0].lessons] == ["z", "x", "y"]

    def test_questions_sorted(self):
        materials = normalize_curriculum([
            {"id": "m", "lessons": [
                {"id": "L1", "questions": [raw_question("q2", 2), raw_question("q1", 1)]},
            ]},
        ])
        assert [q.id for q in materials[0].lessons[0].questions] == ["q1", "q2"]

    def test_string_order_index_is_parsed(self):
        materials = normalize_curriculum([{"id": "b", "order_index": "3"}, {"id": "a", "orderIndex": 1}])
        assert [m.id for m in materials] == ["a", "b"]


class TestTolerance:
    """Test handling of missing and malformed rows."""

    def test_non_list_input_is_empty(self):
        assert normalize_curriculum(None) == []
        assert normalize_curriculum({"id": "m"}) == []

    def test_missing_nested_lists_become_empty(self):
        materials = normalize_curriculum([
            {"id": "m1"},
            {"id": "m2", "lessons": None},
            {"id": "m3", "lessons": [{"id": "L1", "questions": "broken"}]},
        ])
        assert materials[0].lessons == []
        assert materials[1].lessons == []
        assert materials[2].lessons[0].questions == []

    def test_malformed_question_is_skipped(self):
        materials = normalize_curriculum([
            {"id": "m", "lessons": [
                {"id": "L1", "questions": [
                    raw_question("good"),
                    {"id": "bad", "text": "?", "options": ["only"], "correct_option": "only"},
                    "not a question",
                ]},
            ]},
        ])
        assert [q.id for q in materials[0].lessons[0].questions] == ["good"]

    def test_malformed_material_is_skipped(self):
        materials = normalize_curriculum([{"name": "no id"}, {"id": "ok"}])
        assert [m.id for m in materials] == ["ok"]

    def test_parent_ids_filled_in(self):
        materials = normalize_curriculum([
            {"id": "m", "lessons": [{"id": "L1", "questions": [raw_question("q1")]}]},
        ])
        lesson = materials[0].lessons[0]
        assert lesson.material_id == "m"
        assert lesson.questions[0].lesson_id == "L1"


class TestCorrectIndex:
    """Test integer `correct` answers."""

    def test_correct_index_resolves_to_option_text(self):
        question = normalize_question({"id": "q", "text": "?", "options": ["x", "y"], "correct": 1})
        assert question.correct_option == "y"

    def test_correct_index_out_of_range_is_skipped(self):
        assert normalize_question({"id": "q", "text": "?", "options": ["x", "y"], "correct": 5}) is None

    def test_explicit_correct_option_wins(self):
        question = normalize_question(
            {"id": "q", "text": "?", "options": ["x", "y"], "correct": 1, "correct_option": "x"}
        )
        assert question.correct_option == "x"


class TestLookups:
    """Test material and lesson lookups."""

    def test_find_material(self, material):
        assert find_material([material], "m1") is material
        assert find_material([material], "nope") is None

    def test_index_lessons(self, material):
        index = index_lessons([material])
        found_material, lesson = index["L2"]
        assert found_material.id == "m1"
        assert lesson.title == "Lesson L2"
