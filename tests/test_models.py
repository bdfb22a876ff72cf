"""
Test: Model-reply schema coercion and configured-question sanitising.
"""
import pytest

from assignai.errors import ValidationError
from assignai.models import (
    ParsedAssignment, build_dependency_map, sanitize_questions, to_question_number,
)


class TestToQuestionNumber:
    def test_int(self):
        assert to_question_number(3) == 3

    def test_float(self):
        assert to_question_number(2.0) == 2

    def test_prefixed_string(self):
        assert to_question_number("Q2") == 2

    def test_garbage(self):
        assert to_question_number("none") is None

    def test_bool_rejected(self):
        assert to_question_number(True) is None

    def test_zero_rejected(self):
        assert to_question_number(0) is None


class TestParsedAssignment:
    def test_defaults(self):
        parsed = ParsedAssignment.model_validate({})
        assert parsed.title == "Untitled Assignment"
        assert parsed.questions == []
        assert parsed.tables == []

    def test_junk_sections_degrade(self):
        parsed = ParsedAssignment.model_validate({
            "title": None,
            "tables": "not a list",
            "questions": [
                "What is 2+2?",
                42,
                {"text": "Second", "dependsOn": "Q1", "requiredForNext": "yes", "tableData": "t1"},
            ],
        })
        assert parsed.title == "Untitled Assignment"
        assert parsed.tables == []
        assert len(parsed.questions) == 2
        first, second = parsed.questions
        assert first.number == 1
        assert first.text == "What is 2+2?"
        assert second.number == 3
        assert second.dependsOn == [1]
        assert second.requiredForNext is True
        assert second.tableData == ["t1"]

    def test_table_ids_defaulted(self):
        parsed = ParsedAssignment.model_validate({"tables": [{"data": [["a", 1]]}, "junk"]})
        assert parsed.tables[0].id == "table-1"
        assert parsed.tables[0].data == [["a", "1"]]


class TestSanitizeQuestions:
    def test_fills_ids_and_numbers(self):
        questions = sanitize_questions([{"text": "One"}, {"text": "Two"}])
        assert all(q["id"] for q in questions)
        assert [q["number"] for q in questions] == [1, 2]
        assert all(q["aiOption"] == "no_ai" for q in questions)
        assert all(q["dependsOn"] == [] for q in questions)

    def test_forward_and_self_references_dropped(self):
        questions = sanitize_questions([
            {"id": "a", "number": 1, "dependsOn": ["b"]},
            {"id": "b", "number": 2, "dependsOn": ["a", "b", "zzz"]},
        ])
        assert questions[0]["dependsOn"] == []
        assert questions[1]["dependsOn"] == ["a"]

    def test_unknown_ai_option_rejected(self):
        with pytest.raises(ValidationError):
            sanitize_questions([{"id": "a", "aiOption": "do_my_homework"}])

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError):
            sanitize_questions([{"id": "a"}, {"id": "a"}])

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            sanitize_questions("questions")

    def test_preserves_configuration(self):
        [question] = sanitize_questions([{
            "id": "a", "number": 1, "text": "Q", "aiOption": "socratic",
            "customPrompt": "Be brief", "requiredForNext": True, "tableData": [["x"]],
        }])
        assert question["aiOption"] == "socratic"
        assert question["customPrompt"] == "Be brief"
        assert question["requiredForNext"] is True
        assert question["tableData"] == [["x"]]


def test_build_dependency_map():
    dependency_map = build_dependency_map([
        {"id": "a", "dependsOn": [], "requiredForNext": True},
        {"id": "b", "dependsOn": ["a"]},
    ])
    assert dependency_map == {
        "a": {"dependsOn": [], "requiredForNext": True},
        "b": {"dependsOn": ["a"], "requiredForNext": False},
    }
