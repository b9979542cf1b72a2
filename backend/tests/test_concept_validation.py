"""Tests for interpreting grading responses."""
from __future__ import annotations

from app.services.concept_validation import (
    UNAVAILABLE_FEEDBACK,
    grade_explanation,
    interpret_grading_response,
    unavailable_validation_result,
)
from app.services.errors import GenerationServiceError


class _StaticClient:
    def __init__(self, text: str):
        self.text = text
        self.prompts: list[str] = []

    def generate(self, prompt, *, system_prompt=None, json_mode=False):
        self.prompts.append(prompt)
        return self.text


class _BrokenClient:
    def generate(self, prompt, *, system_prompt=None, json_mode=False):
        raise GenerationServiceError("quota exceeded", kind="quota")


def test_structured_response_is_used_verbatim() -> None:
    result = interpret_grading_response(
        '{"isValid":false,"feedback":"missing key point","conceptsMissing":["recursion"]}'
    )

    assert result.is_valid is False
    assert result.feedback == "missing key point"
    assert result.concepts_missing == ["recursion"]
    assert result.concepts_understood == []


def test_structured_response_inside_code_fence() -> None:
    text = '```json\n{"isValid": true, "feedback": "Nice", "conceptsUnderstood": ["loops", "loops"]}\n```'

    result = interpret_grading_response(text)

    assert result.is_valid is True
    assert result.concepts_understood == ["loops"]


def test_unstructured_positive_text_uses_heuristic() -> None:
    result = interpret_grading_response("Yes, this is correct and demonstrates understanding.")

    assert result.is_valid is True
    assert result.feedback == "Yes, this is correct and demonstrates understanding."
    assert result.concepts_understood == []
    assert result.concepts_missing == []


def test_unstructured_text_without_trigger_words_is_rejected() -> None:
    result = interpret_grading_response("I don't think this addresses the topic.")

    assert result.is_valid is False


def test_json_without_boolean_verdict_is_not_valid() -> None:
    result = interpret_grading_response('{"feedback": "The concept was understood", "isValid": "true"}')

    assert result.is_valid is False
    assert result.feedback == "The concept was understood"


def test_null_fields_do_not_override_explicit_rejection() -> None:
    result = interpret_grading_response(
        '{"isValid": false, "feedback": "Missing the base case", '
        '"conceptsUnderstood": [], "conceptsMissing": null}'
    )

    assert result.is_valid is False
    assert result.feedback == "Missing the base case"
    assert result.concepts_missing == []


def test_fenced_verdict_after_intro_text_is_used() -> None:
    text = (
        "Here is my evaluation:\n"
        "```json\n"
        '{"isValid": false, "feedback": "Only the loop was understood", "conceptsMissing": ["base case"]}\n'
        "```"
    )

    result = interpret_grading_response(text)

    assert result.is_valid is False
    assert result.feedback == "Only the loop was understood"
    assert result.concepts_missing == ["base case"]


def test_bare_json_embedded_in_prose_is_used() -> None:
    result = interpret_grading_response('Verdict: {"isValid": true, "feedback": null} Thanks!')

    assert result.is_valid is True
    assert result.feedback == ""


def test_unavailable_result_accepts_by_default() -> None:
    result = unavailable_validation_result()

    assert result.is_valid is True
    assert result.auto_accepted is True
    assert result.feedback == UNAVAILABLE_FEEDBACK


def test_grade_explanation_accepts_when_service_fails() -> None:
    result = grade_explanation(_BrokenClient(), "Learn recursion", "Functions calling themselves")

    assert result.is_valid is True
    assert result.auto_accepted is True


def test_grade_explanation_accepts_without_client() -> None:
    assert grade_explanation(None, "Learn recursion", "x").auto_accepted is True


def test_grade_explanation_includes_task_and_explanation_in_prompt() -> None:
    client = _StaticClient('{"isValid": true, "feedback": "ok"}')

    result = grade_explanation(client, "Learn recursion", "A function that calls itself")

    assert result.is_valid is True
    assert result.auto_accepted is False
    assert "Learn recursion" in client.prompts[0]
    assert "A function that calls itself" in client.prompts[0]
