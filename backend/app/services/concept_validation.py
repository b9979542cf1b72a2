"""Interpret AI grading of a learner's explanation for a task."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.ai_client import GenerationClient, require_client
from app.services.errors import GenerationServiceError

logger = logging.getLogger(__name__)

ACCEPTANCE_PHRASES = ("correct", "demonstrates understanding", "understood")

UNAVAILABLE_FEEDBACK = (
    "AI validation service is currently unavailable. "
    "Your response has been automatically accepted."
)

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


@dataclass
class ValidationResult:
    is_valid: bool
    feedback: str
    concepts_understood: List[str] = field(default_factory=list)
    concepts_missing: List[str] = field(default_factory=list)
    auto_accepted: bool = False


class GradingPayload(BaseModel):
    """Shape the grading prompt asks the model to return.

    Only a JSON boolean counts as a verdict; anything else in ``isValid``
    (missing, ``"true"``, ``1``) reads as not valid. ``null`` or missing
    feedback and concept lists read as empty.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_valid: bool = Field(False, alias="isValid")
    feedback: str = ""
    concepts_understood: List[str] = Field(default_factory=list, alias="conceptsUnderstood")
    concepts_missing: List[str] = Field(default_factory=list, alias="conceptsMissing")

    @field_validator("is_valid", mode="before")
    @classmethod
    def _boolean_verdict(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else False

    @field_validator("feedback", mode="before")
    @classmethod
    def _feedback_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("concepts_understood", "concepts_missing", mode="before")
    @classmethod
    def _concept_list(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item).strip() for item in value if item is not None]


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(value for value in values if value))


def _decode_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Find the first JSON object in the reply: fenced, bare, or embedded in prose."""
    candidates: List[str] = []
    fence = _CODE_FENCE.search(text)
    if fence:
        candidates.append(fence.group(1))
    candidates.append(text.strip())
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            decoded = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(decoded, dict):
            return decoded
    return None


def interpret_grading_response(text: str | None) -> ValidationResult:
    """Prefer the JSON verdict; keyword matching only when the reply holds no JSON object."""
    raw = text or ""
    decoded = _decode_json_object(raw)
    if decoded is None:
        lowered = raw.lower()
        is_valid = any(phrase in lowered for phrase in ACCEPTANCE_PHRASES)
        logger.info("Grading response was not structured; heuristic verdict=%s", is_valid)
        return ValidationResult(is_valid=is_valid, feedback=raw)

    payload = GradingPayload.model_validate(decoded)
    if not isinstance(decoded.get("isValid"), bool):
        logger.info("Grading JSON had no boolean isValid; treating as not valid")
    return ValidationResult(
        is_valid=payload.is_valid,
        feedback=payload.feedback,
        concepts_understood=_unique(payload.concepts_understood),
        concepts_missing=_unique(payload.concepts_missing),
    )


def unavailable_validation_result() -> ValidationResult:
    """Accept-by-default verdict used when grading cannot happen at all."""
    return ValidationResult(
        is_valid=True,
        feedback=UNAVAILABLE_FEEDBACK,
        concepts_understood=["self-reported completion"],
        concepts_missing=[],
        auto_accepted=True,
    )


def build_grading_prompt(task_text: str, explanation: str) -> str:
    return (
        "You are evaluating whether a student has understood a learning task.\n\n"
        f'The task was: "{task_text}"\n\n'
        f'The student\'s explanation is: "{explanation}"\n\n'
        "Evaluate the student's explanation and determine if they demonstrate understanding of the key concepts.\n"
        "First analyze what key concepts should be understood from the task.\n"
        "Then check if the student's explanation addresses these concepts.\n\n"
        "Return your evaluation in JSON format with the following structure:\n"
        "{\n"
        '  "isValid": true/false,\n'
        '  "feedback": "Your detailed feedback here",\n'
        '  "conceptsUnderstood": ["list", "of", "concepts", "understood"],\n'
        '  "conceptsMissing": ["list", "of", "concepts", "missing"]\n'
        "}"
    )


def grade_explanation(
    client: Optional[GenerationClient],
    task_text: str,
    explanation: str,
) -> ValidationResult:
    """Ask the AI service to grade an explanation, accepting it if the service is down."""
    try:
        response_text = require_client(client).generate(
            build_grading_prompt(task_text, explanation),
            json_mode=True,
        )
    except GenerationServiceError as exc:
        logger.warning("Grading unavailable (%s); accepting submission by default", exc.kind)
        return unavailable_validation_result()
    return interpret_grading_response(response_text)
