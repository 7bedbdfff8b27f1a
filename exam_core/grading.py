"""Grader-side helpers: score parsing, band preview and grade submission."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from exam_core.errors import ExamError, ValidationError
from exam_core.results import Failure, FailureKind, GradeResult
from exam_core.scoring import MAX_BAND, MIN_BAND, SUBSCORE_FIELDS, compute_band
from exam_core.transport import ExamTransport

logger = logging.getLogger(__name__)

SCORES_REQUIRED_MESSAGE = "All score fields are required and must be between 0 and 9."


def parse_score(value: Any) -> float | None:
    """Parse a grader's input; None unless it is 0-9 in half-band steps."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or not MIN_BAND <= number <= MAX_BAND:
        return None
    if number * 2 != int(number * 2):
        return None
    return number


@dataclass
class GradeForm:
    """Raw grader input, as typed."""

    task_response: Any = ""
    lexical_resources: Any = ""
    grammar_range_and_accuracy: Any = ""
    coherence_and_cohesion: Any = ""
    feedback: str = ""

    def scores(self) -> dict[str, float | None]:
        return {name: parse_score(getattr(self, name)) for name in SUBSCORE_FIELDS}

    def preview_band(self) -> float | str:
        """Overall band shown while grading, or "incomplete"."""
        return compute_band(self.scores())

    def to_payload(self) -> dict[str, Any]:
        """
        Request body for the grade call.

        Raises:
            ValidationError: a score is missing or invalid.
        """
        scores = self.scores()
        if any(value is None for value in scores.values()):
            raise ValidationError(SCORES_REQUIRED_MESSAGE)
        return {"score": scores, "feedback": (self.feedback or "").strip()}


class GradingDesk:
    def __init__(self, transport: ExamTransport):
        self._transport = transport

    async def fetch_queue(self, limit: int = 50, offset: int = 0) -> dict[str, Any]:
        """Essays waiting for a grade. Raises ExamError on failure."""
        return await self._transport.get_grading_queue(limit=limit, offset=offset)

    async def submit(self, writing_answer_id: int | str, form: GradeForm) -> GradeResult:
        try:
            payload = form.to_payload()
        except ValidationError as exc:
            return GradeResult(failure=Failure.from_error(exc))

        try:
            grade = await self._transport.grade_writing(writing_answer_id, payload)
        except ExamError as exc:
            logger.warning("Failed to submit grade for %s: %s", writing_answer_id, exc.message)
            return GradeResult(failure=Failure.from_error(exc))
        except Exception:
            logger.exception("Unexpected error while grading %s", writing_answer_id)
            return GradeResult(failure=Failure(FailureKind.TRANSIENT, "Failed to submit grade."))
        return GradeResult(grade=grade)
