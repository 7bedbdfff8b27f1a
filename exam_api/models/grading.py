"""Grading Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ScoreSet(BaseModel):
    """Four analytic sub-scores, each 0-9 in half-band steps."""

    task_response: float = Field(..., ge=0, le=9)
    lexical_resources: float = Field(..., ge=0, le=9)
    grammar_range_and_accuracy: float = Field(..., ge=0, le=9)
    coherence_and_cohesion: float = Field(..., ge=0, le=9)

    @field_validator(
        "task_response",
        "lexical_resources",
        "grammar_range_and_accuracy",
        "coherence_and_cohesion",
    )
    @classmethod
    def _half_band_step(cls, value: float) -> float:
        if (value * 2) != int(value * 2):
            raise ValueError("score must be a multiple of 0.5")
        return value


class GradeRequest(BaseModel):
    """Grade submitted for a writing answer."""

    score: ScoreSet
    feedback: str = Field("", max_length=10000)


class GradingQueueItem(BaseModel):
    """Writing answer waiting for a grade."""

    writing_answer_id: int
    attempt_id: str
    student_id: str
    task_id: str
    answer_text: str
    word_count: int
    submitted_at: datetime | None


class GradingQueueResponse(BaseModel):
    """Page of the grading queue."""

    items: list[GradingQueueItem]
    total: int
    limit: int
    offset: int


class GradeResponse(BaseModel):
    """Stored grade."""

    writing_answer_id: int
    task_response: float
    lexical_resources: float
    grammar_range_and_accuracy: float
    coherence_and_cohesion: float
    overall_band: float
    feedback: str | None
    graded_by: str | None
    graded_at: datetime
