"""Attempt and answer Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field

from exam_api.models.db.attempt import AttemptScope, AttemptStatus


class AttemptCreate(BaseModel):
    """Request to open an attempt. Exactly the id matching scope is set."""

    scope: AttemptScope
    test_id: str | None = None
    module_id: str | None = None
    part_id: str | None = None
    task_id: str | None = None


class AttemptResponse(BaseModel):
    """Attempt as returned to the learner."""

    id: str
    user_id: str
    scope: AttemptScope
    test_id: str | None = None
    module_id: str | None = None
    part_id: str | None = None
    task_id: str | None = None
    status: AttemptStatus
    started_at: datetime
    finished_at: datetime | None = None

    class Config:
        from_attributes = True


class AttemptListResponse(BaseModel):
    """Page of attempts."""

    items: list[AttemptResponse]
    total: int
    limit: int
    offset: int


class AnswerItem(BaseModel):
    """One numbered reading/listening answer."""

    part_id: str = Field(..., min_length=1)
    question_id: str = Field(..., min_length=1)
    question_number: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class AnswerBatch(BaseModel):
    """Batch of reading or listening answers for one attempt."""

    attempt_id: str = Field(..., min_length=1)
    answers: list[AnswerItem]


class WritingAnswerItem(BaseModel):
    """One essay for a writing task."""

    task_id: str = Field(..., min_length=1)
    answer_text: str = Field(..., min_length=1)
    word_count: int = Field(..., ge=0)


class WritingAnswerBatch(BaseModel):
    """Batch of essays for one attempt."""

    attempt_id: str = Field(..., min_length=1)
    answers: list[WritingAnswerItem]


class AnswerResponse(BaseModel):
    """Stored reading/listening answer."""

    module: str
    part_id: str
    question_id: str
    question_number: str
    answer: str
    answered_at: datetime

    class Config:
        from_attributes = True


class WritingAnswerResponse(BaseModel):
    """Stored essay with its grade, if any."""

    id: int
    task_id: str
    answer_text: str
    word_count: int
    updated_at: datetime
    task_response: float | None = None
    lexical_resources: float | None = None
    grammar_range_and_accuracy: float | None = None
    coherence_and_cohesion: float | None = None
    overall_band: float | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
    is_graded: bool = False

    class Config:
        from_attributes = True


class AttemptDetailResponse(AttemptResponse):
    """Attempt with its saved answers."""

    answers: list[AnswerResponse] = []
    writing_answers: list[WritingAnswerResponse] = []


class SaveAnswersResponse(BaseModel):
    """Result of a batch save."""

    status: str
    attempt_id: str
    saved: int


class QuestionResult(BaseModel):
    """One numbered question marked against the answer key."""

    module: str
    part_id: str
    question_id: str
    question_number: int
    user_answer: str | None = None
    correct_answer: str | list[str] | None = None
    is_correct: bool
    points: float
    earned_points: float


class AttemptResultResponse(BaseModel):
    """Marked results of a submitted attempt."""

    attempt_id: str
    scope: AttemptScope
    entity_id: str | None = None
    total_questions: int
    correct_answers: int
    total_points: float
    earned_points: float
    score: int | None = None
    ielts_band_score: float | None = None
    time_spent_minutes: int | None = None
    is_completed: bool
    started_at: datetime
    completed_at: datetime | None = None
    question_results: list[QuestionResult] = []
    writing_answers: list[WritingAnswerResponse] = []
