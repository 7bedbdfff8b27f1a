"""Pydantic models."""
from exam_api.models.attempts import (
    AnswerBatch,
    AnswerItem,
    AttemptCreate,
    AttemptDetailResponse,
    AttemptListResponse,
    AttemptResponse,
    AttemptResultResponse,
    QuestionResult,
    SaveAnswersResponse,
    WritingAnswerBatch,
    WritingAnswerItem,
)
from exam_api.models.grading import (
    GradeRequest,
    GradeResponse,
    GradingQueueItem,
    GradingQueueResponse,
    ScoreSet,
)
from exam_api.models.mock_tests import (
    MockTestCreate,
    MockTestResponse,
    MockTestUpdate,
    ModuleLocks,
    ModuleRefsResponse,
)

__all__ = [
    "AnswerBatch",
    "AnswerItem",
    "AttemptCreate",
    "AttemptDetailResponse",
    "AttemptListResponse",
    "AttemptResponse",
    "AttemptResultResponse",
    "QuestionResult",
    "SaveAnswersResponse",
    "WritingAnswerBatch",
    "WritingAnswerItem",
    "GradeRequest",
    "GradeResponse",
    "GradingQueueItem",
    "GradingQueueResponse",
    "ScoreSet",
    "MockTestCreate",
    "MockTestResponse",
    "MockTestUpdate",
    "ModuleLocks",
    "ModuleRefsResponse",
]
