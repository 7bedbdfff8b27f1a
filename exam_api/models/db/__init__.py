"""Database models."""
from exam_api.models.db.attempt import (
    AnswerModule,
    Attempt,
    AttemptAnswer,
    AttemptScope,
    AttemptStatus,
    WritingAnswer,
)
from exam_api.models.db.mock_test import MockTest

__all__ = [
    "AnswerModule",
    "Attempt",
    "AttemptAnswer",
    "AttemptScope",
    "AttemptStatus",
    "WritingAnswer",
    "MockTest",
]
