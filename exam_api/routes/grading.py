"""Writing grading endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from exam_api.config import DEFAULT_PAGE_SIZE
from exam_api.database import get_db
from exam_api.dependencies.auth import get_current_user_id
from exam_api.models import (
    GradeRequest,
    GradeResponse,
    GradingQueueItem,
    GradingQueueResponse,
)
from exam_api.services import grading_service
from exam_api.utils import clamp_limit

router = APIRouter(prefix="/api/grading", tags=["grading"])


@router.get("/queue", response_model=GradingQueueResponse)
def get_grading_queue(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
) -> GradingQueueResponse:
    """List essays waiting for a grade."""
    limit = clamp_limit(limit)
    rows = grading_service.get_grading_queue(db, limit=limit, offset=offset)
    items = [
        GradingQueueItem(
            writing_answer_id=answer.id,
            attempt_id=attempt.id,
            student_id=attempt.user_id,
            task_id=answer.task_id,
            answer_text=answer.answer_text,
            word_count=answer.word_count,
            submitted_at=attempt.finished_at,
        )
        for answer, attempt in rows
    ]
    return GradingQueueResponse(
        items=items,
        total=grading_service.count_grading_queue(db),
        limit=limit,
        offset=offset,
    )


@router.post("/writing-answers/{writing_answer_id}", response_model=GradeResponse)
def grade_writing_answer(
    writing_answer_id: int,
    payload: GradeRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> GradeResponse:
    """Grade an essay."""
    answer = grading_service.grade_writing(
        db, writing_answer_id, payload.score, payload.feedback, grader_id=user_id
    )
    return GradeResponse(
        writing_answer_id=answer.id,
        task_response=answer.task_response,
        lexical_resources=answer.lexical_resources,
        grammar_range_and_accuracy=answer.grammar_range_and_accuracy,
        coherence_and_cohesion=answer.coherence_and_cohesion,
        overall_band=answer.overall_band,
        feedback=answer.feedback,
        graded_by=answer.graded_by,
        graded_at=answer.graded_at,
    )
