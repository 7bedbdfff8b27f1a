"""Service layer for grading writing answers."""
import logging

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session as DBSession

from exam_api.models.db.attempt import Attempt, AttemptStatus, WritingAnswer
from exam_api.models.grading import ScoreSet
from exam_api.utils import utc_now
from exam_core.scoring import INCOMPLETE, compute_band

logger = logging.getLogger(__name__)


def _queue_query():
    return (
        select(WritingAnswer, Attempt)
        .join(Attempt, WritingAnswer.attempt_id == Attempt.id)
        .where(
            Attempt.status == AttemptStatus.SUBMITTED.value,
            WritingAnswer.graded_at.is_(None),
        )
    )


def get_grading_queue(
    db: DBSession,
    limit: int = 50,
    offset: int = 0,
) -> list[tuple[WritingAnswer, Attempt]]:
    """
    Get ungraded essays of submitted attempts, oldest submission first.
    """
    query = (
        _queue_query()
        .order_by(Attempt.finished_at.asc(), WritingAnswer.id.asc())
        .limit(limit)
        .offset(offset)
    )
    return [(row[0], row[1]) for row in db.execute(query).all()]


def count_grading_queue(db: DBSession) -> int:
    """Count ungraded essays of submitted attempts."""
    query = select(func.count()).select_from(_queue_query().subquery())
    return db.execute(query).scalar() or 0


def grade_writing(
    db: DBSession,
    writing_answer_id: int,
    score: ScoreSet,
    feedback: str,
    grader_id: str,
) -> WritingAnswer:
    """Store a grader's sub-scores, feedback and the resulting band."""
    answer = db.get(WritingAnswer, writing_answer_id)
    if not answer:
        raise HTTPException(status_code=404, detail="Writing answer not found")

    attempt = db.get(Attempt, answer.attempt_id)
    if attempt is None or attempt.status != AttemptStatus.SUBMITTED.value:
        raise HTTPException(
            status_code=409, detail="Only submitted attempts can be graded"
        )

    scores = score.model_dump()
    band = compute_band(scores)
    if band == INCOMPLETE:
        raise HTTPException(status_code=400, detail="All four scores are required")

    answer.task_response = score.task_response
    answer.lexical_resources = score.lexical_resources
    answer.grammar_range_and_accuracy = score.grammar_range_and_accuracy
    answer.coherence_and_cohesion = score.coherence_and_cohesion
    answer.overall_band = band
    answer.feedback = feedback.strip() or None
    answer.graded_by = grader_id
    answer.graded_at = utc_now()

    db.commit()
    db.refresh(answer)
    logger.info("Writing answer %s graded %.1f by %s", answer.id, band, grader_id)
    return answer
