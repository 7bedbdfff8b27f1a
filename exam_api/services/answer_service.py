"""Service layer for saving answers against an attempt."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from exam_api.models.attempts import AnswerItem, WritingAnswerItem
from exam_api.models.db.attempt import AnswerModule, AttemptAnswer, WritingAnswer
from exam_api.services.attempt_service import get_owned_attempt, require_in_progress
from exam_api.utils import utc_now

logger = logging.getLogger(__name__)


def save_question_answers(
    db: DBSession,
    attempt_id: str,
    user_id: str,
    module: AnswerModule,
    items: list[AnswerItem],
) -> int:
    """
    Upsert a batch of reading or listening answers.

    Rows are keyed by (attempt, module, question id), so re-sending the same
    batch leaves one row per question.
    """
    attempt = require_in_progress(get_owned_attempt(db, attempt_id, user_id))
    if not items:
        return 0

    existing = {
        row.question_id: row
        for row in db.execute(
            select(AttemptAnswer).where(
                AttemptAnswer.attempt_id == attempt.id,
                AttemptAnswer.module == module.value,
            )
        ).scalars()
    }

    now = utc_now()
    for item in items:
        row = existing.get(item.question_id)
        if row is None:
            row = AttemptAnswer(
                attempt_id=attempt.id,
                module=module.value,
                question_id=item.question_id,
            )
            db.add(row)
            existing[item.question_id] = row
        row.part_id = item.part_id
        row.question_number = item.question_number
        row.answer = item.answer
        row.answered_at = now

    db.commit()
    logger.debug("Saved %d %s answers for attempt %s", len(items), module.value, attempt.id)
    return len(items)


def save_writing_answers(
    db: DBSession,
    attempt_id: str,
    user_id: str,
    items: list[WritingAnswerItem],
) -> int:
    """Upsert a batch of essays, one row per (attempt, task)."""
    attempt = require_in_progress(get_owned_attempt(db, attempt_id, user_id))
    if not items:
        return 0

    existing = {
        row.task_id: row
        for row in db.execute(
            select(WritingAnswer).where(WritingAnswer.attempt_id == attempt.id)
        ).scalars()
    }

    now = utc_now()
    for item in items:
        row = existing.get(item.task_id)
        if row is None:
            row = WritingAnswer(attempt_id=attempt.id, task_id=item.task_id)
            db.add(row)
            existing[item.task_id] = row
        row.answer_text = item.answer_text
        row.word_count = item.word_count
        row.updated_at = now

    db.commit()
    logger.debug("Saved %d essays for attempt %s", len(items), attempt.id)
    return len(items)
