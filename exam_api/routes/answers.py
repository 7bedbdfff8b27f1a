"""Answer saving endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DbSession

from exam_api.database import get_db
from exam_api.dependencies.auth import get_current_user_id
from exam_api.models import AnswerBatch, SaveAnswersResponse, WritingAnswerBatch
from exam_api.models.db.attempt import AnswerModule
from exam_api.services import answer_service
from exam_api.utils import validate_id

router = APIRouter(prefix="/api/answers", tags=["answers"])


def _save_numbered(
    module: AnswerModule,
    payload: AnswerBatch,
    user_id: str,
    db: DbSession,
) -> SaveAnswersResponse:
    attempt_id = validate_id("attemptId", payload.attempt_id)
    saved = answer_service.save_question_answers(
        db, attempt_id, user_id, module, payload.answers
    )
    return SaveAnswersResponse(status="saved", attempt_id=attempt_id, saved=saved)


@router.post("/reading", response_model=SaveAnswersResponse)
def save_reading_answers(
    payload: AnswerBatch,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> SaveAnswersResponse:
    """Save a batch of reading answers."""
    return _save_numbered(AnswerModule.READING, payload, user_id, db)


@router.post("/listening", response_model=SaveAnswersResponse)
def save_listening_answers(
    payload: AnswerBatch,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> SaveAnswersResponse:
    """Save a batch of listening answers."""
    return _save_numbered(AnswerModule.LISTENING, payload, user_id, db)


@router.post("/writing", response_model=SaveAnswersResponse)
def save_writing_answers(
    payload: WritingAnswerBatch,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> SaveAnswersResponse:
    """Save a batch of essays."""
    attempt_id = validate_id("attemptId", payload.attempt_id)
    saved = answer_service.save_writing_answers(db, attempt_id, user_id, payload.answers)
    return SaveAnswersResponse(status="saved", attempt_id=attempt_id, saved=saved)
