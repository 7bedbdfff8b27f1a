"""Attempt management endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DbSession

from exam_api.config import DEFAULT_PAGE_SIZE
from exam_api.database import get_db
from exam_api.dependencies.auth import get_current_user_id
from exam_api.models import (
    AttemptCreate,
    AttemptDetailResponse,
    AttemptListResponse,
    AttemptResponse,
    AttemptResultResponse,
)
from exam_api.models.db.attempt import AttemptStatus
from exam_api.services import attempt_service, results_service
from exam_api.utils import clamp_limit, validate_id

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.post("", response_model=AttemptResponse, status_code=201)
def create_attempt(
    payload: AttemptCreate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AttemptResponse:
    """Open a new attempt."""
    attempt = attempt_service.create_attempt(
        db,
        user_id,
        payload.scope,
        payload.model_dump(include={"test_id", "module_id", "part_id", "task_id"}),
    )
    return AttemptResponse.model_validate(attempt)


@router.get("", response_model=AttemptListResponse)
def list_my_attempts(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
    status: AttemptStatus | None = None,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
) -> AttemptListResponse:
    """List the current user's attempts, newest first."""
    limit = clamp_limit(limit)
    status_value = status.value if status else None
    attempts = attempt_service.get_attempts_by_user(
        db, user_id, status=status_value, limit=limit, offset=offset
    )
    total = attempt_service.count_attempts(db, user_id=user_id, status=status_value)
    return AttemptListResponse(
        items=[AttemptResponse.model_validate(a) for a in attempts],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{attempt_id}", response_model=AttemptDetailResponse)
def get_attempt(
    attempt_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AttemptDetailResponse:
    """Get an attempt with its saved answers."""
    attempt_id = validate_id("attemptId", attempt_id)
    attempt = attempt_service.get_attempt(db, attempt_id)
    if attempt is None or attempt.user_id != user_id:
        raise HTTPException(status_code=404, detail="Attempt not found")
    return AttemptDetailResponse.model_validate(attempt)


@router.get("/{attempt_id}/results", response_model=AttemptResultResponse)
def get_attempt_results(
    attempt_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AttemptResultResponse:
    """Mark a submitted attempt against the answer key."""
    attempt_id = validate_id("attemptId", attempt_id)
    attempt = attempt_service.get_attempt(db, attempt_id)
    return AttemptResultResponse.model_validate(
        results_service.get_attempt_results(attempt, user_id), from_attributes=True
    )


@router.post("/{attempt_id}/submit", response_model=AttemptResponse)
def submit_attempt(
    attempt_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AttemptResponse:
    """Submit an in-progress attempt."""
    attempt_id = validate_id("attemptId", attempt_id)
    attempt = attempt_service.submit_attempt(db, attempt_id, user_id)
    return AttemptResponse.model_validate(attempt)


@router.post("/{attempt_id}/abandon", response_model=AttemptResponse)
def abandon_attempt(
    attempt_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AttemptResponse:
    """Abandon an in-progress attempt."""
    attempt_id = validate_id("attemptId", attempt_id)
    attempt = attempt_service.abandon_attempt(db, attempt_id, user_id)
    return AttemptResponse.model_validate(attempt)
