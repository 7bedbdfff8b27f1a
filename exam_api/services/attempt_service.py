"""Service layer for attempts and their state transitions."""
import logging
import uuid

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session as DBSession, selectinload

from exam_api.models.db.attempt import (
    SCOPE_FIELDS,
    Attempt,
    AttemptScope,
    AttemptStatus,
)
from exam_api.utils import utc_now, validate_id

logger = logging.getLogger(__name__)


def resolve_scope_target(
    scope: AttemptScope | str, ids: dict[str, str | None]
) -> tuple[str, str]:
    """
    Return the (field, entity id) pair an attempt of this scope is bound to.

    Rejects payloads that populate a foreign key not matching the scope.
    """
    scope_value = scope.value if isinstance(scope, AttemptScope) else scope
    field = SCOPE_FIELDS.get(scope_value)
    if field is None:
        raise HTTPException(status_code=400, detail=f"Invalid scope: {scope_value}")

    entity_id = validate_id(field, ids.get(field))

    extra = [
        other for other in SCOPE_FIELDS.values() if other != field and ids.get(other)
    ]
    if extra:
        raise HTTPException(
            status_code=400,
            detail=f"Scope {scope_value} does not accept {', '.join(extra)}",
        )
    return field, entity_id


def create_attempt(
    db: DBSession,
    user_id: str,
    scope: AttemptScope | str,
    ids: dict[str, str | None],
) -> Attempt:
    """
    Open a new attempt bound to one test, module, part or task.

    Does not deduplicate: callers open at most one attempt per session.
    """
    field, entity_id = resolve_scope_target(scope, ids)
    scope_value = scope.value if isinstance(scope, AttemptScope) else scope

    attempt = Attempt(
        id=uuid.uuid4().hex,
        user_id=user_id,
        scope=scope_value,
        status=AttemptStatus.IN_PROGRESS.value,
        started_at=utc_now(),
    )
    setattr(attempt, field, entity_id)

    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    logger.info("Created %s attempt %s for user %s", scope_value, attempt.id, user_id)
    return attempt


def get_attempt(db: DBSession, attempt_id: str) -> Attempt | None:
    """Get attempt by ID with answers loaded."""
    return db.execute(
        select(Attempt)
        .options(selectinload(Attempt.answers), selectinload(Attempt.writing_answers))
        .where(Attempt.id == attempt_id)
    ).scalar_one_or_none()


def get_owned_attempt(db: DBSession, attempt_id: str, user_id: str) -> Attempt:
    """Get an attempt owned by the user, 404 otherwise."""
    attempt = db.get(Attempt, attempt_id)
    if not attempt or attempt.user_id != user_id:
        raise HTTPException(status_code=404, detail="Attempt not found")
    return attempt


def require_in_progress(attempt: Attempt) -> Attempt:
    """Reject operations on submitted or abandoned attempts."""
    if attempt.is_terminal:
        raise HTTPException(
            status_code=409,
            detail=f"Attempt is already {attempt.status}",
        )
    return attempt


def _finish(db: DBSession, attempt_id: str, user_id: str, status: AttemptStatus) -> Attempt:
    attempt = require_in_progress(get_owned_attempt(db, attempt_id, user_id))

    attempt.status = status.value
    attempt.finished_at = utc_now()

    db.commit()
    db.refresh(attempt)
    logger.info("Attempt %s -> %s", attempt.id, attempt.status)
    return attempt


def submit_attempt(db: DBSession, attempt_id: str, user_id: str) -> Attempt:
    """Transition IN_PROGRESS -> SUBMITTED."""
    return _finish(db, attempt_id, user_id, AttemptStatus.SUBMITTED)


def abandon_attempt(db: DBSession, attempt_id: str, user_id: str) -> Attempt:
    """Transition IN_PROGRESS -> ABANDONED."""
    return _finish(db, attempt_id, user_id, AttemptStatus.ABANDONED)


def get_attempts_by_user(
    db: DBSession,
    user_id: str,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Attempt]:
    """
    Get attempts for a user, optionally filtered by status.
    """
    query = select(Attempt).where(Attempt.user_id == user_id)

    if status:
        query = query.where(Attempt.status == status)

    query = query.order_by(Attempt.started_at.desc()).limit(limit).offset(offset)

    return list(db.execute(query).scalars().all())


def count_attempts(
    db: DBSession,
    user_id: str | None = None,
    status: str | None = None,
) -> int:
    """Count attempts matching criteria."""
    query = select(func.count(Attempt.id))

    if user_id:
        query = query.where(Attempt.user_id == user_id)
    if status:
        query = query.where(Attempt.status == status)

    return db.execute(query).scalar() or 0
