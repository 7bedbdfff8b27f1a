"""Service layer for mock exam containers."""
import logging
import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session as DBSession

from exam_api.models.db.mock_test import MockTest
from exam_api.services.content_service import load_exam_definition, module_refs
from exam_api.utils import utc_now, validate_id

logger = logging.getLogger(__name__)

# Completion flag that must be set before each module can be entered
MODULE_PREREQUISITES: dict[str, str | None] = {
    "listening": None,
    "reading": "listening",
    "writing": "reading",
}


def finished_flag(module: str) -> str:
    """Name of the completion flag column for a module."""
    if module not in MODULE_PREREQUISITES:
        raise HTTPException(status_code=400, detail=f"Unknown module: {module}")
    return f"{module}_finished"


def is_module_unlocked(mock_test: MockTest, module: str) -> bool:
    """Check whether the module's predecessor is finished."""
    finished_flag(module)
    previous = MODULE_PREREQUISITES[module]
    if previous is None:
        return True
    return bool(getattr(mock_test, finished_flag(previous)))


def create_mock_test(
    db: DBSession,
    test_id: str,
    user_id: str,
    assigned_by: str | None = None,
) -> MockTest:
    """Assign a mock exam for a test to a learner."""
    test_id = validate_id("testId", test_id)
    load_exam_definition(test_id)

    mock_test = MockTest(
        id=uuid.uuid4().hex,
        user_id=user_id,
        test_id=test_id,
        assigned_by=assigned_by,
    )
    db.add(mock_test)
    db.commit()
    db.refresh(mock_test)
    return mock_test


def get_owned_mock_test(db: DBSession, mock_test_id: str, user_id: str) -> MockTest:
    """Get a mock exam owned by the user, 404 otherwise."""
    mock_test = db.get(MockTest, mock_test_id)
    if not mock_test or mock_test.user_id != user_id:
        raise HTTPException(status_code=404, detail="Mock test not found")
    return mock_test


def set_finished_flags(
    db: DBSession,
    mock_test_id: str,
    user_id: str,
    flags: dict[str, bool | None],
) -> MockTest:
    """
    Set module completion flags.

    Flags only move forward: False is rejected and a set flag stays set.
    """
    mock_test = get_owned_mock_test(db, mock_test_id, user_id)

    updates = {name: value for name, value in flags.items() if value is not None}
    if not updates:
        raise HTTPException(status_code=400, detail="No completion flag given")

    for name, value in updates.items():
        if value is not True:
            raise HTTPException(
                status_code=400, detail=f"{name} cannot be reset to false"
            )

    for name in updates:
        module = name.removesuffix("_finished")
        if not getattr(mock_test, finished_flag(module)):
            setattr(mock_test, name, True)
            logger.info("Mock test %s: %s set", mock_test.id, name)

    mock_test.updated_at = utc_now()
    db.commit()
    db.refresh(mock_test)
    return mock_test


def resolve_modules(mock_test: MockTest) -> dict[str, str | None]:
    """Map a mock exam to the content ids of its listening/reading/writing modules."""
    return module_refs(load_exam_definition(mock_test.test_id))
