import pytest

from exam_core.attempt import AttemptMachine
from exam_core.errors import InvalidStateError, ValidationError
from exam_core.models import (
    Attempt,
    AttemptScope,
    AttemptStatus,
    FullTestTarget,
    ModuleTarget,
    PartTarget,
    TaskTarget,
    target_for,
    target_from_payload,
)
from exam_core.results import FailureKind

from tests.conftest import LEARNER


@pytest.mark.parametrize(
    ("scope", "target_type", "field"),
    [
        (AttemptScope.TEST, FullTestTarget, "test_id"),
        (AttemptScope.MODULE, ModuleTarget, "module_id"),
        ("PART", PartTarget, "part_id"),
        ("TASK", TaskTarget, "task_id"),
    ],
)
def test_target_for_scope(scope, target_type, field) -> None:
    target = target_for(scope, " X1 ")
    assert isinstance(target, target_type)
    assert target.to_payload() == {"scope": AttemptScope(scope).value, field: "X1"}


def test_target_for_rejects_bad_input() -> None:
    with pytest.raises(ValidationError):
        target_for("SECTION", "X1")
    with pytest.raises(ValidationError):
        target_for(AttemptScope.MODULE, "")
    with pytest.raises(ValidationError):
        target_for(AttemptScope.MODULE, None)


def test_target_from_payload_reads_matching_key() -> None:
    target = target_from_payload({"scope": "PART", "part_id": "P1", "module_id": None})
    assert target == PartTarget("P1")
    with pytest.raises(ValidationError):
        target_from_payload({"scope": "PART", "module_id": "R1"})


async def test_create_opens_in_progress_attempt(fake_transport) -> None:
    machine = AttemptMachine(fake_transport)

    result = await machine.create(AttemptScope.MODULE, "R1")

    assert result.ok
    assert result.attempt.status is AttemptStatus.IN_PROGRESS
    assert result.attempt.target == ModuleTarget("R1")
    assert result.attempt.user_id == LEARNER
    assert result.attempt.started_at is not None
    assert fake_transport.called("create_attempt") == [{"scope": "MODULE", "module_id": "R1"}]


async def test_create_validates_before_io(fake_transport) -> None:
    machine = AttemptMachine(fake_transport)

    result = await machine.create("MODULE", "  ")

    assert result.attempt is None
    assert result.failure.kind is FailureKind.VALIDATION
    assert fake_transport.calls == []


async def test_create_reports_transient_failure(fake_transport, network_down) -> None:
    fake_transport.failures["create_attempt"] = network_down
    machine = AttemptMachine(fake_transport)

    result = await machine.create(AttemptScope.TASK, "task-1")

    assert result.attempt is None
    assert result.failure.retryable


async def test_submit_moves_to_submitted(fake_transport) -> None:
    machine = AttemptMachine(fake_transport)
    created = (await machine.create(AttemptScope.MODULE, "R1")).attempt

    result = await machine.submit(created)

    assert result.ok
    assert result.attempt.status is AttemptStatus.SUBMITTED
    assert result.attempt.finished_at is not None
    # the input value is untouched
    assert created.status is AttemptStatus.IN_PROGRESS


async def test_abandon_moves_to_abandoned(fake_transport) -> None:
    machine = AttemptMachine(fake_transport)
    created = (await machine.create(AttemptScope.MODULE, "R1")).attempt

    result = await machine.abandon(created)

    assert result.attempt.status is AttemptStatus.ABANDONED
    assert fake_transport.called("abandon_attempt") == [created.id]


async def test_submit_without_attempt(fake_transport) -> None:
    result = await AttemptMachine(fake_transport).submit(None)
    assert result.failure.kind is FailureKind.NO_ATTEMPT
    assert fake_transport.calls == []


@pytest.mark.parametrize("status", [AttemptStatus.SUBMITTED, AttemptStatus.ABANDONED])
async def test_terminal_attempt_cannot_move(fake_transport, status) -> None:
    machine = AttemptMachine(fake_transport)
    attempt = Attempt(id="a1", user_id=LEARNER, target=ModuleTarget("R1"), status=status)

    submitted = await machine.submit(attempt)
    abandoned = await machine.abandon(attempt)

    assert submitted.failure.kind is FailureKind.INVALID_STATE
    assert abandoned.failure.kind is FailureKind.INVALID_STATE
    assert submitted.attempt is attempt
    assert fake_transport.calls == []


async def test_server_rejection_keeps_current_attempt(fake_transport) -> None:
    fake_transport.failures["submit_attempt"] = InvalidStateError("Attempt is already SUBMITTED", 409)
    machine = AttemptMachine(fake_transport)
    attempt = Attempt(id="a1", user_id=LEARNER, target=ModuleTarget("R1"))

    result = await machine.submit(attempt)

    assert result.attempt is attempt
    assert result.failure.kind is FailureKind.INVALID_STATE
    assert not result.failure.retryable


def test_attempt_from_payload() -> None:
    attempt = Attempt.from_payload(
        {
            "id": "a1",
            "user_id": LEARNER,
            "scope": "TEST",
            "test_id": "T1",
            "status": "SUBMITTED",
            "started_at": "2026-01-01T10:00:00Z",
            "finished_at": "2026-01-01T12:00:00+00:00",
        }
    )
    assert attempt.scope is AttemptScope.TEST
    assert attempt.entity_id == "T1"
    assert attempt.is_terminal
    assert attempt.finished_at.hour == 12


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "a1", "status": "GRADED", "scope": "MODULE", "module_id": "R1", "user_id": LEARNER},
        {"id": "a1", "status": "SUBMITTED", "scope": "SECTION", "user_id": LEARNER},
        {"id": "a1", "status": None, "scope": "MODULE", "module_id": "R1", "user_id": LEARNER},
    ],
)
async def test_malformed_server_payload_is_a_failure(fake_transport, payload) -> None:
    async def submit_attempt(attempt_id):
        return payload

    fake_transport.submit_attempt = submit_attempt
    machine = AttemptMachine(fake_transport)
    attempt = Attempt(id="a1", user_id=LEARNER, target=ModuleTarget("R1"))

    result = await machine.submit(attempt)

    assert result.attempt is attempt
    assert result.failure.kind is FailureKind.TRANSIENT
    assert result.failure.message == "Unexpected response while trying to submit attempt"
