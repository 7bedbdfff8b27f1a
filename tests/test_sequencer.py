import pytest

from exam_core.attempt import AttemptMachine
from exam_core.errors import InvalidStateError, ValidationError
from exam_core.models import Attempt, AttemptStatus, ModuleTarget
from exam_core.results import FailureKind
from exam_core.sequencer import (
    ContainerState,
    ModuleSequencer,
    finished_flag,
    is_unlocked,
    previous_module,
)

from tests.conftest import LEARNER


def _sequencer(transport, **flags) -> ModuleSequencer:
    state = ContainerState(mock_test_id="m1", test_id="T1", **flags)
    return ModuleSequencer(transport, AttemptMachine(transport), state)


def test_module_order() -> None:
    assert previous_module("listening") is None
    assert previous_module("writing") == "reading"
    assert finished_flag("reading") == "reading_finished"
    with pytest.raises(ValidationError):
        finished_flag("speaking")


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ({}, {"listening": True, "reading": False, "writing": False}),
        ({"listening_finished": True}, {"listening": True, "reading": True, "writing": False}),
        ({"reading_finished": True}, {"listening": True, "reading": False, "writing": True}),
        (
            {"listening_finished": True, "reading_finished": True},
            {"listening": True, "reading": True, "writing": True},
        ),
    ],
)
def test_unlock_rules(flags, expected) -> None:
    assert {module: is_unlocked(flags, module) for module in expected} == expected


def test_container_state_from_payload() -> None:
    state = ContainerState.from_payload(
        {"id": "m1", "test_id": "T1", "listening_finished": True, "reading_finished": None}
    )
    assert state.flags == {
        "listening_finished": True,
        "reading_finished": False,
        "writing_finished": False,
    }


async def test_record_finished_writes_flag(fake_transport) -> None:
    sequencer = _sequencer(fake_transport)

    outcome = await sequencer.record_finished("listening")

    assert outcome.persisted
    assert sequencer.can_enter("reading")
    assert fake_transport.called("update_mock_test") == [("m1", {"listening_finished": True})]


async def test_failed_flag_write_still_advances_locally(fake_transport, network_down) -> None:
    fake_transport.failures["update_mock_test"] = network_down
    sequencer = _sequencer(fake_transport)

    outcome = await sequencer.record_finished("listening")

    assert not outcome.persisted
    assert outcome.message == "Failed to mark listening as finished"
    # the local view moves on even though the server kept the old flag
    assert sequencer.state.listening_finished
    assert sequencer.can_enter("reading")


async def test_finish_submits_before_flag(fake_transport) -> None:
    sequencer = _sequencer(fake_transport)
    attempt = Attempt(id="a1", user_id=LEARNER, target=ModuleTarget("L1"))

    outcome = await sequencer.finish("listening", attempt)

    assert outcome.can_continue
    assert outcome.submission.attempt.status is AttemptStatus.SUBMITTED
    assert outcome.flag.persisted
    assert [name for name, _ in fake_transport.calls] == ["submit_attempt", "update_mock_test"]


async def test_failed_submit_blocks_flag(fake_transport) -> None:
    fake_transport.failures["submit_attempt"] = InvalidStateError("Attempt not found", 404)
    sequencer = _sequencer(fake_transport)
    attempt = Attempt(id="a1", user_id=LEARNER, target=ModuleTarget("L1"))

    outcome = await sequencer.finish("listening", attempt)

    assert not outcome.can_continue
    assert outcome.submission.failure.kind is FailureKind.INVALID_STATE
    assert outcome.flag is None
    assert not sequencer.state.listening_finished
    assert fake_transport.called("update_mock_test") == []


async def test_finish_without_attempt_only_writes_flag(fake_transport, network_down) -> None:
    fake_transport.failures["update_mock_test"] = network_down
    sequencer = _sequencer(fake_transport, listening_finished=True)

    outcome = await sequencer.finish("reading")

    assert outcome.can_continue
    assert outcome.submission is None
    assert not outcome.flag.persisted
    assert sequencer.can_enter("writing")


async def test_resolve_modules_is_cached(fake_transport) -> None:
    sequencer = _sequencer(fake_transport)

    first = await sequencer.resolve_modules()
    second = await sequencer.resolve_modules()

    assert first == {"listening": "L1", "reading": "R1", "writing": "W1"}
    assert second is first
    assert fake_transport.called("resolve_mock_test") == ["m1"]
