"""Sequential unlocking of the modules of a mock exam.

Modules are taken in a fixed order: listening, then reading, then writing.
Each one unlocks when its predecessor's completion flag is set. Finishing a
module submits its attempt first and only then writes the flag; the flag
write is best effort and never keeps the learner from moving on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from exam_core.attempt import AttemptMachine
from exam_core.errors import ExamError, ValidationError
from exam_core.models import Attempt
from exam_core.results import FinishOutcome, FlagWriteOutcome
from exam_core.transport import ExamTransport

logger = logging.getLogger(__name__)

MODULE_ORDER = ("listening", "reading", "writing")


def _check_module(module: str) -> str:
    if module not in MODULE_ORDER:
        raise ValidationError(f"Unknown module: {module!r}")
    return module


def finished_flag(module: str) -> str:
    return f"{_check_module(module)}_finished"


def previous_module(module: str) -> str | None:
    index = MODULE_ORDER.index(_check_module(module))
    return MODULE_ORDER[index - 1] if index > 0 else None


def is_unlocked(flags: Mapping[str, bool], module: str) -> bool:
    """Listening is always open; the others need the previous module finished."""
    previous = previous_module(module)
    if previous is None:
        return True
    return bool(flags.get(finished_flag(previous)))


@dataclass
class ContainerState:
    """Completion flags of a mock exam as the learner's client sees them."""

    mock_test_id: str
    test_id: str | None = None
    listening_finished: bool = False
    reading_finished: bool = False
    writing_finished: bool = False

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ContainerState":
        return cls(
            mock_test_id=str(data["id"]),
            test_id=data.get("test_id"),
            listening_finished=bool(data.get("listening_finished")),
            reading_finished=bool(data.get("reading_finished")),
            writing_finished=bool(data.get("writing_finished")),
        )

    @property
    def flags(self) -> dict[str, bool]:
        return {finished_flag(module): self.is_finished(module) for module in MODULE_ORDER}

    def is_finished(self, module: str) -> bool:
        return bool(getattr(self, finished_flag(module)))

    def mark_finished(self, module: str) -> None:
        """Set a flag locally. Flags never go back to False."""
        setattr(self, finished_flag(module), True)


class ModuleSequencer:
    def __init__(
        self,
        transport: ExamTransport,
        machine: AttemptMachine,
        state: ContainerState,
    ):
        self._transport = transport
        self._machine = machine
        self.state = state
        self._module_refs: dict[str, str | None] | None = None

    @classmethod
    async def load(
        cls,
        transport: ExamTransport,
        machine: AttemptMachine,
        mock_test_id: str,
    ) -> "ModuleSequencer":
        """Fetch the container state. Raises ExamError if it cannot be read."""
        data = await transport.get_mock_test(mock_test_id)
        return cls(transport, machine, ContainerState.from_payload(data))

    async def resolve_modules(self) -> dict[str, str | None]:
        """Content id of each module of this mock exam (fetched once)."""
        if self._module_refs is None:
            data = await self._transport.resolve_mock_test(self.state.mock_test_id)
            self._module_refs = {module: data.get(module) for module in MODULE_ORDER}
        return self._module_refs

    def can_enter(self, module: str) -> bool:
        return is_unlocked(self.state.flags, module)

    async def record_finished(self, module: str) -> FlagWriteOutcome:
        """
        Best-effort write of the module's completion flag.

        The local flag moves forward whatever the outcome, so navigation is
        never blocked; a failed write is logged and reported in the outcome.
        """
        flag = finished_flag(module)
        self.state.mark_finished(module)
        try:
            await self._transport.update_mock_test(self.state.mock_test_id, {flag: True})
        except ExamError as exc:
            logger.warning("Failed to mark %s as finished: %s", module, exc.message)
            return FlagWriteOutcome(module, persisted=False, message=f"Failed to mark {module} as finished")
        except Exception:
            logger.exception("Unexpected error while marking %s as finished", module)
            return FlagWriteOutcome(module, persisted=False, message=f"Failed to mark {module} as finished")
        return FlagWriteOutcome(module, persisted=True)

    async def finish(self, module: str, attempt: Attempt | None = None) -> FinishOutcome:
        """
        Leave a module: submit its attempt (if one was tracked), then set the flag.

        A failed submit stops here and the flag is not written.
        """
        _check_module(module)
        submission = None
        if attempt is not None:
            submission = await self._machine.submit(attempt)
            if not submission.ok:
                return FinishOutcome(module, submission=submission)

        flag = await self.record_finished(module)
        return FinishOutcome(module, submission=submission, flag=flag)
