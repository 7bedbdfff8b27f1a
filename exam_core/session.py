"""One learner's pass through a single module page.

Ties the pieces together in the order the exam pages use them: load content,
build the question map, open the attempt once, save answers as they change,
then save, submit and (in a mock exam) flip the module's completion flag.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from exam_core.answers import AnswerStore
from exam_core.attempt import AttemptMachine
from exam_core.autosave import AutoSaver
from exam_core.config import AUTOSAVE_INTERVAL_SECONDS
from exam_core.errors import ExamError, ValidationError
from exam_core.identity import PartQuestionMapping, build_part_mappings
from exam_core.models import Attempt, AttemptScope, AttemptStatus
from exam_core.results import (
    AttemptResult,
    Failure,
    FailureKind,
    FinishOutcome,
    SaveResult,
)
from exam_core.sequencer import MODULE_ORDER, ModuleSequencer
from exam_core.transport import ExamTransport

logger = logging.getLogger(__name__)


class ModuleSession:
    def __init__(
        self,
        kind: str,
        transport: ExamTransport,
        *,
        machine: AttemptMachine | None = None,
        store: AnswerStore | None = None,
        sequencer: ModuleSequencer | None = None,
        scope: AttemptScope = AttemptScope.MODULE,
        autosave_interval: float = AUTOSAVE_INTERVAL_SECONDS,
    ):
        if kind not in MODULE_ORDER:
            raise ValidationError(f"Unknown module kind: {kind!r}")
        self.kind = kind
        self.scope = scope
        self._transport = transport
        self._machine = machine or AttemptMachine(transport)
        self._store = store or AnswerStore(transport)
        self._sequencer = sequencer
        self._autosave_interval = autosave_interval
        self._autosaver: AutoSaver | None = None
        self._answers_provider: Callable[[], Mapping[Any, Any]] | None = None
        self._create_task: asyncio.Task | None = None

        self.content_id: str | None = None
        self.entity_id: str | None = None
        self.parts: list[Mapping[str, Any]] = []
        self.mappings: list[PartQuestionMapping] = []
        self.task_ids: list[str] = []
        self.attempt: Attempt | None = None
        self.error: str | None = None
        self.is_saving = False
        self.last_saved_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.attempt is not None and self.attempt.status is AttemptStatus.IN_PROGRESS

    async def load(self, content_id: str | None = None, entity_id: str | None = None) -> bool:
        """
        Fetch the module content and build the question map.

        In a mock exam the module must be unlocked, and ``content_id`` may be
        left out to take it from the exam. ``entity_id`` defaults to the
        content id (for PART/TASK scopes pass the part or task id).
        Returns False and sets ``error`` when nothing can be shown.
        """
        self.error = None
        if self._sequencer is not None:
            if not self._sequencer.can_enter(self.kind):
                self.error = f"The {self.kind} module is locked."
                return False
            if content_id is None:
                try:
                    refs = await self._sequencer.resolve_modules()
                except ExamError as exc:
                    logger.warning("Failed to resolve mock test modules: %s", exc.message)
                    self.error = f"Failed to load {self.kind} test."
                    return False
                content_id = refs.get(self.kind)

        if not content_id:
            self.error = f"No {self.kind} module found for this exam."
            return False

        try:
            content = await self._transport.get_module_content(self.kind, content_id)
        except ExamError as exc:
            logger.warning("Failed to load %s module %s: %s", self.kind, content_id, exc.message)
            self.error = f"Failed to load {self.kind} test."
            return False

        self.content_id = content_id
        self.entity_id = entity_id or content_id
        if self.kind == "writing":
            self.task_ids = [str(task["id"]) for task in content.get("tasks") or [] if task.get("id")]
            if not self.task_ids:
                self.error = "No writing tasks found."
                return False
        else:
            self.parts = list(content.get("parts") or [])
            self.mappings = build_part_mappings(self.parts)
            if not self.parts:
                self.error = f"No {self.kind} parts found."
                return False
        return True

    async def _create(self) -> AttemptResult:
        result = await self._machine.create(self.scope, self.entity_id)
        if result.ok:
            self.attempt = result.attempt
        else:
            self.error = result.failure.message
        return result

    async def ensure_attempt(self) -> AttemptResult:
        """
        Open the attempt for this page exactly once.

        Later (or concurrent) calls share the first call's result, even when
        it failed, so a re-fired effect never opens a second attempt.
        Calls made before ``load`` succeeded do not use up the guard.
        """
        if self._create_task is None:
            if not self.entity_id:
                return AttemptResult(
                    attempt=None,
                    failure=Failure(FailureKind.VALIDATION, "Module content is not loaded"),
                )
            self._create_task = asyncio.ensure_future(self._create())
        return await self._create_task

    async def save_progress(self, answers: Mapping[Any, Any]) -> SaveResult:
        """Send everything answered so far. ``answers`` is the full current map."""
        self.is_saving = True
        try:
            if self.kind == "reading":
                result = await self._store.save_reading(self.attempt, answers, self.mappings)
            elif self.kind == "listening":
                result = await self._store.save_listening(self.attempt, answers, self.mappings)
            else:
                result = await self._store.save_writing(self.attempt, answers)
        finally:
            self.is_saving = False

        if result.sent:
            self.last_saved_at = datetime.now(timezone.utc)
        elif not result.ok:
            self.error = result.failure.message
        return result

    async def _autosave_tick(self) -> None:
        if self._answers_provider is not None:
            await self.save_progress(self._answers_provider())

    def start_autosave(self, answers_provider: Callable[[], Mapping[Any, Any]]) -> AutoSaver:
        """Save ``answers_provider()`` periodically while the attempt is in progress."""
        self._answers_provider = answers_provider
        if self._autosaver is None:
            self._autosaver = AutoSaver(
                self._autosave_tick,
                interval=self._autosave_interval,
                is_active=lambda: self.attempt is None or not self.attempt.is_terminal,
                is_busy=lambda: self.is_saving or self.attempt is None,
            )
        self._autosaver.start()
        return self._autosaver

    async def stop_autosave(self) -> None:
        if self._autosaver is not None:
            await self._autosaver.stop()

    def _resume_autosave(self) -> None:
        """Restart periodic saving after a failed finish, while the attempt stays open."""
        if self._autosaver is not None and self._answers_provider is not None and self.is_active:
            self._autosaver.start()

    async def submit(self, answers: Mapping[Any, Any] | None = None) -> FinishOutcome:
        """
        Final save, then submit, then the mock exam flag.

        ``answers`` defaults to the autosave provider's current map. A failed
        save or submit leaves the learner on the page to retry, with autosave
        running again.
        """
        if answers is None:
            answers = self._answers_provider() if self._answers_provider is not None else {}
        await self.stop_autosave()

        save = await self.save_progress(answers)
        if not save.ok:
            self._resume_autosave()
            return FinishOutcome(self.kind, save=save)

        if self._sequencer is not None:
            finished = await self._sequencer.finish(self.kind, self.attempt)
            submission, flag = finished.submission, finished.flag
        else:
            submission, flag = await self._machine.submit(self.attempt), None

        self.attempt = submission.attempt
        if not submission.ok:
            self.error = submission.failure.message
            self._resume_autosave()
            return FinishOutcome(self.kind, save=save, submission=submission)

        if flag is not None and not flag.persisted:
            self.error = flag.message
        return FinishOutcome(self.kind, save=save, submission=submission, flag=flag)

    async def leave(self, answers: Mapping[Any, Any] | None = None) -> FinishOutcome | None:
        """
        Leave the module early (time ran out or the learner moves on).

        An open attempt is saved and submitted exactly like ``submit``.
        Without one, a mock exam only gets its completion flag written.
        Returns None outside a mock exam when there is nothing to submit.
        """
        if self.is_active:
            return await self.submit(answers)

        await self.stop_autosave()
        if self._sequencer is None:
            return None
        outcome = await self._sequencer.finish(self.kind)
        if not outcome.flag.persisted:
            self.error = outcome.flag.message
        return outcome

    async def abandon(self) -> AttemptResult:
        await self.stop_autosave()
        result = await self._machine.abandon(self.attempt)
        self.attempt = result.attempt
        if not result.ok:
            self.error = result.failure.message
        return result

    async def close(self) -> None:
        """Teardown: stop autosave. An in-flight save is left to finish."""
        await self.stop_autosave()
