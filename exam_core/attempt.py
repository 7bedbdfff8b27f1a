"""Attempt state machine: create, submit and abandon.

IN_PROGRESS -> SUBMITTED and IN_PROGRESS -> ABANDONED are the only legal
transitions. Every operation returns an AttemptResult instead of raising.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from exam_core.errors import ExamError, ValidationError
from exam_core.models import Attempt, AttemptScope, AttemptStatus, target_for
from exam_core.results import AttemptResult, Failure, FailureKind
from exam_core.transport import ExamTransport

logger = logging.getLogger(__name__)


class AttemptMachine:
    def __init__(self, transport: ExamTransport):
        self._transport = transport

    async def _run(
        self,
        action: str,
        call: Callable[[], Awaitable[dict[str, Any]]],
        current: Attempt | None,
        fallback_status: AttemptStatus | None = None,
    ) -> AttemptResult:
        try:
            data = await call()
        except ExamError as exc:
            logger.warning("Failed to %s: %s", action, exc.message)
            return AttemptResult(attempt=current, failure=Failure.from_error(exc))
        except Exception:
            logger.exception("Unexpected error while trying to %s", action)
            return AttemptResult(
                attempt=current,
                failure=Failure(FailureKind.TRANSIENT, f"Failed to {action}"),
            )

        if isinstance(data, dict) and data.get("id"):
            try:
                return AttemptResult(attempt=Attempt.from_payload(data))
            except (ExamError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Unexpected attempt payload after %s: %r (%s)", action, data, exc)
                return AttemptResult(
                    attempt=current,
                    failure=Failure(FailureKind.TRANSIENT, f"Unexpected response while trying to {action}"),
                )
        if current is not None and fallback_status is not None:
            return AttemptResult(attempt=current.finished(fallback_status))
        return AttemptResult(
            attempt=current,
            failure=Failure(FailureKind.TRANSIENT, f"Empty response while trying to {action}"),
        )

    async def create(self, scope: AttemptScope | str, entity_id: str | None) -> AttemptResult:
        """Open a new IN_PROGRESS attempt bound to (scope, entity_id)."""
        try:
            target = target_for(scope, entity_id)
        except ValidationError as exc:
            logger.warning("Refusing to create attempt: %s", exc.message)
            return AttemptResult(attempt=None, failure=Failure.from_error(exc))

        return await self._run(
            "create attempt",
            lambda: self._transport.create_attempt(target.to_payload()),
            None,
        )

    def _check_open(self, attempt: Attempt | None, action: str) -> AttemptResult | None:
        if attempt is None:
            logger.warning("No attempt ID, cannot %s", action)
            return AttemptResult(
                attempt=None,
                failure=Failure(FailureKind.NO_ATTEMPT, f"No attempt to {action}"),
            )
        if attempt.is_terminal:
            logger.warning("Cannot %s attempt %s: already %s", action, attempt.id, attempt.status.value)
            return AttemptResult(
                attempt=attempt,
                failure=Failure(
                    FailureKind.INVALID_STATE,
                    f"Attempt is already {attempt.status.value}",
                ),
            )
        return None

    async def submit(self, attempt: Attempt | None) -> AttemptResult:
        """
        Move the attempt to SUBMITTED.

        Pending saves for the attempt must have completed before this is called.
        """
        rejected = self._check_open(attempt, "submit")
        if rejected:
            return rejected
        return await self._run(
            "submit attempt",
            lambda: self._transport.submit_attempt(attempt.id),
            attempt,
            AttemptStatus.SUBMITTED,
        )

    async def abandon(self, attempt: Attempt | None) -> AttemptResult:
        """Move the attempt to ABANDONED."""
        rejected = self._check_open(attempt, "abandon")
        if rejected:
            return rejected
        return await self._run(
            "abandon attempt",
            lambda: self._transport.abandon_attempt(attempt.id),
            attempt,
            AttemptStatus.ABANDONED,
        )
