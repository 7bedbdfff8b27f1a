"""Result values returned by attempt, answer and sequencer operations."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from exam_core.errors import (
    AuthenticationError,
    ExamError,
    InvalidStateError,
    TransientError,
    ValidationError,
)
from exam_core.models import Attempt


class FailureKind(str, enum.Enum):
    VALIDATION = "validation"
    INVALID_STATE = "invalid_state"
    TRANSIENT = "transient"
    NO_ATTEMPT = "no_attempt"
    UNAUTHORIZED = "unauthorized"


_ERROR_KINDS: dict[type[ExamError], FailureKind] = {
    AuthenticationError: FailureKind.UNAUTHORIZED,
    ValidationError: FailureKind.VALIDATION,
    InvalidStateError: FailureKind.INVALID_STATE,
    TransientError: FailureKind.TRANSIENT,
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str

    @property
    def retryable(self) -> bool:
        """Only transient failures may be retried."""
        return self.kind is FailureKind.TRANSIENT

    @classmethod
    def from_error(cls, error: ExamError) -> "Failure":
        for error_type, kind in _ERROR_KINDS.items():
            if isinstance(error, error_type):
                return cls(kind, error.message)
        return cls(FailureKind.TRANSIENT, error.message)


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of create/submit/abandon.

    ``attempt`` is the new value on success and the unchanged one on failure.
    """

    attempt: Attempt | None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a batch save. ``batch`` is what was (or would have been) sent."""

    batch: list[dict[str, Any]] = field(default_factory=list)
    sent: bool = False
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class FlagWriteOutcome:
    """
    Advisory outcome of a module completion flag write.

    Carries no error object: a failed write is reported, never raised.
    """

    module: str
    persisted: bool
    message: str | None = None


@dataclass(frozen=True)
class FinishOutcome:
    """Outcome of finishing a module: final save, submit, then the flag write."""

    module: str
    save: SaveResult | None = None
    submission: AttemptResult | None = None
    flag: FlagWriteOutcome | None = None

    @property
    def can_continue(self) -> bool:
        """Whether the learner may leave the module. The flag write never blocks."""
        if self.save is not None and not self.save.ok:
            return False
        if self.submission is not None and not self.submission.ok:
            return False
        return True


@dataclass(frozen=True)
class GradeResult:
    """Outcome of submitting a grade."""

    grade: dict[str, Any] | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None
