from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, ClassVar, Mapping

from exam_core.errors import ValidationError


class AttemptScope(str, enum.Enum):
    TEST = "TEST"
    MODULE = "MODULE"
    PART = "PART"
    TASK = "TASK"


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    ABANDONED = "ABANDONED"


TERMINAL_STATUSES = frozenset({AttemptStatus.SUBMITTED, AttemptStatus.ABANDONED})


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO timestamp from a server payload."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class AttemptTarget:
    """The one piece of content an attempt is bound to."""

    entity_id: str

    scope: ClassVar[AttemptScope]
    field_name: ClassVar[str]

    def to_payload(self) -> dict[str, str]:
        return {"scope": self.scope.value, self.field_name: self.entity_id}


@dataclass(frozen=True)
class FullTestTarget(AttemptTarget):
    scope: ClassVar[AttemptScope] = AttemptScope.TEST
    field_name: ClassVar[str] = "test_id"


@dataclass(frozen=True)
class ModuleTarget(AttemptTarget):
    scope: ClassVar[AttemptScope] = AttemptScope.MODULE
    field_name: ClassVar[str] = "module_id"


@dataclass(frozen=True)
class PartTarget(AttemptTarget):
    scope: ClassVar[AttemptScope] = AttemptScope.PART
    field_name: ClassVar[str] = "part_id"


@dataclass(frozen=True)
class TaskTarget(AttemptTarget):
    scope: ClassVar[AttemptScope] = AttemptScope.TASK
    field_name: ClassVar[str] = "task_id"


TARGET_TYPES: dict[AttemptScope, type[AttemptTarget]] = {
    cls.scope: cls for cls in (FullTestTarget, ModuleTarget, PartTarget, TaskTarget)
}


def target_for(scope: AttemptScope | str, entity_id: str | None) -> AttemptTarget:
    """
    Build the target for a scope.

    Raises:
        ValidationError: unknown scope or empty entity id.
    """
    try:
        scope = AttemptScope(scope)
    except ValueError:
        raise ValidationError(f"Invalid scope: {scope!r}") from None
    if not isinstance(entity_id, str) or not entity_id.strip():
        raise ValidationError(f"{TARGET_TYPES[scope].field_name} is required")
    return TARGET_TYPES[scope](entity_id.strip())


def target_from_payload(data: Mapping[str, Any]) -> AttemptTarget:
    """Read the scope and its populated foreign key from a server payload."""
    try:
        scope = AttemptScope(data.get("scope"))
    except ValueError:
        raise ValidationError(f"Invalid scope: {data.get('scope')!r}") from None
    return target_for(scope, data.get(TARGET_TYPES[scope].field_name))


@dataclass(frozen=True)
class Attempt:
    """
    A learner's pass at one target.

    Values are immutable: transitions return a new Attempt.
    """

    id: str
    user_id: str
    target: AttemptTarget
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def scope(self) -> AttemptScope:
        return self.target.scope

    @property
    def entity_id(self) -> str:
        return self.target.entity_id

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def finished(self, status: AttemptStatus, at: datetime | None = None) -> "Attempt":
        """Copy of this attempt moved to a terminal status."""
        return replace(self, status=status, finished_at=at or datetime.now(timezone.utc))

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Attempt":
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("user_id") or ""),
            target=target_from_payload(data),
            status=AttemptStatus(data.get("status", AttemptStatus.IN_PROGRESS.value)),
            started_at=parse_timestamp(data.get("started_at")),
            finished_at=parse_timestamp(data.get("finished_at")),
        )
