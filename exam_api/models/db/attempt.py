"""
Attempt and answer database models.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_api.database import Base


class AttemptStatus(str, enum.Enum):
    """Status of an attempt."""

    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    ABANDONED = "ABANDONED"


class AttemptScope(str, enum.Enum):
    """Granularity of content an attempt covers."""

    TEST = "TEST"
    MODULE = "MODULE"
    PART = "PART"
    TASK = "TASK"


class AnswerModule(str, enum.Enum):
    """Modules whose answers are keyed by numbered questions."""

    READING = "reading"
    LISTENING = "listening"


# Foreign key column populated for each scope
SCOPE_FIELDS: dict[str, str] = {
    AttemptScope.TEST.value: "test_id",
    AttemptScope.MODULE.value: "module_id",
    AttemptScope.PART.value: "part_id",
    AttemptScope.TASK.value: "task_id",
}

TERMINAL_STATUSES = frozenset(
    {AttemptStatus.SUBMITTED.value, AttemptStatus.ABANDONED.value}
)


def _scope_check() -> str:
    clauses = []
    for scope, field in SCOPE_FIELDS.items():
        others = " AND ".join(
            f"{other} IS NULL" for other in SCOPE_FIELDS.values() if other != field
        )
        clauses.append(f"(scope = '{scope}' AND {field} IS NOT NULL AND {others})")
    return " OR ".join(clauses)


class Attempt(Base):
    """
    One learner's pass at a test, module, part or writing task.
    Never deleted; finished attempts feed the results listings.
    """

    __tablename__ = "attempts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    scope: Mapped[str] = mapped_column(String(16), nullable=False)
    test_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    module_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    part_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    task_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    status: Mapped[str] = mapped_column(
        String(20), default=AttemptStatus.IN_PROGRESS.value, nullable=False
    )
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(_scope_check(), name="ck_attempt_scope_target"),
    )

    # Relationships
    answers: Mapped[list["AttemptAnswer"]] = relationship(
        "AttemptAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptAnswer.id",
    )
    writing_answers: Mapped[list["WritingAnswer"]] = relationship(
        "WritingAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="WritingAnswer.id",
    )

    @property
    def entity_id(self) -> str | None:
        """Id of the content the attempt is bound to."""
        field = SCOPE_FIELDS.get(self.scope)
        return getattr(self, field) if field else None

    @property
    def is_terminal(self) -> bool:
        """Check if attempt is submitted or abandoned."""
        return self.status in TERMINAL_STATUSES


class AttemptAnswer(Base):
    """
    Answer to a single numbered reading or listening question.
    """

    __tablename__ = "attempt_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module: Mapped[str] = mapped_column(String(16), nullable=False)

    part_id: Mapped[str] = mapped_column(String(64), nullable=False)
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    question_number: Mapped[str] = mapped_column(String(16), nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)

    answered_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "attempt_id", "module", "question_id", name="uq_attempt_module_question"
        ),
    )

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="answers")


class WritingAnswer(Base):
    """
    Essay written for one writing task, plus the grade once a grader marks it.
    """

    __tablename__ = "writing_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[str] = mapped_column(String(64), nullable=False)
    answer_text: Mapped[str] = mapped_column(Text, nullable=False)
    word_count: Mapped[int] = mapped_column(default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Grading (entered by a human grader)
    task_response: Mapped[float | None] = mapped_column(nullable=True)
    lexical_resources: Mapped[float | None] = mapped_column(nullable=True)
    grammar_range_and_accuracy: Mapped[float | None] = mapped_column(nullable=True)
    coherence_and_cohesion: Mapped[float | None] = mapped_column(nullable=True)
    overall_band: Mapped[float | None] = mapped_column(nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    graded_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    graded_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("attempt_id", "task_id", name="uq_attempt_task"),
    )

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="writing_answers")

    @property
    def is_graded(self) -> bool:
        return self.graded_at is not None
