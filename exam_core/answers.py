"""Scoped answer store for listening, reading and writing.

Only answered items are sent: an empty value is left out rather than stored,
so "unanswered" stays distinct from "answered". A save with nothing to send
succeeds without any I/O.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping

from exam_core.errors import ExamError
from exam_core.identity import PartQuestionMapping
from exam_core.models import Attempt
from exam_core.results import Failure, FailureKind, SaveResult
from exam_core.transport import ExamTransport

logger = logging.getLogger(__name__)

AnswerMap = Mapping[Any, Any]


def _answer_for(answers: AnswerMap, number: int) -> Any:
    if number in answers:
        return answers[number]
    return answers.get(str(number))


def build_reading_batch(
    answers: AnswerMap,
    mappings: Iterable[PartQuestionMapping],
) -> list[dict[str, str]]:
    """
    Answer records for every mapped question the learner answered.

    ``answers`` is keyed by question number (int or numeric string).
    """
    batch = []
    for mapping in mappings:
        for number, question_id in mapping.question_ids.items():
            value = _answer_for(answers, number)
            if value is None or value == "":
                continue
            batch.append(
                {
                    "part_id": mapping.part_id,
                    "question_id": question_id,
                    "question_number": str(number),
                    "answer": value if isinstance(value, str) else str(value),
                }
            )
    return batch


build_listening_batch = build_reading_batch


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens."""
    return len(text.split())


def build_writing_batch(essays: Mapping[str, str | None]) -> list[dict[str, Any]]:
    """Essay records for every task with non-blank text."""
    batch = []
    for task_id, text in essays.items():
        if not text or not text.strip():
            continue
        batch.append(
            {
                "task_id": task_id,
                "answer_text": text,
                "word_count": count_words(text),
            }
        )
    return batch


class AnswerStore:
    def __init__(self, transport: ExamTransport):
        self._transport = transport

    async def _send(
        self,
        module: str,
        attempt: Attempt | None,
        batch: list[dict[str, Any]],
        call: Callable[[dict[str, Any]], Awaitable[Any]],
    ) -> SaveResult:
        if attempt is None:
            logger.warning("No attempt ID, skipping %s save", module)
            return SaveResult(
                batch=batch,
                failure=Failure(FailureKind.NO_ATTEMPT, f"No attempt to save {module} answers to"),
            )
        if not batch:
            return SaveResult(batch=batch)

        try:
            await call({"attempt_id": attempt.id, "answers": batch})
        except ExamError as exc:
            logger.warning("Failed to save %s answers: %s", module, exc.message)
            return SaveResult(batch=batch, failure=Failure.from_error(exc))
        except Exception:
            logger.exception("Unexpected error while saving %s answers", module)
            return SaveResult(
                batch=batch,
                failure=Failure(FailureKind.TRANSIENT, f"Failed to save {module} answers"),
            )

        logger.debug("Saved %d %s answers for attempt %s", len(batch), module, attempt.id)
        return SaveResult(batch=batch, sent=True)

    async def save_reading(
        self,
        attempt: Attempt | None,
        answers: AnswerMap,
        mappings: Iterable[PartQuestionMapping],
    ) -> SaveResult:
        batch = build_reading_batch(answers, mappings)
        return await self._send("reading", attempt, batch, self._transport.save_reading_answers)

    async def save_listening(
        self,
        attempt: Attempt | None,
        answers: AnswerMap,
        mappings: Iterable[PartQuestionMapping],
    ) -> SaveResult:
        batch = build_listening_batch(answers, mappings)
        return await self._send("listening", attempt, batch, self._transport.save_listening_answers)

    async def save_writing(
        self,
        attempt: Attempt | None,
        essays: Mapping[str, str | None],
    ) -> SaveResult:
        batch = build_writing_batch(essays)
        return await self._send("writing", attempt, batch, self._transport.save_writing_answers)
