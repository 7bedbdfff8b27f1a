"""Service layer for scoring submitted attempts against the answer key."""
import logging
import math
from datetime import datetime
from typing import Any, Iterator

from fastapi import HTTPException

from exam_api.models.db.attempt import Attempt, AttemptScope, AttemptStatus
from exam_api.services.content_service import load_exam_definition, module_refs
from exam_api.utils import module_content_dir, module_content_path, read_json_file
from exam_core.identity import question_number
from exam_core.scoring import raw_score_band

logger = logging.getLogger(__name__)

# Modules with numbered, auto-marked questions
SCORED_MODULES = ("listening", "reading")


def normalize_answer(value: object) -> str:
    """Lowercase and collapse whitespace so 'True ' matches 'TRUE'."""
    return " ".join(str(value).split()).lower() if value is not None else ""


def accepted_answers(correct: object) -> list[str]:
    """The key may hold one answer or a list of alternatives."""
    values = correct if isinstance(correct, list) else [correct]
    return [normalize_answer(value) for value in values if normalize_answer(value)]


def iter_numbered_questions(parts: list[dict[str, Any]]) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield (part id, question) for every numbered question, sub-questions included."""
    for part in parts:
        part_id = str(part.get("id"))
        for question in part.get("questions") or []:
            for item in question.get("questions") or [question]:
                if item.get("id") and question_number(item.get("questionNumber")) is not None:
                    yield part_id, item


def _module_parts(kind: str, module_id: str | None) -> list[dict[str, Any]]:
    if not module_id:
        return []
    content = read_json_file(module_content_path(kind, module_id), None)
    return list(content.get("parts") or []) if isinstance(content, dict) else []


def _find_part(part_id: str) -> tuple[str, dict[str, Any]] | None:
    for kind in SCORED_MODULES:
        for path in sorted(module_content_dir(kind).glob("*.json")):
            content = read_json_file(path, None)
            if not isinstance(content, dict):
                continue
            for part in content.get("parts") or []:
                if str(part.get("id")) == part_id:
                    return kind, part
    return None


def question_sources(attempt: Attempt) -> list[tuple[str, list[dict[str, Any]]]]:
    """
    Get (module kind, parts) holding the questions an attempt is marked on.

    TASK attempts are writing only and have none.
    """
    if attempt.scope == AttemptScope.TEST.value:
        refs = module_refs(load_exam_definition(attempt.test_id))
        return [(kind, _module_parts(kind, refs.get(kind))) for kind in SCORED_MODULES]
    if attempt.scope == AttemptScope.MODULE.value:
        sources = [(kind, _module_parts(kind, attempt.module_id)) for kind in SCORED_MODULES]
        return [(kind, parts) for kind, parts in sources if parts]
    if attempt.scope == AttemptScope.PART.value:
        found = _find_part(attempt.part_id)
        return [(found[0], [found[1]])] if found else []
    return []


def _minutes_between(started_at: datetime | None, finished_at: datetime | None) -> int | None:
    if started_at is None or finished_at is None:
        return None
    if (started_at.tzinfo is None) != (finished_at.tzinfo is None):
        started_at = started_at.replace(tzinfo=None)
        finished_at = finished_at.replace(tzinfo=None)
    seconds = (finished_at - started_at).total_seconds()
    return max(0, math.floor(seconds / 60 + 0.5))


def score_attempt(attempt: Attempt) -> dict[str, Any]:
    """
    Mark a submitted attempt.

    Each numbered question is worth one point unless the key sets ``points``.
    A question with no key entry is listed but never marked correct.
    Writing answers are reported with whatever grade they have so far.
    """
    saved = {(answer.module, answer.question_id): answer.answer for answer in attempt.answers}

    question_results = []
    for kind, parts in question_sources(attempt):
        for part_id, question in iter_numbered_questions(parts):
            question_id = str(question["id"])
            user_answer = saved.get((kind, question_id))
            accepted = accepted_answers(question.get("correctAnswer"))
            is_correct = bool(accepted) and normalize_answer(user_answer) in accepted
            points = question.get("points") or 1
            question_results.append(
                {
                    "module": kind,
                    "part_id": part_id,
                    "question_id": question_id,
                    "question_number": question_number(question.get("questionNumber")),
                    "user_answer": user_answer,
                    "correct_answer": question.get("correctAnswer"),
                    "is_correct": is_correct,
                    "points": points,
                    "earned_points": points if is_correct else 0,
                }
            )

    total = len(question_results)
    correct = sum(1 for result in question_results if result["is_correct"])
    pending = [answer.task_id for answer in attempt.writing_answers if not answer.is_graded]
    logger.info(
        "Scored attempt %s: %s/%s correct, %s essays awaiting a grade",
        attempt.id,
        correct,
        total,
        len(pending),
    )
    return {
        "attempt_id": attempt.id,
        "scope": attempt.scope,
        "entity_id": attempt.entity_id,
        "total_questions": total,
        "correct_answers": correct,
        "total_points": sum(result["points"] for result in question_results),
        "earned_points": sum(result["earned_points"] for result in question_results),
        "score": math.floor(100 * correct / total + 0.5) if total else None,
        "ielts_band_score": raw_score_band(correct, total),
        "time_spent_minutes": _minutes_between(attempt.started_at, attempt.finished_at),
        "is_completed": not pending,
        "started_at": attempt.started_at,
        "completed_at": attempt.finished_at,
        "question_results": question_results,
        "writing_answers": attempt.writing_answers,
    }


def get_attempt_results(attempt: Attempt | None, user_id: str) -> dict[str, Any]:
    """Results of the user's own submitted attempt; 404 for others, 409 before submit."""
    if attempt is None or attempt.user_id != user_id:
        raise HTTPException(status_code=404, detail="Attempt not found")
    if attempt.status != AttemptStatus.SUBMITTED.value:
        raise HTTPException(
            status_code=409,
            detail=f"Results are only available for submitted attempts (attempt is {attempt.status})",
        )
    return score_attempt(attempt)
