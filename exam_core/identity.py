"""Resolve test-wide question numbers to stable question ids.

Module content arrives as a list of parts, each holding questions. A question
either has its own ``questionNumber`` or groups numbered sub-questions under
``questions`` (one level deep); a parent with sub-questions is never numbered
itself.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


@dataclass
class PartQuestionMapping:
    """Question number -> question id for one part."""

    part_id: str
    question_ids: dict[int, str] = field(default_factory=dict)

    def lookup(self, number: int | str) -> str | None:
        key = question_number(number)
        return self.question_ids.get(key) if key is not None else None

    def __len__(self) -> int:
        return len(self.question_ids)


def question_number(value: Any) -> int | None:
    """Normalize a question number (int or numeric string); None if absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        raw = value.strip()
        return int(raw) if raw.lstrip("-").isdigit() else None
    return None


def _add_entry(question_ids: dict[int, str], question: Mapping[str, Any]) -> None:
    number = question_number(question.get("questionNumber"))
    question_id = question.get("id")
    if number is not None and question_id:
        question_ids[number] = str(question_id)


def build_part_mappings(parts: Iterable[Mapping[str, Any]]) -> list[PartQuestionMapping]:
    """
    Flatten each part's question tree into a number -> id map.

    Returns one mapping per part, in input order. Unnumbered questions and
    questions without an id are skipped; a part with none yields an empty map.
    """
    mappings = []
    for part in parts:
        question_ids: dict[int, str] = {}
        for question in part.get("questions") or []:
            sub_questions = question.get("questions") or []
            if sub_questions:
                for sub in sub_questions:
                    _add_entry(question_ids, sub)
            else:
                _add_entry(question_ids, question)
        mappings.append(PartQuestionMapping(part_id=str(part.get("id")), question_ids=question_ids))
    return mappings


def resolve_question(
    mappings: Iterable[PartQuestionMapping], number: int | str
) -> tuple[str, str] | None:
    """Find (part id, question id) for a question number; first part wins."""
    for mapping in mappings:
        question_id = mapping.lookup(number)
        if question_id is not None:
            return mapping.part_id, question_id
    return None


def question_numbers(mappings: Iterable[PartQuestionMapping]) -> list[int]:
    """All mapped question numbers, part by part, ascending within a part."""
    numbers = []
    for mapping in mappings:
        numbers.extend(sorted(mapping.question_ids))
    return numbers
