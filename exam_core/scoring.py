"""Band score aggregation.

Writing: four analytic sub-scores, each 0-9, are averaged and rounded to the
nearest half band. Rounding is half-up (``floor(mean * 2 + 0.5) / 2``), so a
mean of 6.25 becomes 6.5 and 6.75 becomes 7.0.

Listening and reading: the number of correct answers is scaled to a
40-question paper and looked up in the raw score table.
"""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

SUBSCORE_FIELDS = (
    "task_response",
    "lexical_resources",
    "grammar_range_and_accuracy",
    "coherence_and_cohesion",
)

MIN_BAND = 0.0
MAX_BAND = 9.0

# Result when any sub-score is missing or out of range
INCOMPLETE = "incomplete"


def round_half_band(value: float) -> float:
    """Round to the nearest 0.5, halves going up."""
    return math.floor(value * 2 + 0.5) / 2


def is_valid_subscore(value: object) -> bool:
    """Check a sub-score is a finite number in [0, 9]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and MIN_BAND <= value <= MAX_BAND


def compute_band(scores: Mapping[str, float | None] | Sequence[float | None]) -> float | str:
    """
    Combine four sub-scores into an overall band.

    Accepts a mapping keyed by SUBSCORE_FIELDS or a sequence of four values.
    Returns INCOMPLETE if any value is missing or outside [0, 9].
    """
    if isinstance(scores, Mapping):
        values = [scores.get(name) for name in SUBSCORE_FIELDS]
    else:
        values = list(scores)
        if len(values) != len(SUBSCORE_FIELDS):
            return INCOMPLETE

    if not all(is_valid_subscore(value) for value in values):
        return INCOMPLETE

    mean = sum(values) / len(SUBSCORE_FIELDS)
    return round_half_band(mean)


RAW_SCORE_QUESTIONS = 40

# (lowest raw score out of 40, band), highest first
RAW_SCORE_BANDS = (
    (39, 9.0),
    (37, 8.5),
    (35, 8.0),
    (32, 7.5),
    (30, 7.0),
    (26, 6.5),
    (23, 6.0),
    (18, 5.5),
    (16, 5.0),
    (13, 4.5),
    (10, 4.0),
    (8, 3.5),
    (6, 3.0),
    (4, 2.5),
    (2, 2.0),
    (1, 1.0),
)


def raw_score_band(correct: int, total: int) -> float | None:
    """
    Band for ``correct`` right answers out of ``total`` questions.

    Papers shorter or longer than 40 questions are scaled first (half-up).
    Returns None when there is nothing to score.
    """
    if total <= 0:
        return None
    correct = max(0, min(correct, total))
    raw = math.floor(correct * RAW_SCORE_QUESTIONS / total + 0.5)
    for lowest, band in RAW_SCORE_BANDS:
        if raw >= lowest:
            return band
    return MIN_BAND
