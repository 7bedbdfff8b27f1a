import math

import pytest

from exam_core.scoring import INCOMPLETE, compute_band, raw_score_band, round_half_band


@pytest.mark.parametrize(
    ("scores", "expected"),
    [
        ((7, 7, 7, 7), 7.0),
        ((6, 7, 6.5, 7), 6.5),
        ((5, 6, 7, 8), 6.5),
        ((6, 6, 6.5, 6.5), 6.5),  # mean 6.25 rounds up
        ((6.5, 7, 7, 7), 7.0),  # mean 6.875
        ((6.5, 6.5, 7, 7), 7.0),  # mean 6.75 rounds up
        ((0, 0, 0, 0), 0.0),
        ((9, 9, 9, 9), 9.0),
    ],
)
def test_compute_band(scores, expected) -> None:
    assert compute_band(scores) == expected


def test_compute_band_from_mapping() -> None:
    scores = {
        "task_response": 6,
        "lexical_resources": 7,
        "grammar_range_and_accuracy": 6.5,
        "coherence_and_cohesion": 7,
    }
    assert compute_band(scores) == 6.5


@pytest.mark.parametrize(
    "scores",
    [
        (7, 7, 7, None),
        (7, 7, 7),
        (7, 7, 7, 7, 7),
        (7, 7, 7, 9.5),
        (7, 7, 7, -1),
        (7, 7, 7, math.nan),
        (7, 7, 7, "7"),
        (7, 7, 7, True),
        {"task_response": 7, "lexical_resources": 7, "grammar_range_and_accuracy": 7},
    ],
)
def test_compute_band_incomplete(scores) -> None:
    assert compute_band(scores) == INCOMPLETE


def test_round_half_band() -> None:
    assert round_half_band(6.24) == 6.0
    assert round_half_band(6.25) == 6.5
    assert round_half_band(6.74) == 6.5
    assert round_half_band(6.75) == 7.0


@pytest.mark.parametrize(
    ("correct", "total", "expected"),
    [
        (40, 40, 9.0),
        (39, 40, 9.0),
        (30, 40, 7.0),
        (29, 40, 6.5),
        (23, 40, 6.0),
        (0, 40, 0.0),
        (5, 5, 9.0),
        (3, 5, 6.0),  # 24 of 40
        (1, 3, 4.5),  # 13 of 40
        (7, 40, 3.0),
        (50, 40, 9.0),
    ],
)
def test_raw_score_band(correct, total, expected) -> None:
    assert raw_score_band(correct, total) == expected


def test_raw_score_band_without_questions() -> None:
    assert raw_score_band(0, 0) is None
