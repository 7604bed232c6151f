from __future__ import annotations

import pytest

from src.scheduler.priority import priority_score
from src.scheduler.srs import DAY_MS, LastResult, RepetitionRecord, new_record


NOW = 1_767_225_600_000


def _record(last_result, ease_factor=2.5, next_review=NOW):
    return RepetitionRecord(
        "q", ease_factor=ease_factor, interval=1, repetitions=1, next_review=next_review, last_result=last_result
    )


def test_unanswered_question_scores_fifty() -> None:
    assert priority_score(new_record("q", now=NOW - 100 * DAY_MS), NOW) == 50


@pytest.mark.parametrize(
    ("ease_factor", "expected"),
    [(1.3, 87.0), (2.5, 75.0), (3.0, 70.0)],
)
def test_incorrect_questions_score_by_ease(ease_factor: float, expected: float) -> None:
    assert priority_score(_record(LastResult.INCORRECT, ease_factor), NOW) == pytest.approx(expected)


def test_overdue_correct_question_grows_with_lateness() -> None:
    one_day = priority_score(_record(LastResult.CORRECT, next_review=NOW - DAY_MS), NOW)
    half_day = priority_score(_record(LastResult.CORRECT, next_review=NOW - DAY_MS // 2), NOW)

    assert one_day == pytest.approx(35.0)
    assert half_day == pytest.approx(32.5)


def test_overdue_bonus_saturates() -> None:
    ten_days = priority_score(_record(LastResult.CORRECT, next_review=NOW - 10 * DAY_MS), NOW)
    year = priority_score(_record(LastResult.CORRECT, next_review=NOW - 365 * DAY_MS), NOW)

    assert ten_days == pytest.approx(80.0)
    assert year == pytest.approx(80.0)


def test_not_yet_due_question_scores_by_ease() -> None:
    assert priority_score(_record(LastResult.CORRECT, 2.6, NOW + DAY_MS), NOW) == pytest.approx(13.0)
    # exactly on time is not overdue
    assert priority_score(_record(LastResult.CORRECT, 1.3, NOW), NOW) == pytest.approx(6.5)
