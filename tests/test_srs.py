from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.scheduler.srs import (
    DAY_MS,
    MIN_EASE_FACTOR,
    LastResult,
    RepetitionRecord,
    calculate_next_record,
    new_record,
    round_half_up,
)


NOW = 1_767_225_600_000


def test_new_record_uses_defaults() -> None:
    record = new_record("q1", now=NOW)

    assert record.question_id == "q1"
    assert record.ease_factor == 2.5
    assert record.interval == 1
    assert record.repetitions == 0
    assert record.next_review == NOW
    assert record.last_result is None
    assert record.is_new


def test_fresh_question_answered_incorrectly() -> None:
    record = calculate_next_record(new_record("q1", now=NOW), False, now=NOW)

    assert record.repetitions == 0
    assert record.interval == 1
    assert record.ease_factor == pytest.approx(2.2)
    assert record.last_result is LastResult.INCORRECT
    assert record.next_review == NOW + 86_400_000


def test_consecutive_correct_answers_walk_interval_tiers() -> None:
    first = calculate_next_record(new_record("q1", now=NOW), True, now=NOW)
    second = calculate_next_record(first, True, now=NOW)

    assert (first.interval, first.repetitions) == (1, 1)
    assert (second.interval, second.repetitions) == (6, 2)
    assert second.ease_factor == pytest.approx(2.7)

    third = calculate_next_record(
        RepetitionRecord("q1", ease_factor=2.6, interval=6, repetitions=2, next_review=NOW,
                         last_result=LastResult.CORRECT),
        True,
        now=NOW,
    )
    assert third.interval == 16
    assert third.repetitions == 3
    assert third.next_review == NOW + 16 * DAY_MS


def test_second_success_scales_by_current_ease() -> None:
    record = RepetitionRecord(
        "q2", ease_factor=2.5, interval=6, repetitions=1, next_review=NOW, last_result=LastResult.CORRECT
    )
    # repetitions == 1 always lands on the six day tier
    assert calculate_next_record(record, True, now=NOW).interval == 6

    mature = RepetitionRecord(
        "q2", ease_factor=2.5, interval=6, repetitions=2, next_review=NOW, last_result=LastResult.CORRECT
    )
    updated = calculate_next_record(mature, True, now=NOW)
    assert updated.interval == 15
    assert updated.repetitions == 3
    assert updated.ease_factor == pytest.approx(2.6)
    assert updated.last_result is LastResult.CORRECT


def test_incorrect_answer_resets_long_streak() -> None:
    record = RepetitionRecord(
        "q3", ease_factor=2.9, interval=120, repetitions=7, next_review=NOW, last_result=LastResult.CORRECT
    )

    updated = calculate_next_record(record, False, now=NOW)

    assert updated.repetitions == 0
    assert updated.interval == 1
    assert updated.ease_factor == pytest.approx(2.6)
    assert updated.next_review == NOW + DAY_MS


def test_ease_factor_never_drops_below_floor() -> None:
    record = new_record("q4", now=NOW)
    for _ in range(20):
        record = calculate_next_record(record, False, now=NOW)
        assert record.ease_factor >= MIN_EASE_FACTOR

    assert record.ease_factor == pytest.approx(MIN_EASE_FACTOR)


def test_ease_factor_and_interval_have_no_ceiling() -> None:
    record = new_record("q5", now=NOW)
    for _ in range(15):
        record = calculate_next_record(record, True, now=NOW)

    assert record.ease_factor == pytest.approx(4.0)
    assert record.interval > 365


def test_transition_does_not_mutate_input() -> None:
    original = new_record("q6", now=NOW)
    calculate_next_record(original, True, now=NOW)

    assert original == new_record("q6", now=NOW)


def test_round_half_up_is_deterministic() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(15.5) == 16
    assert round_half_up(15.49) == 15


def test_next_review_at_is_utc_datetime() -> None:
    record = new_record("q7", now=NOW)

    assert record.next_review_at == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_due_predicate() -> None:
    answered = RepetitionRecord(
        "q8", ease_factor=2.6, interval=1, repetitions=1, next_review=NOW + DAY_MS, last_result=LastResult.CORRECT
    )

    assert new_record("q8", now=NOW + 10 * DAY_MS).is_due(NOW)
    assert not answered.is_due(NOW)
    assert answered.is_due(NOW + DAY_MS)
    assert calculate_next_record(answered, False, now=NOW).is_due(NOW)
