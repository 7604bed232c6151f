"""Spaced-repetition transitions for multiple-choice question reviews."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
EASE_REWARD = 0.1
EASE_PENALTY = 0.3
SECOND_INTERVAL_DAYS = 6
DAY_MS = 24 * 60 * 60 * 1000


class LastResult(str, Enum):
    """Outcome of the most recent answer to a question."""

    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True, slots=True)
class RepetitionRecord:
    """Scheduling state kept for a single question."""

    question_id: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review: int
    last_result: Optional[LastResult] = None

    @property
    def is_new(self) -> bool:
        return self.last_result is None

    @property
    def next_review_at(self) -> datetime:
        """Return ``next_review`` as an aware UTC datetime."""
        return datetime.fromtimestamp(self.next_review / 1000, tz=timezone.utc)

    def is_due(self, now: int) -> bool:
        """Whether the question should be offered in a review session at ``now``."""
        if self.is_new or self.last_result is LastResult.INCORRECT:
            return True
        return self.next_review <= now


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def new_record(question_id: str, now: Optional[int] = None) -> RepetitionRecord:
    """Return the default record for a question that has never been answered."""
    if now is None:
        now = now_ms()

    return RepetitionRecord(
        question_id=question_id,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=1,
        repetitions=0,
        next_review=now,
        last_result=None,
    )


def calculate_next_record(
    record: RepetitionRecord,
    is_correct: bool,
    now: Optional[int] = None,
) -> RepetitionRecord:
    """Return the record that follows ``record`` after a correct or incorrect answer.

    Correct answers walk the interval through 1 day, 6 days and then grow it
    geometrically by the ease factor. Incorrect answers reset the streak and
    push the question back to a one day interval. The ease factor is floored
    at ``MIN_EASE_FACTOR`` and has no upper bound.
    """
    if now is None:
        now = now_ms()

    if is_correct:
        if record.repetitions == 0:
            interval = 1
        elif record.repetitions == 1:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = round_half_up(record.interval * record.ease_factor)
        repetitions = record.repetitions + 1
        ease_factor = max(MIN_EASE_FACTOR, record.ease_factor + EASE_REWARD)
        last_result = LastResult.CORRECT
    else:
        interval = 1
        repetitions = 0
        ease_factor = max(MIN_EASE_FACTOR, record.ease_factor - EASE_PENALTY)
        last_result = LastResult.INCORRECT

    return replace(
        record,
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        next_review=now + interval * DAY_MS,
        last_result=last_result,
    )
