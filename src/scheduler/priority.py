"""Urgency scores used to order review sessions."""

from __future__ import annotations

from src.scheduler.srs import DAY_MS, LastResult, RepetitionRecord


NEW_QUESTION_PRIORITY = 50.0
OVERDUE_BASE_PRIORITY = 30.0
OVERDUE_PRIORITY_PER_DAY = 5.0
MAX_OVERDUE_BONUS = 50.0


def priority_score(record: RepetitionRecord, now: int) -> float:
    """Return how urgently ``record`` should be reviewed; higher sorts first.

    Incorrectly answered questions score ``100 - ease * 10``, overdue correct
    ones 30-80 depending on how late they are, and correct questions that are
    not yet due ``ease * 5``. Questions never answered sit at a flat 50.
    """
    if record.is_new:
        return NEW_QUESTION_PRIORITY

    if record.last_result is LastResult.INCORRECT:
        return 100 - record.ease_factor * 10

    days_overdue = (now - record.next_review) / DAY_MS
    if days_overdue > 0:
        return OVERDUE_BASE_PRIORITY + min(days_overdue * OVERDUE_PRIORITY_PER_DAY, MAX_OVERDUE_BONUS)

    return record.ease_factor * 5
