"""Review-session queries built on the repetition store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from src.db.repetition_store import RepetitionStore, RepetitionStoreError
from src.scheduler.priority import priority_score
from src.scheduler.srs import LastResult, RepetitionRecord, calculate_next_record, new_record, now_ms


LOGGER = logging.getLogger(__name__)

MASTERED_MIN_INTERVAL = 21
MASTERED_MIN_REPETITIONS = 3
DEFAULT_SMART_REVIEW_SIZE = 20

T = TypeVar("T")


@dataclass(slots=True)
class RepetitionStats:
    """How a set of questions splits across learning stages."""

    mastered: int = 0
    learning: int = 0
    needs_review: int = 0
    not_started: int = 0

    @property
    def total(self) -> int:
        return self.mastered + self.learning + self.needs_review + self.not_started


def item_id(item: Any) -> str:
    """Return the question id carried by ``item`` (a mapping with ``"id"`` or an object with ``.id``)."""
    if isinstance(item, Mapping):
        return item["id"]
    return item.id


class RepetitionScheduler:
    """Decides which questions are due and in which order to review them."""

    def __init__(self, store: RepetitionStore, clock: Optional[Callable[[], int]] = None) -> None:
        self._store = store
        self._clock = clock or now_ms

    @property
    def store(self) -> RepetitionStore:
        return self._store

    def now(self) -> int:
        return self._clock()

    def _resolve(
        self,
        records: Mapping[str, RepetitionRecord],
        question_id: str,
        now: int,
    ) -> RepetitionRecord:
        record = records.get(question_id)
        if record is None:
            return new_record(question_id, now)
        return record

    def get_record(self, question_id: str) -> RepetitionRecord:
        return self._store.get_one(question_id, self.now())

    def priority(self, question_id: str) -> float:
        now = self.now()
        return priority_score(self._store.get_one(question_id, now), now)

    def record_answer(self, question_id: str, is_correct: bool) -> RepetitionRecord:
        """Apply an answer to the question's record and persist it.

        Persistence failures are logged and swallowed so that submitting an
        answer always succeeds; the computed record is returned either way.
        """
        now = self.now()
        records = self._store.load_all()
        current = self._resolve(records, question_id, now)
        updated = calculate_next_record(current, is_correct, now)
        records[question_id] = updated

        try:
            self._store.save_all(records)
        except RepetitionStoreError:
            LOGGER.exception("Failed to persist repetition data for question %s.", question_id)

        LOGGER.debug(
            "Question %s answered %s; next review in %s day(s).",
            question_id,
            "correctly" if is_correct else "incorrectly",
            updated.interval,
        )
        return updated

    def rank(self, items: Iterable[T], now: Optional[int] = None) -> list[tuple[T, RepetitionRecord, float]]:
        """Score ``items`` against one snapshot of the store, most urgent first.

        Each entry is ``(item, record, priority)``; ties keep their input order.
        """
        if now is None:
            now = self.now()
        records = self._store.load_all()
        scored = []
        for item in items:
            record = self._resolve(records, item_id(item), now)
            scored.append((item, record, priority_score(record, now)))
        return sorted(scored, key=lambda entry: entry[2], reverse=True)

    def sort_by_priority(self, items: Iterable[T], now: Optional[int] = None) -> list[T]:
        """Return ``items`` ordered by descending priority; ties keep their input order."""
        return [item for item, _, _ in self.rank(items, now)]

    def smart_review(
        self,
        items: Iterable[T],
        count: int = DEFAULT_SMART_REVIEW_SIZE,
        now: Optional[int] = None,
    ) -> list[T]:
        """Pick the ``count`` most urgent items for a review session."""
        if count < 1:
            return []
        return self.sort_by_priority(items, now)[:count]

    def filter_due(self, items: Iterable[T], now: Optional[int] = None) -> list[T]:
        if now is None:
            now = self.now()
        records = self._store.load_all()
        return [item for item in items if self._resolve(records, item_id(item), now).is_due(now)]

    def due_count(self, question_ids: Iterable[str], now: Optional[int] = None) -> int:
        if now is None:
            now = self.now()
        records = self._store.load_all()
        return sum(1 for question_id in question_ids if self._resolve(records, question_id, now).is_due(now))

    def stats(self, question_ids: Sequence[str], now: Optional[int] = None) -> RepetitionStats:
        """Place every question in exactly one learning stage."""
        if now is None:
            now = self.now()
        records = self._store.load_all()
        stats = RepetitionStats()

        for question_id in question_ids:
            record = records.get(question_id)
            if record is None or record.is_new:
                stats.not_started += 1
            elif record.last_result is LastResult.INCORRECT:
                stats.needs_review += 1
            elif record.interval >= MASTERED_MIN_INTERVAL and record.repetitions >= MASTERED_MIN_REPETITIONS:
                stats.mastered += 1
            elif record.next_review <= now:
                stats.needs_review += 1
            else:
                stats.learning += 1

        return stats

    def reset_questions(self, question_ids: Iterable[str]) -> None:
        """Forget progress for a group of questions, such as one chapter."""
        question_ids = list(question_ids)
        self._store.delete_many(question_ids)
        LOGGER.info("Cleared repetition data for %d question(s).", len(question_ids))

    def reset_all(self) -> None:
        self._store.delete_all()
        LOGGER.info("Cleared all repetition data.")
