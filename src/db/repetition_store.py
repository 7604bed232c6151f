"""Persistence for per-question repetition records."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Iterable, Mapping, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.scheduler.srs import MIN_EASE_FACTOR, LastResult, RepetitionRecord, new_record

from . import RepetitionDocument


LOGGER = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "spaced-repetition-data"


class RepetitionStoreError(RuntimeError):
    """Raised when the repetition document cannot be written."""


class DocumentBackend(Protocol):
    """Holds one serialized document; read and written wholesale."""

    def read(self) -> Optional[str]: ...

    def write(self, payload: str) -> None: ...

    def remove(self) -> None: ...


class InMemoryDocumentBackend:
    """Keeps the document in process memory."""

    def __init__(self, payload: Optional[str] = None) -> None:
        self.payload = payload

    def read(self) -> Optional[str]:
        return self.payload

    def write(self, payload: str) -> None:
        self.payload = payload

    def remove(self) -> None:
        self.payload = None


class SqlDocumentBackend:
    """Stores the document as a single row of ``repetition_documents``."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self._session_factory = session_factory
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def read(self) -> Optional[str]:
        with self._session_factory() as session:
            document = session.get(RepetitionDocument, self._key)
            return None if document is None else document.payload

    def write(self, payload: str) -> None:
        with self._session_factory.begin() as session:
            document = session.get(RepetitionDocument, self._key)
            if document is None:
                session.add(RepetitionDocument(key=self._key, payload=payload))
            else:
                document.payload = payload

    def remove(self) -> None:
        with self._session_factory.begin() as session:
            session.execute(delete(RepetitionDocument).where(RepetitionDocument.key == self._key))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_int(value: Any) -> Optional[int]:
    if not _is_number(value):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return int(value)
    return value


def record_from_dict(question_id: str, raw: Any) -> Optional[RepetitionRecord]:
    """Parse a serialized record, returning ``None`` when any field is missing or invalid."""
    if not isinstance(raw, Mapping):
        return None

    ease_factor = raw.get("easeFactor")
    interval = _as_int(raw.get("interval"))
    repetitions = _as_int(raw.get("repetitions"))
    next_review = _as_int(raw.get("nextReview"))
    if not _is_number(ease_factor) or interval is None or repetitions is None or next_review is None:
        return None
    if not math.isfinite(ease_factor) or ease_factor < MIN_EASE_FACTOR:
        return None
    if interval < 0 or repetitions < 0:
        return None

    if "lastResult" not in raw:
        return None
    raw_result = raw["lastResult"]
    if raw_result is None:
        last_result = None
    else:
        try:
            last_result = LastResult(raw_result)
        except ValueError:
            return None

    return RepetitionRecord(
        question_id=question_id,
        ease_factor=float(ease_factor),
        interval=interval,
        repetitions=repetitions,
        next_review=next_review,
        last_result=last_result,
    )


def record_to_dict(record: RepetitionRecord) -> dict[str, Any]:
    return {
        "questionId": record.question_id,
        "easeFactor": record.ease_factor,
        "interval": record.interval,
        "repetitions": record.repetitions,
        "nextReview": record.next_review,
        "lastResult": None if record.last_result is None else record.last_result.value,
    }


def parse_document(payload: str) -> dict[str, RepetitionRecord]:
    """Decode a whole document, dropping malformed entries.

    Raises ``ValueError`` when the payload is not a JSON object.
    """
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("Repetition document must be a JSON object.")

    records: dict[str, RepetitionRecord] = {}
    for question_id, raw in data.items():
        record = record_from_dict(question_id, raw)
        if record is None:
            LOGGER.warning("Ignoring malformed repetition record for question %s.", question_id)
            continue
        records[question_id] = record
    return records


def dump_document(records: Mapping[str, RepetitionRecord]) -> str:
    return json.dumps({question_id: record_to_dict(record) for question_id, record in records.items()})


class RepetitionStore:
    """Mapping from question id to its repetition record, persisted as one document.

    Every mutation is a read-modify-write of the full document. Concurrent
    writers are not reconciled: the last full save wins.
    """

    def __init__(self, backend: DocumentBackend) -> None:
        self._backend = backend

    def load_all(self) -> dict[str, RepetitionRecord]:
        """Return every stored record; an absent or unreadable document yields ``{}``."""
        try:
            payload = self._backend.read()
        except Exception:  # pragma: no cover - guardrail against storage issues
            LOGGER.warning("Failed to read repetition data; treating it as empty.", exc_info=True)
            return {}

        if not payload:
            return {}

        try:
            return parse_document(payload)
        except (ValueError, RecursionError):
            LOGGER.warning("Repetition data is corrupt; treating it as empty.")
            return {}

    def find(self, question_id: str) -> Optional[RepetitionRecord]:
        return self.load_all().get(question_id)

    def get_one(self, question_id: str, now: Optional[int] = None) -> RepetitionRecord:
        """Return the stored record or a fresh default; the default is not written back."""
        record = self.find(question_id)
        if record is not None:
            return record
        return new_record(question_id, now)

    def save_all(self, records: Mapping[str, RepetitionRecord]) -> None:
        """Overwrite the persisted document with ``records``."""
        payload = dump_document(records)
        try:
            self._backend.write(payload)
        except (SQLAlchemyError, OSError) as exc:
            raise RepetitionStoreError("Failed to persist repetition data.") from exc

    def upsert(self, record: RepetitionRecord) -> None:
        records = self.load_all()
        records[record.question_id] = record
        self.save_all(records)

    def delete_many(self, question_ids: Iterable[str]) -> None:
        """Forget the given questions; ids without a record are ignored."""
        records = self.load_all()
        for question_id in question_ids:
            records.pop(question_id, None)
        self.save_all(records)

    def export_document(self) -> str:
        return dump_document(self.load_all())

    def import_document(self, payload: str) -> int:
        """Replace the stored mapping with a serialized document; returns the record count."""
        try:
            records = parse_document(payload)
        except (ValueError, RecursionError) as exc:
            raise RepetitionStoreError("Imported repetition data is not a valid JSON object.") from exc
        self.save_all(records)
        return len(records)

    def delete_all(self) -> None:
        try:
            self._backend.remove()
        except (SQLAlchemyError, OSError) as exc:
            raise RepetitionStoreError("Failed to clear repetition data.") from exc
