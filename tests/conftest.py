from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.db import Base
from src.db.repetition_store import InMemoryDocumentBackend, RepetitionStore
from src.scheduler.service import RepetitionScheduler


NOW = 1_767_225_600_000  # 2026-01-01T00:00:00Z


@pytest.fixture
def session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    factory = sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def backend() -> InMemoryDocumentBackend:
    return InMemoryDocumentBackend()


@pytest.fixture
def store(backend: InMemoryDocumentBackend) -> RepetitionStore:
    return RepetitionStore(backend)


class FrozenClock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def scheduler(store: RepetitionStore, clock: FrozenClock) -> RepetitionScheduler:
    return RepetitionScheduler(store, clock=clock)
