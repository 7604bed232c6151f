from __future__ import annotations

from sqlalchemy import create_engine, inspect

from src.db import run_migrations, run_migrations_if_needed, should_run_migrations


def test_migrations_create_repetition_documents(monkeypatch, tmp_path) -> None:
    database_url = f"sqlite:///{tmp_path / 'review.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)

    run_migrations()

    engine = create_engine(database_url)
    try:
        columns = {column["name"] for column in inspect(engine).get_columns("repetition_documents")}
    finally:
        engine.dispose()
    assert columns == {"key", "payload", "updated_at"}


def test_migrations_can_be_disabled(monkeypatch, tmp_path) -> None:
    database_url = f"sqlite:///{tmp_path / 'skipped.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("RUN_MIGRATIONS_ON_STARTUP", "off")

    assert should_run_migrations() is False
    run_migrations_if_needed()

    assert not (tmp_path / "skipped.db").exists()
