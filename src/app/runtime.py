"""Bootstrap logic for wiring the repetition scheduler."""

from __future__ import annotations

import logging

from src.app.settings import AppSettings
from src.db import get_session_factory, run_migrations_if_needed
from src.db.repetition_store import RepetitionStore, SqlDocumentBackend
from src.scheduler.service import RepetitionScheduler


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_scheduler(settings: AppSettings) -> RepetitionScheduler:
    """Create a scheduler backed by the configured database."""
    _configure_logging(settings.log_level)

    try:
        run_migrations_if_needed(database_url=settings.database_url)
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    backend = SqlDocumentBackend(get_session_factory(settings.database_url), key=settings.storage_key)
    LOGGER.debug(
        "Using repetition document %r for %s in %s mode.",
        settings.storage_key,
        settings.app_name,
        settings.app_env,
    )
    return RepetitionScheduler(RepetitionStore(backend))
