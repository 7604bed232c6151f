"""Configuration helpers for the MCQ Review Scheduler runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

from src.db import get_database_url
from src.db.repetition_store import DEFAULT_STORAGE_KEY
from src.scheduler.service import DEFAULT_SMART_REVIEW_SIZE


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    database_url: str
    storage_key: str
    smart_review_size: int

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", "MCQ Review Scheduler")
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        database_url = get_database_url()
        storage_key = os.getenv("REPETITION_STORAGE_KEY", DEFAULT_STORAGE_KEY).strip()

        if not storage_key:
            raise RuntimeError("REPETITION_STORAGE_KEY must not be empty.")

        try:
            smart_review_size = int(os.getenv("SMART_REVIEW_SIZE", str(DEFAULT_SMART_REVIEW_SIZE)))
        except ValueError as exc:
            raise RuntimeError("SMART_REVIEW_SIZE must be an integer.") from exc

        if smart_review_size < 1:
            raise RuntimeError("SMART_REVIEW_SIZE must be a positive integer.")

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            database_url=database_url,
            storage_key=storage_key,
            smart_review_size=smart_review_size,
        )
