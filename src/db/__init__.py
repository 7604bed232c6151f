import logging
import os
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import DateTime, Engine, String, Text, create_engine, func
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker


LOGGER = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./mcq_review.db"


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


class RepetitionDocument(Base):
    """A whole serialized repetition mapping stored under a single key."""

    __tablename__ = "repetition_documents"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        server_onupdate=func.now(),
    )


def _expand_database_url(raw_url: str) -> str:
    """Expand environment variables inside the configured database URL."""
    return os.path.expandvars(raw_url)


def get_database_url() -> str:
    """Return the configured database URL, falling back to a local SQLite file."""
    raw_url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    return _expand_database_url(raw_url)


@lru_cache(maxsize=4)
def get_engine(database_url: Optional[str] = None) -> Engine:
    """Create (and cache) the engine for the given or configured database URL."""
    echo = os.getenv("SQLALCHEMY_ECHO", "false").lower() in {"1", "true", "yes"}
    return create_engine(database_url or get_database_url(), echo=echo)


@lru_cache(maxsize=4)
def get_session_factory(database_url: Optional[str] = None) -> sessionmaker[Session]:
    """Return a cached session factory bound to the engine."""
    return sessionmaker(get_engine(database_url), expire_on_commit=False)


def should_run_migrations() -> bool:
    """Determine whether migrations should be executed during startup."""
    flag = os.getenv("RUN_MIGRATIONS_ON_STARTUP", "true").lower()
    return flag in {"1", "true", "yes", "on"}


def _build_alembic_config(database_url: Optional[str] = None) -> Config:
    project_root = Path(__file__).resolve().parents[2]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url or get_database_url())
    return alembic_cfg


def run_migrations(target: str = "head", database_url: Optional[str] = None) -> None:
    """Run Alembic migrations up to the specified target revision."""
    command.upgrade(_build_alembic_config(database_url), target)


def run_migrations_if_needed(target: str = "head", database_url: Optional[str] = None) -> None:
    """Run migrations when the startup flag is enabled."""
    if not should_run_migrations():
        LOGGER.info("Skipping migrations because RUN_MIGRATIONS_ON_STARTUP is disabled.")
        return

    LOGGER.info("Applying database migrations up to %s.", target)
    run_migrations(target, database_url)
    LOGGER.info("Database schema is up to date.")
