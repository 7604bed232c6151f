"""Application bootstrap helpers for the MCQ Review Scheduler project."""

from .runtime import build_scheduler
from .settings import AppSettings

__all__ = ["build_scheduler", "AppSettings"]
