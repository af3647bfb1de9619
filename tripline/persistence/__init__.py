"""Persistence package exports."""

from tripline.persistence.migration_runner import MigrationError, apply_sqlite_migrations
from tripline.persistence.repository import (
    InMemoryScheduleRepository,
    ScheduleRepository,
    get_schedule_repository,
)
from tripline.persistence.sqlite_repository import SQLiteScheduleRepository

__all__ = [
    "InMemoryScheduleRepository",
    "MigrationError",
    "SQLiteScheduleRepository",
    "ScheduleRepository",
    "apply_sqlite_migrations",
    "get_schedule_repository",
]
