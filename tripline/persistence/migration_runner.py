"""SQLite schema migrations for the schedule store.

Migrations are the ``NNNN_name.sql`` files shipped next to this module,
applied in file-name order. Each applied version is recorded with a
checksum so an edited migration is detected instead of silently skipped.
"""

from __future__ import annotations

import hashlib
import sqlite3
import time
from pathlib import Path

from pydantic import BaseModel

from tripline.shared.exceptions import StorageError

_MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


class MigrationError(StorageError):
    """Applied schema does not match the shipped migrations."""


class Migration(BaseModel):
    version: str
    path: Path
    checksum: str

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


def discover_migrations(directory: Path = _MIGRATIONS_DIR) -> list[Migration]:
    rows: list[Migration] = []
    for path in sorted(directory.glob("*.sql")):
        sql = path.read_text(encoding="utf-8")
        rows.append(
            Migration(
                version=path.name.split("_", 1)[0],
                path=path,
                checksum=hashlib.sha256(sql.encode("utf-8")).hexdigest(),
            )
        )
    if not rows:
        raise MigrationError(f"no migrations found in {directory}")
    return rows


def _recorded_versions(conn: sqlite3.Connection) -> dict[str, str]:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            checksum TEXT NOT NULL,
            applied_at TEXT NOT NULL
        )
        """
    )
    rows = conn.execute("SELECT version, checksum FROM schema_migrations").fetchall()
    return {str(version): str(checksum) for version, checksum in rows}


def pending_migrations(conn: sqlite3.Connection) -> list[Migration]:
    recorded = _recorded_versions(conn)
    pending: list[Migration] = []
    for migration in discover_migrations():
        checksum = recorded.get(migration.version)
        if checksum is None:
            pending.append(migration)
        elif checksum != migration.checksum:
            raise MigrationError(f"checksum mismatch for migration {migration.version}")
    return pending


def apply_sqlite_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply every pending migration and return the versions applied."""
    applied: list[str] = []
    for migration in pending_migrations(conn):
        conn.executescript(migration.read_sql())
        conn.execute(
            "INSERT INTO schema_migrations(version, checksum, applied_at) VALUES (?, ?, ?)",
            (migration.version, migration.checksum, time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())),
        )
        applied.append(migration.version)
    return applied


__all__ = ["Migration", "MigrationError", "apply_sqlite_migrations", "discover_migrations", "pending_migrations"]
