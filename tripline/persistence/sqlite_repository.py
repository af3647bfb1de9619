"""SQLite implementation of the schedule store."""

from __future__ import annotations

import datetime as dt
import json
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from tripline.domain.exceptions import AlternativeNotFound
from tripline.domain.models import Activity, ScheduleUpdate, TransportAlternative
from tripline.persistence.migration_runner import apply_sqlite_migrations
from tripline.shared.exceptions import StalePreviewError, StorageError, TransactionFailure

_ACTIVITY_COLUMNS = "id, day_id, name, scheduled_start, scheduled_end, is_flexible, version"
_ALTERNATIVE_COLUMNS = (
    "id, from_activity_id, to_activity_id, name, transport_mode, duration_minutes, "
    "buffer_minutes, distance_meters, available_from, available_to, available_days_json, is_selected"
)


def _to_text(value: dt.datetime) -> str:
    return value.isoformat()


def _from_text(raw: str) -> dt.datetime:
    return dt.datetime.fromisoformat(raw)


def _row_to_activity(row: Sequence) -> Activity:
    return Activity(
        id=row[0],
        day_id=row[1],
        name=row[2],
        scheduled_start=_from_text(row[3]),
        scheduled_end=_from_text(row[4]),
        is_flexible=bool(row[5]),
        version=row[6],
    )


def _row_to_alternative(row: Sequence) -> TransportAlternative:
    return TransportAlternative(
        id=row[0],
        from_activity_id=row[1],
        to_activity_id=row[2],
        name=row[3],
        transport_mode=row[4],
        duration_minutes=row[5],
        buffer_minutes=row[6],
        distance_meters=row[7],
        available_from=row[8],
        available_to=row[9],
        available_days=json.loads(row[10] or "[]"),
        is_selected=bool(row[11]),
    )


def _by_start(activities: list[Activity]) -> list[Activity]:
    return sorted(activities, key=lambda item: (item.scheduled_start, item.id))


class SQLiteScheduleRepository:
    backend = "sqlite"

    def __init__(self, db_path: str | Path, *, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._timeout = timeout
        self._lock = threading.Lock()
        try:
            with self._lock, self._connection() as conn:
                apply_sqlite_migrations(conn)
        except sqlite3.Error as exc:
            raise StorageError(f"migrating schedule store failed: {exc}") from exc

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot open schedule store: {exc}") from exc
        try:
            try:
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA foreign_keys=ON;")
            except sqlite3.Error as exc:
                raise StorageError(f"cannot open schedule store: {exc}") from exc
            yield conn
        finally:
            conn.close()

    def _fetch(self, sql: str, params: Sequence = ()) -> list[tuple]:
        try:
            with self._lock, self._connection() as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"schedule store read failed: {exc}") from exc

    # ── reads ──────────────────────────────────────────

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        rows = self._fetch(f"SELECT {_ACTIVITY_COLUMNS} FROM activities WHERE id = ?", (activity_id,))
        return _row_to_activity(rows[0]) if rows else None

    def get_alternative(self, alternative_id: str) -> Optional[TransportAlternative]:
        rows = self._fetch(
            f"SELECT {_ALTERNATIVE_COLUMNS} FROM transport_alternatives WHERE id = ?",
            (alternative_id,),
        )
        return _row_to_alternative(rows[0]) if rows else None

    def list_day_activities(self, day_id: str) -> list[Activity]:
        rows = self._fetch(f"SELECT {_ACTIVITY_COLUMNS} FROM activities WHERE day_id = ?", (day_id,))
        # Offsets may differ between rows, so order on parsed instants.
        return _by_start([_row_to_activity(row) for row in rows])

    def list_downstream_activities(self, anchor: Activity) -> list[Activity]:
        """Activities of the anchor's day starting strictly after it, any flexibility."""
        return [
            item
            for item in self.list_day_activities(anchor.day_id)
            if item.scheduled_start > anchor.scheduled_start
        ]

    def list_flexible_from(self, anchor: Activity) -> list[Activity]:
        """Flexible activities of the anchor's day starting at or after it, anchor included."""
        return [
            item
            for item in self.list_day_activities(anchor.day_id)
            if item.is_flexible and item.scheduled_start >= anchor.scheduled_start
        ]

    def find_fixed_overlaps(
        self,
        day_id: str,
        *,
        exclude_id: str,
        start: dt.datetime,
        end: dt.datetime,
    ) -> list[str]:
        """Ids of fixed activities whose [start, end) intersects [start, end)."""
        return [
            item.id
            for item in self.list_day_activities(day_id)
            if not item.is_flexible
            and item.id != exclude_id
            and item.scheduled_start < end
            and start < item.scheduled_end
        ]

    def list_alternatives(self, from_activity_id: str, to_activity_id: str) -> list[TransportAlternative]:
        rows = self._fetch(
            f"""
            SELECT {_ALTERNATIVE_COLUMNS}
            FROM transport_alternatives
            WHERE from_activity_id = ? AND to_activity_id = ?
            ORDER BY is_selected DESC, name ASC, id ASC
            """,
            (from_activity_id, to_activity_id),
        )
        return [_row_to_alternative(row) for row in rows]

    # ── writes ─────────────────────────────────────────

    def save_activity(self, activity: Activity) -> None:
        """Insert or replace an activity; an existing row gets its version bumped."""
        try:
            with self._lock, self._connection() as conn:
                conn.execute(
                    """
                    INSERT INTO activities (
                        id, day_id, name, scheduled_start, scheduled_end, is_flexible, version
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        day_id=excluded.day_id,
                        name=excluded.name,
                        scheduled_start=excluded.scheduled_start,
                        scheduled_end=excluded.scheduled_end,
                        is_flexible=excluded.is_flexible,
                        version=activities.version + 1
                    """,
                    (
                        activity.id,
                        activity.day_id,
                        activity.name,
                        _to_text(activity.scheduled_start),
                        _to_text(activity.scheduled_end),
                        int(activity.is_flexible),
                        activity.version,
                    ),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"saving activity {activity.id} failed: {exc}") from exc

    def save_alternative(self, alternative: TransportAlternative) -> None:
        try:
            with self._lock, self._connection() as conn:
                conn.execute(
                    f"""
                    INSERT OR REPLACE INTO transport_alternatives ({_ALTERNATIVE_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        alternative.id,
                        alternative.from_activity_id,
                        alternative.to_activity_id,
                        alternative.name,
                        alternative.transport_mode.value,
                        alternative.duration_minutes,
                        alternative.buffer_minutes,
                        alternative.distance_meters,
                        alternative.available_from,
                        alternative.available_to,
                        json.dumps(alternative.available_days),
                        int(alternative.is_selected),
                    ),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"saving transport alternative {alternative.id} failed: {exc}") from exc

    def apply_schedule_updates(
        self,
        updates: Sequence[ScheduleUpdate],
        *,
        select_alternative_id: Optional[str] = None,
    ) -> None:
        """Write every update, and optionally the selection, in one transaction."""
        with self._lock, self._connection() as conn:
            self._run_transaction(conn, updates, select_alternative_id)

    def select_alternative(self, alternative_id: str) -> None:
        with self._lock, self._connection() as conn:
            self._run_transaction(conn, (), alternative_id)

    def _run_transaction(
        self,
        conn: sqlite3.Connection,
        updates: Sequence[ScheduleUpdate],
        select_alternative_id: Optional[str],
    ) -> None:
        try:
            conn.execute("BEGIN IMMEDIATE")
            for update in updates:
                self._write_update(conn, update)
            if select_alternative_id is not None:
                self._write_selection(conn, select_alternative_id)
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            self._rollback(conn)
            raise TransactionFailure(f"schedule commit rolled back: {exc}") from exc
        except BaseException:
            self._rollback(conn)
            raise

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def _write_update(self, conn: sqlite3.Connection, update: ScheduleUpdate) -> None:
        cursor = conn.execute(
            """
            UPDATE activities
            SET scheduled_start = ?, scheduled_end = ?, version = version + 1
            WHERE id = ? AND version = ? AND is_flexible = 1
            """,
            (
                _to_text(update.new_start),
                _to_text(update.new_end),
                update.activity_id,
                update.expected_version,
            ),
        )
        if cursor.rowcount != 1:
            raise StalePreviewError(update.activity_id, update.expected_version)

    def _write_selection(self, conn: sqlite3.Connection, alternative_id: str) -> None:
        row = conn.execute(
            "SELECT from_activity_id, to_activity_id FROM transport_alternatives WHERE id = ?",
            (alternative_id,),
        ).fetchone()
        if row is None:
            raise AlternativeNotFound(alternative_id)
        conn.execute(
            """
            UPDATE transport_alternatives
            SET is_selected = 0
            WHERE from_activity_id = ? AND to_activity_id = ? AND id != ?
            """,
            (row[0], row[1], alternative_id),
        )
        conn.execute("UPDATE transport_alternatives SET is_selected = 1 WHERE id = ?", (alternative_id,))


__all__ = ["SQLiteScheduleRepository"]
