"""Run SQLite schema migrations for the schedule store."""

from __future__ import annotations

import argparse
import json
import sqlite3
from pathlib import Path

from dotenv import load_dotenv

from tripline.config.settings import resolve_settings
from tripline.persistence.migration_runner import apply_sqlite_migrations, pending_migrations


def _resolve_db_path(cli_value: str) -> Path:
    value = cli_value.strip()
    if value:
        return Path(value)
    return resolve_settings().db_path


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Apply schedule store migrations")
    parser.add_argument("--db", default="", help="Target SQLite DB path (defaults to TRIPLINE_DB)")
    parser.add_argument("--check", action="store_true", help="Only report pending migrations")
    args = parser.parse_args(argv)

    db_path = _resolve_db_path(str(args.db))
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with sqlite3.connect(db_path, isolation_level=None) as conn:
        if args.check:
            pending = [item.version for item in pending_migrations(conn)]
            print(json.dumps({"db_path": str(db_path), "pending_versions": pending}, indent=2))
            return 1 if pending else 0
        applied = apply_sqlite_migrations(conn)

    report = {
        "db_path": str(db_path),
        "applied_count": len(applied),
        "applied_versions": applied,
    }
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
