"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

_DEFAULT_DB_PATH = Path("data") / "tripline.sqlite3"


def _int_env(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        return default


class EngineSettings(BaseModel):
    db_path: Path = Field(default=_DEFAULT_DB_PATH)
    db_timeout_seconds: float = Field(default=5.0, ge=0)
    timezone: Optional[str] = Field(default=None)
    validation_workers: int = Field(default=4, ge=1)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        try:
            ZoneInfo(value.strip())
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value.strip()

    def zone(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None


def resolve_settings() -> EngineSettings:
    raw_db = os.getenv("TRIPLINE_DB", "").strip()
    return EngineSettings(
        db_path=Path(raw_db) if raw_db else _DEFAULT_DB_PATH,
        db_timeout_seconds=_float_env("TRIPLINE_DB_TIMEOUT_SECONDS", 5.0),
        timezone=os.getenv("TRIPLINE_TIMEZONE") or None,
        validation_workers=_int_env("TRIPLINE_VALIDATION_WORKERS", 4),
    )


__all__ = ["EngineSettings", "resolve_settings"]
