"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

from tripline.domain.enums import FailureKind, TransportMode, WindowBoundary

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def normalize_clock(value: str) -> str:
    """Return ``value`` as a zero-padded ``HH:MM`` string."""
    match = _CLOCK_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError(f"expected HH:MM, got {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"time of day out of range: {value!r}")
    return f"{hour:02d}:{minute:02d}"


class Activity(BaseModel):
    id: str
    day_id: str
    name: str = ""
    scheduled_start: AwareDatetime
    scheduled_end: AwareDatetime
    is_flexible: bool = True
    version: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _check_interval(self) -> "Activity":
        if self.scheduled_start > self.scheduled_end:
            raise ValueError("scheduled_start must not be after scheduled_end")
        return self


class TransportAlternative(BaseModel):
    id: str
    from_activity_id: str
    to_activity_id: str
    name: str = ""
    transport_mode: TransportMode = TransportMode.OTHER
    duration_minutes: float = Field(ge=0)
    buffer_minutes: float = Field(default=0.0, ge=0)
    distance_meters: Optional[float] = Field(default=None, ge=0)
    available_from: Optional[str] = None
    available_to: Optional[str] = None
    available_days: list[int] = Field(default_factory=list)
    is_selected: bool = False

    @field_validator("available_from", "available_to")
    @classmethod
    def _normalize_window(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return normalize_clock(value)

    @field_validator("available_days")
    @classmethod
    def _check_days(cls, value: list[int]) -> list[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError(f"weekday index must be within 0..6, got {day}")
        return sorted(set(value))

    @property
    def total_minutes(self) -> float:
        return self.duration_minutes + self.buffer_minutes


class ScheduleUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    activity_id: str
    old_start: AwareDatetime
    old_end: AwareDatetime
    new_start: AwareDatetime
    new_end: AwareDatetime
    expected_version: int = Field(default=1, ge=1)


class UpdatePreview(BaseModel):
    model_config = ConfigDict(frozen=True)

    transport_alternative_id: str = ""
    affected_activities: list[ScheduleUpdate] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    total_shift_minutes: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.affected_activities


class FeasibilityFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    minutes_late: Optional[int] = None
    available_from: Optional[str] = None
    available_to: Optional[str] = None
    boundary: Optional[WindowBoundary] = None
    weekday: Optional[int] = None
    conflict_count: Optional[int] = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_feasible: bool
    failure: Optional[FeasibilityFailure] = None
    arrival_time: Optional[dt.datetime] = None
    conflicts: list[str] = Field(default_factory=list)


class MemberBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    balance: float
    name: str = ""


class Transfer(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_member: str
    to_member: str
    amount: float
