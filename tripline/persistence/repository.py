"""Schedule store interface, in-memory implementation and factory."""

from __future__ import annotations

import datetime as dt
import threading
from collections.abc import Sequence
from typing import Optional, Protocol

from tripline.config.settings import EngineSettings, resolve_settings
from tripline.domain.exceptions import AlternativeNotFound
from tripline.domain.models import Activity, ScheduleUpdate, TransportAlternative
from tripline.persistence.sqlite_repository import SQLiteScheduleRepository
from tripline.shared.exceptions import StalePreviewError


class ScheduleRepository(Protocol):
    backend: str

    def get_activity(self, activity_id: str) -> Optional[Activity]: ...

    def get_alternative(self, alternative_id: str) -> Optional[TransportAlternative]: ...

    def list_day_activities(self, day_id: str) -> list[Activity]: ...

    def list_downstream_activities(self, anchor: Activity) -> list[Activity]: ...

    def list_flexible_from(self, anchor: Activity) -> list[Activity]: ...

    def find_fixed_overlaps(
        self,
        day_id: str,
        *,
        exclude_id: str,
        start: dt.datetime,
        end: dt.datetime,
    ) -> list[str]: ...

    def list_alternatives(self, from_activity_id: str, to_activity_id: str) -> list[TransportAlternative]: ...

    def save_activity(self, activity: Activity) -> None: ...

    def save_alternative(self, alternative: TransportAlternative) -> None: ...

    def apply_schedule_updates(
        self,
        updates: Sequence[ScheduleUpdate],
        *,
        select_alternative_id: Optional[str] = None,
    ) -> None: ...

    def select_alternative(self, alternative_id: str) -> None: ...


class InMemoryScheduleRepository:
    """Process-local store; writes are applied to a copy and swapped in whole."""

    backend = "memory"

    def __init__(self) -> None:
        self._activities: dict[str, Activity] = {}
        self._alternatives: dict[str, TransportAlternative] = {}
        self._lock = threading.Lock()

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        return self._activities.get(activity_id)

    def get_alternative(self, alternative_id: str) -> Optional[TransportAlternative]:
        return self._alternatives.get(alternative_id)

    def list_day_activities(self, day_id: str) -> list[Activity]:
        rows = [item for item in self._activities.values() if item.day_id == day_id]
        return sorted(rows, key=lambda item: (item.scheduled_start, item.id))

    def list_downstream_activities(self, anchor: Activity) -> list[Activity]:
        return [
            item
            for item in self.list_day_activities(anchor.day_id)
            if item.scheduled_start > anchor.scheduled_start
        ]

    def list_flexible_from(self, anchor: Activity) -> list[Activity]:
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
        return [
            item.id
            for item in self.list_day_activities(day_id)
            if not item.is_flexible
            and item.id != exclude_id
            and item.scheduled_start < end
            and start < item.scheduled_end
        ]

    def list_alternatives(self, from_activity_id: str, to_activity_id: str) -> list[TransportAlternative]:
        rows = [
            item
            for item in self._alternatives.values()
            if item.from_activity_id == from_activity_id and item.to_activity_id == to_activity_id
        ]
        return sorted(rows, key=lambda item: (not item.is_selected, item.name, item.id))

    def save_activity(self, activity: Activity) -> None:
        with self._lock:
            existing = self._activities.get(activity.id)
            if existing is not None:
                activity = activity.model_copy(update={"version": existing.version + 1})
            self._activities = {**self._activities, activity.id: activity}

    def save_alternative(self, alternative: TransportAlternative) -> None:
        with self._lock:
            self._alternatives = {**self._alternatives, alternative.id: alternative}

    def apply_schedule_updates(
        self,
        updates: Sequence[ScheduleUpdate],
        *,
        select_alternative_id: Optional[str] = None,
    ) -> None:
        with self._lock:
            activities = dict(self._activities)
            for update in updates:
                current = activities.get(update.activity_id)
                if current is None or current.version != update.expected_version or not current.is_flexible:
                    raise StalePreviewError(update.activity_id, update.expected_version)
                activities[update.activity_id] = current.model_copy(
                    update={
                        "scheduled_start": update.new_start,
                        "scheduled_end": update.new_end,
                        "version": current.version + 1,
                    }
                )
            alternatives = self._selected(select_alternative_id) if select_alternative_id else self._alternatives
            self._activities = activities
            self._alternatives = alternatives

    def select_alternative(self, alternative_id: str) -> None:
        with self._lock:
            self._alternatives = self._selected(alternative_id)

    def _selected(self, alternative_id: str) -> dict[str, TransportAlternative]:
        chosen = self._alternatives.get(alternative_id)
        if chosen is None:
            raise AlternativeNotFound(alternative_id)
        pair = (chosen.from_activity_id, chosen.to_activity_id)
        return {
            key: item.model_copy(update={"is_selected": key == alternative_id})
            if (item.from_activity_id, item.to_activity_id) == pair
            else item
            for key, item in self._alternatives.items()
        }


def get_schedule_repository(settings: EngineSettings | None = None) -> ScheduleRepository:
    resolved = settings or resolve_settings()
    return SQLiteScheduleRepository(resolved.db_path, timeout=resolved.db_timeout_seconds)


__all__ = [
    "InMemoryScheduleRepository",
    "ScheduleRepository",
    "get_schedule_repository",
]
