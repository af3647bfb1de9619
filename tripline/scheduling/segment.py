"""Loading a transport segment and the time arithmetic shared by its checks."""

from __future__ import annotations

import datetime as dt
import math
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from tripline.domain.exceptions import ActivityNotFound, AlternativeNotFound
from tripline.domain.models import Activity, TransportAlternative
from tripline.persistence.repository import ScheduleRepository


class Segment(BaseModel):
    """A transport alternative together with the two activities it connects."""

    alternative: TransportAlternative
    origin: Activity
    destination: Activity

    @property
    def departure(self) -> dt.datetime:
        return self.origin.scheduled_end

    @property
    def arrival(self) -> dt.datetime:
        return self.departure + dt.timedelta(minutes=self.alternative.total_minutes)


def load_segment(repo: ScheduleRepository, alternative_id: str) -> Segment:
    alternative = repo.get_alternative(alternative_id)
    if alternative is None:
        raise AlternativeNotFound(alternative_id)
    origin = repo.get_activity(alternative.from_activity_id)
    if origin is None:
        raise ActivityNotFound(alternative.from_activity_id)
    destination = repo.get_activity(alternative.to_activity_id)
    if destination is None:
        raise ActivityNotFound(alternative.to_activity_id)
    return Segment(alternative=alternative, origin=origin, destination=destination)


def round_minutes(delta: dt.timedelta) -> int:
    """Whole minutes in ``delta``; halves round towards positive infinity."""
    return math.floor(delta.total_seconds() / 60 + 0.5)


def _localize(moment: dt.datetime, zone: Optional[ZoneInfo]) -> dt.datetime:
    if zone is None:
        return moment
    return moment.astimezone(zone)


def clock_of(moment: dt.datetime, zone: Optional[ZoneInfo] = None) -> str:
    return _localize(moment, zone).strftime("%H:%M")


def weekday_of(moment: dt.datetime, zone: Optional[ZoneInfo] = None) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return _localize(moment, zone).isoweekday() % 7
