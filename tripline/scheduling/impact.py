"""Impact calculator: the downstream ripple of selecting a transport alternative."""

from __future__ import annotations

from typing import Optional

from tripline.domain.exceptions import NotFound
from tripline.domain.models import ScheduleUpdate, UpdatePreview
from tripline.infrastructure.logging import StructuredLogger, get_logger
from tripline.persistence.repository import ScheduleRepository
from tripline.scheduling.segment import load_segment, round_minutes


def calculate_impact(
    repo: ScheduleRepository,
    alternative_id: str,
    *,
    logger: Optional[StructuredLogger] = None,
) -> UpdatePreview:
    """Build the preview of every shift the alternative would impose on its day.

    Flexible activities starting at or after the destination move by the
    difference between the new arrival and the destination's start. Fixed
    activities never move; any fixed activity overlapping a shifted interval
    is reported in ``conflicts``, once per shifted activity it overlaps.
    Reads only; raises ``NotFound`` like the validator.
    """
    log = logger or get_logger()
    log.node_start("calculate_impact", alternative_id=alternative_id)

    try:
        segment = load_segment(repo, alternative_id)
    except NotFound:
        log.node_end("calculate_impact", alternative_id=alternative_id, outcome="not_found")
        raise
    destination = segment.destination
    delta = segment.arrival - destination.scheduled_start
    shift_minutes = round_minutes(delta)
    if shift_minutes == 0:
        log.node_end("calculate_impact", alternative_id=alternative_id, total_shift_minutes=0, affected=0)
        return UpdatePreview(transport_alternative_id=alternative_id)

    updates: list[ScheduleUpdate] = []
    conflicts: list[str] = []
    for activity in repo.list_flexible_from(destination):
        update = ScheduleUpdate(
            activity_id=activity.id,
            old_start=activity.scheduled_start,
            old_end=activity.scheduled_end,
            new_start=activity.scheduled_start + delta,
            new_end=activity.scheduled_end + delta,
            expected_version=activity.version,
        )
        updates.append(update)
        conflicts.extend(
            repo.find_fixed_overlaps(
                destination.day_id,
                exclude_id=activity.id,
                start=update.new_start,
                end=update.new_end,
            )
        )

    log.node_end(
        "calculate_impact",
        alternative_id=alternative_id,
        total_shift_minutes=shift_minutes,
        affected=len(updates),
        conflicts=len(conflicts),
    )
    return UpdatePreview(
        transport_alternative_id=alternative_id,
        affected_activities=updates,
        conflicts=conflicts,
        total_shift_minutes=shift_minutes,
    )


__all__ = ["calculate_impact"]
