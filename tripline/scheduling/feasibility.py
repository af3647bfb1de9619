"""Feasibility validator: can a transport alternative be selected as scheduled?"""

from __future__ import annotations

import concurrent.futures
import datetime as dt
from collections.abc import Sequence
from typing import Optional
from zoneinfo import ZoneInfo

from tripline.config.settings import EngineSettings
from tripline.domain.enums import FailureKind, WindowBoundary
from tripline.domain.exceptions import NotFound
from tripline.domain.models import FeasibilityFailure, TransportAlternative, ValidationResult
from tripline.infrastructure.logging import StructuredLogger, get_logger
from tripline.persistence.repository import ScheduleRepository
from tripline.scheduling.segment import Segment, clock_of, load_segment, round_minutes, weekday_of


def _infeasible(
    failure: FeasibilityFailure,
    *,
    arrival: Optional[dt.datetime] = None,
    conflicts: Sequence[str] = (),
) -> ValidationResult:
    return ValidationResult(is_feasible=False, failure=failure, arrival_time=arrival, conflicts=list(conflicts))


def check_service_window(alternative: TransportAlternative, clock: str) -> Optional[FeasibilityFailure]:
    """Check ``clock`` against the half-open window [available_from, available_to).

    A window whose start is later than its end wraps past midnight.
    """
    start, end = alternative.available_from, alternative.available_to
    if start is None and end is None:
        return None
    if start is not None and end is not None and start > end:
        if clock >= start or clock < end:
            return None
        boundary = WindowBoundary.FROM
    elif start is not None and clock < start:
        boundary = WindowBoundary.FROM
    elif end is not None and clock >= end:
        boundary = WindowBoundary.TO
    else:
        return None
    return FeasibilityFailure(
        kind=FailureKind.OUTSIDE_SERVICE_WINDOW,
        available_from=start,
        available_to=end,
        boundary=boundary,
    )


def scan_downstream(repo: ScheduleRepository, segment: Segment) -> list[str]:
    """Ids of later activities on the destination's day that the arrival would collide with.

    The cursor moves to every scanned activity's end, fixed or flexible.
    """
    conflicts: list[str] = []
    cursor = segment.arrival
    for activity in repo.list_downstream_activities(segment.destination):
        if cursor > activity.scheduled_start:
            conflicts.append(activity.id)
        cursor = activity.scheduled_end
    return conflicts


def _evaluate(repo: ScheduleRepository, segment: Segment, zone: Optional[ZoneInfo]) -> ValidationResult:
    alternative = segment.alternative
    arrival = segment.arrival

    slack = round_minutes(segment.destination.scheduled_start - arrival)
    if segment.destination.scheduled_start < arrival:
        late = FeasibilityFailure(kind=FailureKind.LATE_ARRIVAL, minutes_late=abs(slack))
        return _infeasible(late, arrival=arrival)

    window_failure = check_service_window(alternative, clock_of(segment.departure, zone))
    if window_failure is not None:
        return _infeasible(window_failure, arrival=arrival)

    if alternative.available_days:
        weekday = weekday_of(segment.departure, zone)
        if weekday not in alternative.available_days:
            unavailable = FeasibilityFailure(kind=FailureKind.UNAVAILABLE_DAY, weekday=weekday)
            return _infeasible(unavailable, arrival=arrival)

    conflicts = scan_downstream(repo, segment)
    if conflicts:
        failure = FeasibilityFailure(kind=FailureKind.DOWNSTREAM_CONFLICT, conflict_count=len(conflicts))
        return _infeasible(failure, arrival=arrival, conflicts=conflicts)

    return ValidationResult(is_feasible=True, arrival_time=arrival)


def validate_alternative(
    repo: ScheduleRepository,
    alternative_id: str,
    *,
    settings: Optional[EngineSettings] = None,
    logger: Optional[StructuredLogger] = None,
) -> ValidationResult:
    """Decide whether selecting ``alternative_id`` fits the current schedule.

    Raises ``NotFound`` when the alternative or an endpoint activity is
    missing. Infeasibility is returned as data; any other failure is logged
    and reported as a ``VALIDATION_ERROR`` result.
    """
    log = logger or get_logger()
    zone = settings.zone() if settings else None
    log.node_start("validate_alternative", alternative_id=alternative_id)
    try:
        segment = load_segment(repo, alternative_id)
        result = _evaluate(repo, segment, zone)
    except NotFound:
        log.node_end("validate_alternative", alternative_id=alternative_id, outcome="not_found")
        raise
    except Exception as exc:
        log.error("validate_alternative", str(exc), alternative_id=alternative_id)
        return _infeasible(FeasibilityFailure(kind=FailureKind.VALIDATION_ERROR))

    log.node_end(
        "validate_alternative",
        alternative_id=alternative_id,
        is_feasible=result.is_feasible,
        failure=result.failure.kind.value if result.failure else None,
    )
    return result


def validate_alternatives(
    repo: ScheduleRepository,
    alternative_ids: Sequence[str],
    *,
    settings: Optional[EngineSettings] = None,
    logger: Optional[StructuredLogger] = None,
) -> dict[str, ValidationResult | NotFound]:
    """Validate several alternatives concurrently.

    A missing alternative maps to its ``NotFound`` error instead of aborting
    the batch. Keys follow the order of ``alternative_ids``.
    """
    workers = settings.validation_workers if settings else 4
    unique_ids = list(dict.fromkeys(alternative_ids))
    results: dict[str, ValidationResult | NotFound] = {}
    if not unique_ids:
        return results

    with concurrent.futures.ThreadPoolExecutor(max_workers=min(workers, len(unique_ids))) as pool:
        futures = {
            alternative_id: pool.submit(
                validate_alternative, repo, alternative_id, settings=settings, logger=logger
            )
            for alternative_id in unique_ids
        }
        for alternative_id, future in futures.items():
            try:
                results[alternative_id] = future.result()
            except NotFound as exc:
                results[alternative_id] = exc
    return results


__all__ = ["check_service_window", "scan_downstream", "validate_alternative", "validate_alternatives"]
