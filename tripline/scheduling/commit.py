"""Schedule commit: apply a confirmed preview as one transaction."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from tripline.domain.models import ScheduleUpdate
from tripline.infrastructure.logging import StructuredLogger, get_logger
from tripline.persistence.repository import ScheduleRepository
from tripline.shared.exceptions import StorageError


def apply_updates(
    repo: ScheduleRepository,
    updates: Sequence[ScheduleUpdate],
    *,
    select_alternative_id: Optional[str] = None,
    logger: Optional[StructuredLogger] = None,
) -> None:
    """Write ``updates`` all-or-nothing.

    With ``select_alternative_id`` the same transaction also marks that
    alternative selected and deselects its siblings on the same edge.
    Storage failures are logged and re-raised; nothing is retried.
    """
    if not updates and select_alternative_id is None:
        return
    log = logger or get_logger()
    log.node_start("apply_updates", updates=len(updates), select_alternative_id=select_alternative_id)
    try:
        repo.apply_schedule_updates(updates, select_alternative_id=select_alternative_id)
    except StorageError as exc:
        log.error("apply_updates", str(exc), updates=len(updates), error_type=type(exc).__name__)
        raise
    log.node_end("apply_updates", updates=len(updates), select_alternative_id=select_alternative_id)


__all__ = ["apply_updates"]
