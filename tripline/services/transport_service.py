"""Application service for choosing a transport alternative."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from tripline.config.settings import EngineSettings, resolve_settings
from tripline.domain.exceptions import DomainError, NotFound
from tripline.domain.models import ScheduleUpdate, TransportAlternative, UpdatePreview, ValidationResult
from tripline.infrastructure.logging import StructuredLogger, get_logger
from tripline.persistence.repository import ScheduleRepository
from tripline.scheduling.commit import apply_updates
from tripline.scheduling.feasibility import validate_alternative, validate_alternatives
from tripline.scheduling.impact import calculate_impact


class UnconfirmedConflicts(DomainError):
    """Selecting would collide with fixed activities and the caller did not accept that."""

    def __init__(self, alternative_id: str, conflicts: Sequence[str]):
        self.alternative_id = alternative_id
        self.conflicts = list(conflicts)
        super().__init__(
            f"Selecting {alternative_id} conflicts with fixed activities: {', '.join(dict.fromkeys(conflicts))}"
        )


class TransportService:
    """Validate → preview → confirm, bound to one repository."""

    def __init__(
        self,
        repo: ScheduleRepository,
        *,
        settings: Optional[EngineSettings] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.repo = repo
        self.settings = settings or resolve_settings()
        self.logger = logger or get_logger()

    def validate(self, alternative_id: str) -> ValidationResult:
        return validate_alternative(self.repo, alternative_id, settings=self.settings, logger=self.logger)

    def validate_many(self, alternative_ids: Sequence[str]) -> dict[str, ValidationResult | NotFound]:
        return validate_alternatives(self.repo, alternative_ids, settings=self.settings, logger=self.logger)

    def preview(self, alternative_id: str) -> UpdatePreview:
        return calculate_impact(self.repo, alternative_id, logger=self.logger)

    def apply(self, updates: Sequence[ScheduleUpdate]) -> None:
        apply_updates(self.repo, updates, logger=self.logger)

    def confirm(self, alternative_id: str, updates: Sequence[ScheduleUpdate]) -> None:
        """Commit a previously previewed set of updates and select the alternative with them."""
        apply_updates(self.repo, updates, select_alternative_id=alternative_id, logger=self.logger)

    def select(self, alternative_id: str, *, accept_conflicts: bool = False) -> UpdatePreview:
        """Recompute the preview and commit it together with the selection.

        Raises ``UnconfirmedConflicts`` when the fresh preview collides with
        fixed activities and ``accept_conflicts`` is not set.
        """
        preview = self.preview(alternative_id)
        if preview.conflicts and not accept_conflicts:
            self.logger.warning(
                "select_alternative",
                "selection blocked by fixed-activity conflicts",
                alternative_id=alternative_id,
                conflicts=preview.conflicts,
            )
            raise UnconfirmedConflicts(alternative_id, preview.conflicts)
        if preview.is_empty:
            self.repo.select_alternative(alternative_id)
        else:
            self.confirm(alternative_id, preview.affected_activities)
        self.logger.summary(
            action="select_alternative",
            alternative_id=alternative_id,
            total_shift_minutes=preview.total_shift_minutes,
            affected=len(preview.affected_activities),
        )
        return preview

    def list_alternatives(self, from_activity_id: str, to_activity_id: str) -> list[TransportAlternative]:
        return self.repo.list_alternatives(from_activity_id, to_activity_id)


__all__ = ["TransportService", "UnconfirmedConflicts"]
