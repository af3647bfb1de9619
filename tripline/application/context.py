"""Application context for dependency injection."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from tripline.config.settings import EngineSettings, resolve_settings
from tripline.infrastructure.logging import StructuredLogger, get_logger
from tripline.persistence.repository import ScheduleRepository, get_schedule_repository
from tripline.services.transport_service import TransportService


@dataclass
class AppContext:
    settings: EngineSettings
    repository_factory: Callable[[EngineSettings], ScheduleRepository]
    logger: StructuredLogger
    _repo: Any = field(default=None, init=False, repr=False)
    _repo_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get_repository(self) -> ScheduleRepository:
        if self._repo is None:
            with self._repo_lock:
                if self._repo is None:
                    self._repo = self.repository_factory(self.settings)
        return self._repo

    def transport_service(self) -> TransportService:
        return TransportService(self.get_repository(), settings=self.settings, logger=self.logger)


def make_app_context() -> AppContext:
    return AppContext(
        settings=resolve_settings(),
        repository_factory=get_schedule_repository,
        logger=get_logger(),
    )
