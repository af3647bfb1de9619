"""Application services."""

from tripline.services.feasibility_presenter import describe_failure, present_validation
from tripline.services.transport_service import TransportService, UnconfirmedConflicts

__all__ = ["TransportService", "UnconfirmedConflicts", "describe_failure", "present_validation"]
