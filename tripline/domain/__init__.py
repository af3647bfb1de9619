"""Domain package exports."""

from tripline.domain.enums import FailureKind, TransportMode, WindowBoundary
from tripline.domain.exceptions import ActivityNotFound, AlternativeNotFound, DomainError, NotFound
from tripline.domain.models import (
    Activity,
    FeasibilityFailure,
    MemberBalance,
    ScheduleUpdate,
    Transfer,
    TransportAlternative,
    UpdatePreview,
    ValidationResult,
)

__all__ = [
    "Activity",
    "ActivityNotFound",
    "AlternativeNotFound",
    "DomainError",
    "FailureKind",
    "FeasibilityFailure",
    "MemberBalance",
    "NotFound",
    "ScheduleUpdate",
    "Transfer",
    "TransportAlternative",
    "TransportMode",
    "UpdatePreview",
    "ValidationResult",
    "WindowBoundary",
]
