"""Human-readable rendering of feasibility failures."""

from __future__ import annotations

from typing import Any, Optional

from tripline.domain.enums import FailureKind, WindowBoundary
from tripline.domain.models import FeasibilityFailure, ValidationResult


def describe_failure(failure: FeasibilityFailure) -> str:
    if failure.kind == FailureKind.LATE_ARRIVAL:
        return f"Arrives {failure.minutes_late or 0} minutes late"
    if failure.kind == FailureKind.OUTSIDE_SERVICE_WINDOW:
        if failure.boundary == WindowBoundary.FROM:
            return f"Not available until {failure.available_from}"
        return f"Not available after {failure.available_to}"
    if failure.kind == FailureKind.UNAVAILABLE_DAY:
        return "Not available on this day of week"
    if failure.kind == FailureKind.DOWNSTREAM_CONFLICT:
        return f"Would cause {failure.conflict_count or 0} downstream conflict(s)"
    return "Validation error"


def present_validation(result: ValidationResult) -> dict[str, Any]:
    reason: Optional[str] = describe_failure(result.failure) if result.failure else None
    return {
        "is_feasible": result.is_feasible,
        "reason": reason,
        "failure_kind": result.failure.kind.value if result.failure else None,
        "arrival_time": result.arrival_time,
        "conflicts": list(result.conflicts),
    }


__all__ = ["describe_failure", "present_validation"]
