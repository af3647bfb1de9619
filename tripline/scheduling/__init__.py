"""Feasibility, propagation and commit of transport choices."""

from tripline.scheduling.commit import apply_updates
from tripline.scheduling.feasibility import validate_alternative, validate_alternatives
from tripline.scheduling.impact import calculate_impact
from tripline.scheduling.settlement import settle

__all__ = [
    "apply_updates",
    "calculate_impact",
    "settle",
    "validate_alternative",
    "validate_alternatives",
]
