"""Domain enums."""

from enum import Enum


class TransportMode(str, Enum):
    WALKING = "walking"
    CYCLING = "cycling"
    DRIVING = "driving"
    PUBLIC_TRANSIT = "public_transit"
    TAXI = "taxi"
    FLIGHT = "flight"
    OTHER = "other"


class FailureKind(str, Enum):
    LATE_ARRIVAL = "late_arrival"
    OUTSIDE_SERVICE_WINDOW = "outside_service_window"
    UNAVAILABLE_DAY = "unavailable_day"
    DOWNSTREAM_CONFLICT = "downstream_conflict"
    VALIDATION_ERROR = "validation_error"


class WindowBoundary(str, Enum):
    FROM = "from"
    TO = "to"
