"""Domain semantic exceptions."""


class DomainError(Exception):
    """Base domain exception."""


class NotFound(DomainError):
    """Raised when a referenced record cannot be located."""

    entity = "record"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity.capitalize()} not found: {entity_id}")


class AlternativeNotFound(NotFound):
    entity = "transport alternative"


class ActivityNotFound(NotFound):
    entity = "activity"
