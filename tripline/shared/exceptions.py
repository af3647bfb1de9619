"""Shared (non-domain) exceptions."""


class StorageError(Exception):
    """Storage read or write failed."""


class TransactionFailure(StorageError):
    """A schedule commit was rolled back; no partial writes remain."""


class StalePreviewError(TransactionFailure):
    """An activity changed after the preview it is being committed from was read."""

    def __init__(self, activity_id: str, expected_version: int):
        self.activity_id = activity_id
        self.expected_version = expected_version
        super().__init__(
            f"Activity {activity_id} changed since preview (expected version {expected_version})"
        )
