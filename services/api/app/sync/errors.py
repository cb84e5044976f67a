"""Sync-specific exceptions.

Conflicts are not errors: they are returned as data in the sync response.
NotFound is not an error either: repositories return ``None``.
"""


class SyncError(Exception):
    """Base exception for sync errors."""

    pass


class StorageFailure(SyncError):
    """Raised when the backing store fails. Fatal for the whole sync call."""

    def __init__(self, message: str, entity_type: str | None = None):
        super().__init__(message)
        self.entity_type = entity_type


class BatchTooLarge(SyncError):
    """Raised when a single sync request carries more entities than allowed."""

    def __init__(self, received: int, limit: int):
        super().__init__(f"Sync batch of {received} entities exceeds the limit of {limit}")
        self.received = received
        self.limit = limit
