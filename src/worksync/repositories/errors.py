"""Exceptions raised by the tracking record store."""


class TrackingError(Exception):
    """Base exception for tracking store errors."""

    pass


class StoreNotLoadedError(TrackingError):
    """An operation was attempted before load()."""

    pass


class DuplicateSourceError(TrackingError):
    """A record for the same source already exists."""

    def __init__(self, source_key: tuple[str, ...], existing_id: str):
        self.source_key = source_key
        self.existing_id = existing_id
        super().__init__(
            f"A tracking record for {':'.join(source_key)} already exists ({existing_id})"
        )


class NotFoundError(TrackingError):
    """No record with the given id exists."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Tracking record not found: {record_id}")


class StorageCorruptError(TrackingError):
    """The tracking file exists but does not hold valid tracking data."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Tracking file {path} is corrupt: {reason}")
