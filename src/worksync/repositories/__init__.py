"""Tracking record storage."""

from .errors import (
    DuplicateSourceError,
    NotFoundError,
    StorageCorruptError,
    StoreNotLoadedError,
    TrackingError,
)
from .tracking_store import BACKUP_SUFFIX, RecordStore

__all__ = [
    "BACKUP_SUFFIX",
    "DuplicateSourceError",
    "NotFoundError",
    "RecordStore",
    "StorageCorruptError",
    "StoreNotLoadedError",
    "TrackingError",
]
