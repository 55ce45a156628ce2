"""
Service layer for Family Feed.

Provides:
- RecordSynchronizer: local collection kept in step with the record store
- Derived views (search/sort, upcoming important dates)
- Time-bounded remote calls
- Account deletion
"""

from src.services.exceptions import (
    EmptyPayload,
    InvalidPayload,
    NotAuthenticated,
    OperationTimedOut,
    PayloadTooLarge,
    RecordAlreadyIdentified,
    RecordNotFound,
    RecordNotIdentified,
    RemoteError,
    SyncError,
)
from src.services.queries import (
    SortOption,
    dates_for_category,
    dates_on,
    derived_view,
    upcoming_by_member,
    upcoming_dates,
)
from src.services.synchronizer import RecordSynchronizer
from src.services.timeout import with_timeout

__all__ = [
    # Errors
    "SyncError",
    "NotAuthenticated",
    "RecordNotIdentified",
    "RecordAlreadyIdentified",
    "RecordNotFound",
    "InvalidPayload",
    "EmptyPayload",
    "PayloadTooLarge",
    "OperationTimedOut",
    "RemoteError",
    # Views
    "SortOption",
    "derived_view",
    "upcoming_dates",
    "upcoming_by_member",
    "dates_for_category",
    "dates_on",
    # Synchronization
    "RecordSynchronizer",
    "with_timeout",
]
