"""
Local database backend for Family Feed.

Stores records, assets and accounts in the application database
(SQLite for development, PostgreSQL in production).
"""

from src.integrations.local.auth import LocalAuthProvider
from src.integrations.local.exceptions import (
    LocalDuplicateError,
    LocalNotFoundError,
    LocalPermissionError,
    LocalStoreError,
)
from src.integrations.local.repository import LocalBlobStore, LocalRecordStore

__all__ = [
    "LocalAuthProvider",
    "LocalBlobStore",
    "LocalRecordStore",
    "LocalStoreError",
    "LocalDuplicateError",
    "LocalNotFoundError",
    "LocalPermissionError",
]
