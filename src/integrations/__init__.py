"""
Backends for Family Feed.

Each backend implements the record store, blob store and auth provider
protocols from src.integrations.base.
"""

from src.integrations.base import (
    AuthContext,
    AuthProvider,
    AuthSession,
    BlobStore,
    RecordStore,
    StoredBlob,
    UserProfile,
)

__all__ = [
    "AuthContext",
    "AuthProvider",
    "AuthSession",
    "BlobStore",
    "RecordStore",
    "StoredBlob",
    "UserProfile",
]
