"""
Custom exceptions for the local database backend.
"""


class LocalStoreError(Exception):
    """Base exception for local backend operations."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class LocalNotFoundError(LocalStoreError):
    """Row does not exist, is soft-deleted, or is hidden by its ACL."""


class LocalPermissionError(LocalStoreError):
    """Caller is not allowed to write the row."""


class LocalDuplicateError(LocalStoreError):
    """Unique value already taken (username)."""
