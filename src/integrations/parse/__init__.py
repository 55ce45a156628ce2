"""
Parse Server backend for Family Feed.

Provides the Parse REST API as record store, blob store and auth provider.
"""

from src.integrations.parse.adapter import ParseAdapter
from src.integrations.parse.auth import ParseAuthProvider
from src.integrations.parse.client import ParseClient
from src.integrations.parse.exceptions import (
    ParseAuthError,
    ParseConnectionError,
    ParseDuplicateError,
    ParseError,
    ParseNotFoundError,
    ParseRateLimitError,
    ParseServerError,
    ParseValidationError,
)
from src.integrations.parse.repository import ParseBlobStore, ParseRecordStore

__all__ = [
    "ParseAdapter",
    "ParseAuthProvider",
    "ParseClient",
    "ParseError",
    "ParseAuthError",
    "ParseConnectionError",
    "ParseDuplicateError",
    "ParseNotFoundError",
    "ParseRateLimitError",
    "ParseServerError",
    "ParseValidationError",
    "ParseBlobStore",
    "ParseRecordStore",
]
