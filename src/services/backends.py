"""
Backend selection.

Builds the record store, blob store and auth provider for the configured
RECORD_STORE_PROVIDER, plus one RecordSynchronizer per signed-in user.
At most MAX_CACHED_USERS synchronizers are kept; the least recently used
one is dropped first. A dropped user's collection is re-fetched on demand.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Optional

from src.config import Settings, get_settings
from src.integrations.base import AuthProvider, BlobStore, RecordStore
from src.services.synchronizer import RecordSynchronizer

logger = logging.getLogger(__name__)

# Singleton instance
_backends: Optional["Backends"] = None


@dataclass
class Backends:
    """The collaborators of the record synchronizer for one deployment."""

    provider: str
    records: RecordStore
    blobs: BlobStore
    auth: AuthProvider
    settings: Settings
    client: Optional[Any] = None
    _synchronizers: OrderedDict[str, RecordSynchronizer] = field(default_factory=OrderedDict)

    def synchronizer_for(self, user_id: str) -> RecordSynchronizer:
        """Get or create the synchronizer holding a user's local collection."""
        sync = self._synchronizers.get(user_id)
        if sync is not None:
            self._synchronizers.move_to_end(user_id)
            return sync

        sync = RecordSynchronizer(
            self.records,
            self.blobs,
            max_asset_bytes=self.settings.max_asset_bytes,
            upload_timeout=self.settings.asset_upload_timeout,
            save_timeout=self.settings.asset_save_timeout,
        )
        self._synchronizers[user_id] = sync
        while len(self._synchronizers) > self.settings.max_cached_users:
            evicted, _ = self._synchronizers.popitem(last=False)
            logger.debug(f"Evicted local collection of user {evicted}")
        return sync

    def forget(self, user_id: str) -> None:
        """Drop a user's local collection (logout, account deletion)."""
        self._synchronizers.pop(user_id, None)

    async def aclose(self) -> None:
        """Release the HTTP client of a remote backend."""
        if self.client is not None:
            await self.client.aclose()


def _build_parse(settings: Settings) -> Backends:
    from src.integrations.parse import (
        ParseAuthProvider,
        ParseBlobStore,
        ParseClient,
        ParseRecordStore,
    )

    settings.validate_parse_config()
    client = ParseClient(
        settings.parse_server_url,
        settings.parse_application_id,
        settings.parse_rest_api_key,
        timeout=settings.parse_request_timeout,
    )
    logger.info(f"Using Parse Server backend at {settings.parse_server_url}")
    return Backends(
        provider="parse",
        records=ParseRecordStore(client),
        blobs=ParseBlobStore(client),
        auth=ParseAuthProvider(client),
        client=client,
        settings=settings,
    )


def _build_local(settings: Settings) -> Backends:
    from src.integrations.local import LocalAuthProvider, LocalBlobStore, LocalRecordStore

    logger.info("Using local database backend")
    return Backends(
        provider="local",
        records=LocalRecordStore(),
        blobs=LocalBlobStore(settings.asset_base_url),
        auth=LocalAuthProvider(),
        settings=settings,
    )


def build_backends(settings: Optional[Settings] = None) -> Backends:
    """
    Build backends for the configured provider.

    Raises:
        ValueError: If the provider configuration is incomplete
    """
    settings = settings or get_settings()
    if settings.uses_parse:
        return _build_parse(settings)
    return _build_local(settings)


def get_backends() -> Backends:
    """Get the process-wide backends, building them on first use."""
    global _backends
    if _backends is None:
        _backends = build_backends()
    return _backends


def reset_backends() -> None:
    """Forget the cached backends (tests, reconfiguration)."""
    global _backends
    _backends = None
