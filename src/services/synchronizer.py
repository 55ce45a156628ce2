"""
Record synchronizer.

Keeps an in-memory collection of the signed-in user's family members
consistent with the remote record store.

Rules:
- The local collection only ever holds server-confirmed records. Nothing
  is applied locally before the store confirms it.
- Each local change is a single replace of the list object, so readers
  see either the pre- or the post-operation collection, never a mix.
- Updates are read-merge-write without version checks. Two concurrent
  updates of the same record race between the read and the write and the
  last writer wins.
- Nothing is retried. Failures surface as one SyncError subclass.
"""

import logging
import uuid
from dataclasses import replace
from typing import Awaitable, Optional, TypeVar

from src.integrations.base import AuthContext, BlobStore, RecordStore
from src.models.family import AccessControl, FamilyMember, ImportantDate
from src.services.exceptions import (
    EmptyPayload,
    NotAuthenticated,
    PayloadTooLarge,
    RecordAlreadyIdentified,
    RecordNotFound,
    RecordNotIdentified,
    RemoteError,
    SyncError,
)
from src.services.timeout import with_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ASSET_BYTES = 10_000_000
DEFAULT_UPLOAD_TIMEOUT = 30.0
DEFAULT_SAVE_TIMEOUT = 15.0

BIRTH_CHART_CONTENT_TYPE = "image/jpeg"


def birth_chart_name(record: FamilyMember) -> str:
    """Stored name for a record's birth chart."""
    return f"{record.id or uuid.uuid4().hex}_birthchart.jpg"


def _require_auth(auth: Optional[AuthContext]) -> AuthContext:
    if auth is None or not auth.is_authenticated:
        raise NotAuthenticated("No user logged in")
    return auth


def _require_id(record: FamilyMember) -> str:
    if not record.id:
        raise RecordNotIdentified("Record has not been saved yet")
    return record.id


async def call_remote(description: str, call: Awaitable[T]) -> T:
    """Await a backend call, wrapping any non-sync failure in RemoteError."""
    try:
        return await call
    except SyncError:
        raise
    except Exception as e:
        logger.error(f"{description} failed: {e}", exc_info=True)
        raise RemoteError(f"{description} failed: {e}", original_error=e) from e


class RecordSynchronizer:
    """
    Owns the local collection of family members for one user session.

    Usage:
        sync = RecordSynchronizer(record_store, blob_store)
        await sync.fetch_all(auth)
        member = await sync.create(auth, FamilyMember(name="Ana", relationship="Sister",
                                                      date_of_birth=date(1990, 4, 2)))
        member = await sync.upload_asset(auth, member, jpeg_bytes)
    """

    def __init__(
        self,
        record_store: RecordStore,
        blob_store: BlobStore,
        max_asset_bytes: int = DEFAULT_MAX_ASSET_BYTES,
        upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT,
        save_timeout: float = DEFAULT_SAVE_TIMEOUT,
    ):
        """
        Args:
            record_store: Remote record store
            blob_store: Remote blob store for birth charts
            max_asset_bytes: Default payload limit for upload_asset
            upload_timeout: Default upload time limit (seconds)
            save_timeout: Default time limit for saving after upload (seconds)
        """
        self._records = record_store
        self._blobs = blob_store
        self.max_asset_bytes = max_asset_bytes
        self.upload_timeout = upload_timeout
        self.save_timeout = save_timeout
        self._members: list[FamilyMember] = []

    @property
    def members(self) -> list[FamilyMember]:
        """Snapshot of the local collection."""
        return list(self._members)

    def get_local(self, record_id: str) -> Optional[FamilyMember]:
        for member in self._members:
            if member.id == record_id:
                return member
        return None

    def clear(self) -> None:
        self._members = []

    def _append_local(self, record: FamilyMember) -> None:
        self._members = self._members + [record]

    def _replace_local(self, record: FamilyMember) -> None:
        if self.get_local(record.id) is None:
            logger.debug(f"Record {record.id} saved but not in local collection")
            return
        self._members = [record if m.id == record.id else m for m in self._members]

    def _remove_local(self, record_id: str) -> None:
        self._members = [m for m in self._members if m.id != record_id]

    async def fetch_all(self, auth: Optional[AuthContext]) -> list[FamilyMember]:
        """
        Replace the local collection with every record owned by the user.

        On failure the local collection is left as it was.

        Raises:
            NotAuthenticated: No user id
            RemoteError: Store failure
        """
        auth = _require_auth(auth)
        members = await call_remote(
            "Fetching family members",
            self._records.find(auth, owner_id=auth.user_id),
        )
        self._members = list(members)
        logger.debug(f"Fetched {len(self._members)} family members for user {auth.user_id}")
        return self.members

    async def create(self, auth: Optional[AuthContext], draft: FamilyMember) -> FamilyMember:
        """
        Persist a new record owned by the user and append it locally.

        The stored record is readable and writable by the owner only.

        Args:
            auth: Caller
            draft: Unsaved record (id must be None)

        Returns:
            The record as stored, carrying its server id

        Raises:
            RecordAlreadyIdentified: Draft already has an id
            NotAuthenticated: No user id
            RemoteError: Store failure (local collection unchanged)
        """
        auth = _require_auth(auth)
        if draft.id:
            raise RecordAlreadyIdentified(f"Record {draft.id} already exists; use update()")

        owned = replace(
            draft,
            owner_id=auth.user_id,
            acl=AccessControl.owner_only(auth.user_id),
        )
        saved = await call_remote("Adding family member", self._records.save(auth, owned))
        if not saved.id:
            raise RemoteError("Adding family member failed: store returned no id")

        self._append_local(saved)
        logger.info(f"Created family member {saved.id} ('{saved.name}') for user {auth.user_id}")
        return saved

    async def update(self, auth: Optional[AuthContext], record: FamilyMember) -> FamilyMember:
        """
        Write the record's editable fields over the stored copy.

        Re-reads the stored record first and copies name, relationship,
        date of birth, birth place, birth chart and important dates onto it,
        so fields the local copy does not know about are kept. There is no
        version check between the read and the write (last writer wins).

        Raises:
            RecordNotIdentified: Record has no id
            NotAuthenticated: No user id
            RecordNotFound: Store has no such record
            RemoteError: Store failure (local collection unchanged)
        """
        record_id = _require_id(record)
        auth = _require_auth(auth)

        existing = await call_remote(
            f"Loading family member {record_id}",
            self._records.get(auth, record_id),
        )
        if existing is None:
            logger.warning(f"Update of family member {record_id} found no stored record")
            raise RecordNotFound(f"Family member {record_id} not found in database")

        merged = record.merged_onto(existing)
        saved = await call_remote(
            f"Updating family member {record_id}",
            self._records.save(auth, merged),
        )

        self._replace_local(saved)
        logger.info(f"Updated family member {record_id}")
        return saved

    async def delete(self, auth: Optional[AuthContext], record: FamilyMember) -> None:
        """
        Delete the stored record, then drop it from the local collection.

        Raises:
            RecordNotIdentified: Record has no id
            NotAuthenticated: No user id
            RecordNotFound: Store has no such record
            RemoteError: Store failure (local collection unchanged)
        """
        record_id = _require_id(record)
        auth = _require_auth(auth)

        existing = await call_remote(
            f"Loading family member {record_id}",
            self._records.get(auth, record_id),
        )
        if existing is None:
            logger.warning(f"Delete of family member {record_id} found no stored record")
            raise RecordNotFound(f"Family member {record_id} not found in database")

        await call_remote(
            f"Deleting family member {record_id}",
            self._records.delete(auth, existing),
        )

        self._remove_local(record_id)
        logger.info(f"Deleted family member {record_id}")

    def _check_payload(self, data: Optional[bytes], max_bytes: int) -> None:
        if not data:
            raise EmptyPayload("Failed to process image: no data")
        if len(data) > max_bytes:
            raise PayloadTooLarge(len(data), max_bytes)

    async def upload_asset(
        self,
        auth: Optional[AuthContext],
        record: FamilyMember,
        data: Optional[bytes],
        max_bytes: Optional[int] = None,
        upload_timeout: Optional[float] = None,
        save_timeout: Optional[float] = None,
    ) -> FamilyMember:
        """
        Upload a birth chart and point the record at it.

        Two bounded stages: the blob upload, then saving the record with
        the new URL (update semantics, or create for an unsaved record).

        Args:
            auth: Caller
            record: Record the chart belongs to
            data: Encoded image bytes
            max_bytes: Payload limit (defaults to the synchronizer's)
            upload_timeout: Upload time limit in seconds
            save_timeout: Save time limit in seconds

        Returns:
            The saved record

        Raises:
            EmptyPayload / PayloadTooLarge: Rejected before any network call
            NotAuthenticated: No user id
            OperationTimedOut: A stage exceeded its limit
            RecordNotFound / RemoteError: Store failure
        """
        max_bytes = self.max_asset_bytes if max_bytes is None else max_bytes
        upload_timeout = self.upload_timeout if upload_timeout is None else upload_timeout
        save_timeout = self.save_timeout if save_timeout is None else save_timeout

        self._check_payload(data, max_bytes)
        auth = _require_auth(auth)

        name = birth_chart_name(record)
        blob = await with_timeout(
            upload_timeout,
            lambda: call_remote(
                "Birth chart upload",
                self._blobs.upload(auth, name, data, content_type=BIRTH_CHART_CONTENT_TYPE),
            ),
            name="Birth chart upload",
        )
        logger.info(f"Uploaded birth chart {blob.name} ({len(data)} bytes)")

        updated = record.with_birth_chart(blob.url)
        if updated.is_persisted:
            save = lambda: self.update(auth, updated)  # noqa: E731
        else:
            save = lambda: self.create(auth, updated)  # noqa: E731
        return await with_timeout(save_timeout, save, name="Birth chart save")

    async def replace_asset(
        self,
        auth: Optional[AuthContext],
        record: FamilyMember,
        data: Optional[bytes],
    ) -> FamilyMember:
        """
        Replace a record's birth chart.

        Clears the existing reference with a persisted update, then uploads.
        The two steps are not atomic: if the upload fails or the process
        dies in between, the record is left with no birth chart. The old
        asset is not deleted from the blob store.

        Raises:
            Same as update() and upload_asset()
        """
        self._check_payload(data, self.max_asset_bytes)

        if record.birth_chart:
            record = await self.update(auth, record.with_birth_chart(None))
            logger.info(f"Cleared birth chart of family member {record.id}")

        return await self.upload_asset(auth, record, data)

    async def add_important_date(
        self,
        auth: Optional[AuthContext],
        record: FamilyMember,
        important_date: ImportantDate,
    ) -> FamilyMember:
        """Append an important date and save. Duplicates are allowed."""
        return await self.update(auth, record.with_important_date(important_date))

    async def remove_important_date(
        self,
        auth: Optional[AuthContext],
        record: FamilyMember,
        important_date: ImportantDate,
    ) -> FamilyMember:
        """Remove every entry with the same date and description, then save."""
        return await self.update(auth, record.without_important_date(important_date))
